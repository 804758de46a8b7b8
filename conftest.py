import pytest


@pytest.fixture
def matching_config():
	from foods.config import MatchingConfig
	return MatchingConfig()


@pytest.fixture
def repository(matching_config):
	from foods.repository import FoodRepository
	return FoodRepository(matching_config.dedupe, matching_config.imports)


@pytest.fixture(autouse=True)
def no_usda_keys(settings, monkeypatch):
	# Tests never reach the real FoodData Central API
	settings.USDA_API_KEY = ""
	settings.USDA_API_KEYS = "[]"
	settings.FOOD_MATCHING = {}
	monkeypatch.setattr("foods.usda_service._usda_service", None)
