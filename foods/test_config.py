"""
Tests for FOOD_MATCHING overrides
"""

import pytest

from foods.config import MatchingConfig, get_matching_config


def test_defaults_without_overrides():
    config = get_matching_config()
    assert config == MatchingConfig()
    assert config.dedupe.name_similarity_threshold == 0.8
    assert config.dedupe.nutrition_similarity_threshold == 0.9
    assert config.imports.kcal_tolerance == 5
    assert config.search.result_limit == 10
    assert config.search.edit_distance_cap == 10


def test_overrides_replace_single_fields(settings):
    settings.FOOD_MATCHING = {
        "search": {"result_limit": 20},
        "import": {"batch_size": 50},
    }
    config = get_matching_config()
    assert config.search.result_limit == 20
    assert config.search.brand_weight == 3
    assert config.imports.batch_size == 50


def test_unknown_keys_are_rejected(settings):
    settings.FOOD_MATCHING = {"search": {"result_limmit": 20}}
    with pytest.raises(ValueError):
        get_matching_config()

    settings.FOOD_MATCHING = {"ranking": {}}
    with pytest.raises(ValueError):
        get_matching_config()
