"""
Tests for the USDA FoodData Central client, without network access
"""

from unittest import mock

import pytest
import requests

from foods.exceptions import ExternalServiceError
from foods.usda_service import USDANutritionService, get_usda_service, to_external_record


SEARCH_PAYLOAD = {
    "totalHits": 3,
    "foods": [
        {
            "fdcId": 171413,
            "description": "Oil, olive, salad or cooking",
            "foodNutrients": [
                {"nutrientId": 1008, "nutrientNumber": "208", "value": 884},
                {"nutrientId": 1004, "nutrientNumber": "204", "value": 100},
            ],
        },
        {
            "fdcId": 2000,
            "description": "Water, tap",
            "foodNutrients": [{"nutrientId": 1008, "nutrientNumber": "208", "value": 0}],
        },
        {
            "fdcId": 2001,
            "description": "Olive oil spray",
            "brandOwner": "Pam",
            "foodNutrients": [
                {"nutrientNumber": "208", "value": 792},
                {"nutrientNumber": "204", "value": 88},
            ],
        },
    ],
}


def _response(status_code=200, payload=None):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.text = "" if payload is None else str(payload)
    return response


def test_load_api_keys_from_settings(settings):
    settings.USDA_API_KEY = "primary"
    settings.USDA_API_KEYS = '["primary", "second", ""]'
    service = USDANutritionService()
    assert service.api_keys == ["primary", "second"]
    assert service.is_available()


def test_invalid_key_list_is_ignored(settings):
    settings.USDA_API_KEYS = "not json"
    assert USDANutritionService().api_keys == []


def test_search_by_text_normalizes_usable_foods():
    service = USDANutritionService(api_keys=["key"])
    with mock.patch("foods.usda_service.requests.get", return_value=_response(200, SEARCH_PAYLOAD)) as get:
        records = service.search_by_text("olive oil")

    assert [record.external_id for record in records] == ["171413", "2001"]
    assert records[0].source == "fdc-live"
    assert records[0].per100g.category_id == "oil"
    assert records[1].brand == "Pam"
    params = get.call_args.kwargs["params"]
    assert params["query"] == "olive oil"
    assert params["api_key"] == "key"


def test_rate_limit_rotates_key_and_retries_once():
    service = USDANutritionService(api_keys=["first", "second"])
    responses = [_response(429), _response(200, {"foods": []})]
    with mock.patch("foods.usda_service.requests.get", side_effect=responses) as get, mock.patch(
        "foods.usda_service.time.sleep"
    ):
        assert service.search_by_text("rice") == []

    assert get.call_count == 2
    assert get.call_args_list[1].kwargs["params"]["api_key"] == "second"
    assert service.get_current_api_key() == "second"


def test_http_errors_raise_external_service_error():
    service = USDANutritionService(api_keys=["key"])
    with mock.patch("foods.usda_service.requests.get", return_value=_response(500)):
        with pytest.raises(ExternalServiceError):
            service.search_by_text("rice")


def test_network_errors_raise_external_service_error():
    service = USDANutritionService(api_keys=["key"])
    with mock.patch(
        "foods.usda_service.requests.get", side_effect=requests.exceptions.ConnectionError("down")
    ):
        with pytest.raises(ExternalServiceError):
            service.search_by_text("rice")


def test_missing_keys_raise_without_network():
    service = USDANutritionService(api_keys=[])
    with mock.patch("foods.usda_service.requests.get") as get:
        with pytest.raises(ExternalServiceError):
            service.search_by_text("rice")
    get.assert_not_called()


def test_get_food_details_returns_payload():
    service = USDANutritionService(api_keys=["key"])
    food = SEARCH_PAYLOAD["foods"][0]
    with mock.patch("foods.usda_service.requests.get", return_value=_response(200, food)) as get:
        assert service.get_food_details("171413") == food
    assert get.call_args.args[0].endswith("/food/171413")


def test_to_external_record_rejects_foods_without_id():
    food = dict(SEARCH_PAYLOAD["foods"][0])
    del food["fdcId"]
    assert to_external_record(food) is None


def test_get_usda_service_is_a_singleton():
    assert get_usda_service() is get_usda_service()
    assert not get_usda_service().is_available()
