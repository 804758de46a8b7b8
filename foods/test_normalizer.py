"""
Tests for bulk row validation and per-100g normalization
"""

import pytest

from foods.normalizer import (
    extract_category_hint,
    fdc_to_raw_row,
    normalize_row,
    parse_raw_row,
)
from foods.types import RawNutritionRow


def _row(description, **nutrients):
    return {"id": "1", "description": description, "nutrients": nutrients}


@pytest.mark.parametrize(
    "name,brand,expected",
    [
        ("Olive oil, extra virgin", None, "oil"),
        ("Whey protein isolate", None, "whey"),
        ("Corn starch", None, "starch"),
        ("Rice flour", None, "flour"),
        ("Coconut milk", None, "liquid"),
        ("Brown sugar", None, "sugar"),
        ("Rolled oats", None, "oats"),
        ("Brown rice, cooked", None, "rice"),
        ("Quinoa, uncooked", None, "grain"),
        ("Chicken breast", None, None),
        ("Spread", "Canola Harvest", "oil"),
    ],
)
def test_extract_category_hint(name, brand, expected):
    assert extract_category_hint(name, brand) == expected


def test_parse_raw_row_defaults_missing_nutrients_to_zero():
    row = parse_raw_row({"id": 5, "name": "Apple", "nutrients": {"kcal": 52, "fat": None}})
    assert row == RawNutritionRow(id="5", description="Apple", brand=None, ingredients=None, kcal=52.0)


def test_parse_raw_row_rejects_malformed_rows():
    assert parse_raw_row({"description": "Apple", "nutrients": {"kcal": "lots"}}) is None
    assert parse_raw_row(["not", "a", "row"]) is None


def test_normalize_row_rejects_non_positive_energy():
    assert normalize_row(_row("Water", kcal=0)) is None
    assert normalize_row(_row("Mystery", kcal=-10, protein=5)) is None
    assert normalize_row({"description": "No nutrients"}) is None
    assert normalize_row(_row("Trace", kcal=0.004)) is None
    assert normalize_row(_row("Broth", kcal=0.02)).kcal100 == 0.02


def test_normalize_row_oil_defaults_and_clamps():
    record = normalize_row(_row("Olive oil", kcal=884, protein=120, fat=104, carbs=-1, fiber=0, sugar=-2))
    assert record.category_id == "oil"
    assert record.density_gml == 0.91
    assert record.protein100 == 100
    assert record.fat100 == 100
    assert record.carbs100 == 0
    assert record.fiber100 is None
    assert record.sugar100 is None


def test_normalize_row_flour_clamps_carbs_only():
    record = normalize_row(_row("Wheat flour", kcal=364, carbs=130, protein=10, fat=1, fiber=2.7))
    assert record.category_id == "flour"
    assert record.density_gml == 0.53
    assert record.carbs100 == 100
    assert record.fiber100 == 2.7


def test_normalize_row_other_categories_leave_density_unset():
    record = normalize_row(_row("Brown rice", kcal=111, carbs=23, protein=2.6, fat=0.9))
    assert record.category_id == "rice"
    assert record.density_gml is None

    record = normalize_row(_row("Chicken breast", kcal=165, protein=31, fat=3.6))
    assert record.category_id is None
    assert record.density_gml is None


def test_normalize_row_accepts_validated_rows():
    row = RawNutritionRow(id="9", description=" Whole milk ", brand=" ", ingredients=None, kcal=61, protein=3.2)
    record = normalize_row(row)
    assert record.name == "Whole milk"
    assert record.brand is None
    assert record.density_gml == 1.0


def test_fdc_to_raw_row_detail_shape():
    food = {
        "fdcId": 171413,
        "description": "Oil, olive, salad or cooking",
        "foodNutrients": [
            {"nutrient": {"id": 1008, "number": "208"}, "amount": 884},
            {"nutrient": {"id": 1004, "number": "204"}, "amount": 100},
            {"nutrient": {"id": 1093, "number": "307"}, "amount": 2},
        ],
    }
    raw = fdc_to_raw_row(food)
    assert raw["id"] == 171413
    assert raw["nutrients"] == {"kcal": 884, "fat": 100}


def test_fdc_to_raw_row_search_shape():
    food = {
        "fdcId": 2345,
        "description": "Granola",
        "brandOwner": "Nature Valley",
        "foodNutrients": [
            {"nutrientId": 1008, "nutrientNumber": "208", "value": 471},
            {"nutrientId": 1003, "value": 10},
            {"nutrientId": 2000, "nutrientNumber": "269", "value": 21},
        ],
    }
    raw = fdc_to_raw_row(food)
    assert raw["brand"] == "Nature Valley"
    assert raw["nutrients"] == {"kcal": 471, "protein": 10, "sugar": 21}
    record = normalize_row(raw)
    assert record.kcal100 == 471
    assert record.sugar100 == 21


def test_fdc_to_raw_row_ignores_non_mappings():
    assert fdc_to_raw_row(None) is None
    assert fdc_to_raw_row("food") is None
