"""
Tests for unit tables, serving options and grams resolution
"""

import pytest

from foods.grams import (
    category_density,
    derive_serving_options,
    grams_from_volume,
    normalize_unit,
    resolve_grams,
)
from foods.types import ParsedIngredientLine, ServingOption


def _parsed(qty, unit, name="olive oil", **kwargs):
    return ParsedIngredientLine(qty=qty, unit=unit, name=name, **kwargs)


@pytest.mark.parametrize(
    "unit,expected",
    [
        ("Tablespoons", "tbsp"),
        ("tsp", "tsp"),
        ("cups", "cup"),
        ("fl oz", "floz"),
        ("Grams", "g"),
        ("lbs", "lb"),
        ("mL", "ml"),
        ("clove", "clove"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_unit(unit, expected):
    assert normalize_unit(unit) == expected


def test_grams_from_volume():
    assert grams_from_volume(1, "cup", 1.0) == pytest.approx(240)
    assert grams_from_volume(2, "tablespoons", 0.91) == pytest.approx(26.91, abs=0.01)
    with pytest.raises(ValueError):
        grams_from_volume(1, "g", 1.0)


def test_category_density():
    assert category_density("oil") == 0.91
    assert category_density("Flour") == 0.53
    assert category_density("rice") == 0.85
    assert category_density("unknown-thing") is None
    assert category_density(None) is None


def test_resolve_grams_exact_label_beats_density():
    result = resolve_grams(_parsed(1, "tbsp"), 0.91, [ServingOption("1 tbsp", 13.6)])
    assert result.grams == pytest.approx(13.6)
    assert result.used_fallback is False


def test_resolve_grams_mass_units():
    assert resolve_grams(_parsed(2, "oz"), None, []).grams == pytest.approx(56.699, abs=0.001)
    assert resolve_grams(_parsed(1.5, "kg"), None, []).grams == pytest.approx(1500)
    assert resolve_grams(_parsed(1, "lb"), None, [ServingOption("1 cup", 200)]).grams == pytest.approx(453.59237)


def test_resolve_grams_exact_label_scales_by_label_quantity():
    options = [ServingOption("½ cup", 60), ServingOption("1 cup, diced", 150)]
    result = resolve_grams(_parsed(2, "cups"), None, options)
    assert result.grams == pytest.approx(240)
    assert result.used_fallback is False


def test_resolve_grams_volume_with_density():
    result = resolve_grams(_parsed(1, "cup"), 0.53, [])
    assert result.grams == pytest.approx(127.2)
    assert result.used_fallback is False


def test_resolve_grams_substring_serving_match():
    options = [ServingOption("100 g", 100), ServingOption("1 large clove", 5)]
    result = resolve_grams(_parsed(3, "clove", name="garlic"), None, options)
    assert result.grams == pytest.approx(15)
    assert result.used_fallback is False


def test_resolve_grams_applies_multiplier():
    result = resolve_grams(_parsed(2, "tbsp", multiplier=0.5), None, [ServingOption("1 tbsp", 13.6)])
    assert result.grams == pytest.approx(13.6)


def test_resolve_grams_falls_back_to_first_option():
    options = [ServingOption("1 medium", 118), ServingOption("100 g", 100)]
    result = resolve_grams(_parsed(1, "handful", name="banana"), None, options)
    assert result.grams == pytest.approx(118)
    assert result.used_fallback is True


def test_resolve_grams_single_letter_units_do_not_match_inside_words():
    litre = resolve_grams(_parsed(1, "l", name="bread"), None, [ServingOption("1 slice", 30)])
    assert litre.grams == pytest.approx(30)
    assert litre.used_fallback is True

    cup = resolve_grams(_parsed(1, "c", name="protein powder"), None, [ServingOption("1 scoop", 32)])
    assert cup.grams == pytest.approx(32)
    assert cup.used_fallback is True


def test_resolve_grams_unit_must_appear_as_a_word():
    options = [ServingOption("1 slice", 30), ServingOption("1 cup, diced", 150)]
    result = resolve_grams(_parsed(2, "cups", name="melon"), None, options)
    assert result.grams == pytest.approx(300)
    assert result.used_fallback is False


@pytest.mark.parametrize("unit", ["whole", "piece", "pieces", "each", "unit"])
def test_resolve_grams_count_units_match_piece_labels(unit):
    options = [ServingOption("100 g", 100), ServingOption("1 large", 50), ServingOption("½ 1 large", 25)]
    result = resolve_grams(_parsed(2, unit, name="egg"), None, options)
    assert result.grams == pytest.approx(100)
    assert result.used_fallback is False


def test_resolve_grams_fallback_prefers_piece_like_option():
    options = [ServingOption("100 g", 100), ServingOption("1 oz", 28.35), ServingOption("1 egg", 50)]
    result = resolve_grams(_parsed(2, None, name="eggs"), None, options)
    assert result.grams == pytest.approx(100)
    assert result.used_fallback is True


def test_resolve_grams_without_options_needs_manual_entry():
    result = resolve_grams(_parsed(1, "pinch", name="salt"), None, [])
    assert result.grams is None
    assert result.used_fallback is False
    assert result.to_dict() == {"grams": None, "usedFallback": False}


def test_resolve_grams_volume_without_density_or_options():
    result = resolve_grams(_parsed(1, "cup", name="mystery"), None, [])
    assert result.grams is None
    assert result.used_fallback is False


def test_derive_serving_options_order_and_dedup():
    options = derive_serving_options([ServingOption("1 tbsp", 13.6)], 0.91, "oil")
    labels = [option.label for option in options]
    assert labels == [
        "1 tbsp",
        "½ 1 tbsp",
        "2 × 1 tbsp",
        "100 g",
        "1 oz",
        "4 oz",
        "1 tsp",
        "¼ cup",
        "1 cup",
    ]
    tbsp = next(option for option in options if option.label == "1 tbsp")
    assert tbsp.grams == 13.6


def test_derive_serving_options_uses_category_density():
    options = derive_serving_options([], None, "flour")
    by_label = {option.label: option.grams for option in options}
    assert by_label["1 cup"] == pytest.approx(127.2)


def test_derive_serving_options_without_density_has_mass_units_only():
    options = derive_serving_options([], None, None)
    assert [option.label for option in options] == ["100 g", "1 oz", "4 oz"]
