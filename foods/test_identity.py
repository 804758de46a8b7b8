"""
Tests for name canonicalization, fingerprints, aliases and duplicate checks
"""

import pytest

from foods.config import DedupeConfig
from foods.identity import (
    canonicalize_name,
    generate_aliases,
    is_likely_duplicate,
    macro_fingerprint,
    name_similarity,
    nutrition_similarity,
)
from foods.types import Macros


@pytest.mark.parametrize(
    "name",
    [
        "Olive Oil, Extra-Virgin",
        "  Chicken   Breast (skinless, boneless) ",
        "Rice, white, long-grain.",
        "",
        "(only parenthetical)",
        "Yogurt (plain\nwhole milk)",
    ],
)
def test_canonicalize_name_is_idempotent(name):
    once = canonicalize_name(name)
    assert canonicalize_name(once) == once


def test_canonicalize_name_examples():
    assert canonicalize_name("Olive Oil, Extra-Virgin") == "olive oil extra virgin"
    assert canonicalize_name("Chicken Breast (skinless)") == "chicken breast"
    assert canonicalize_name("  Brown   RICE. ") == "brown rice"


def test_macro_fingerprint_is_pure_and_bucketed():
    first = macro_fingerprint(884, 0, 0, 100)
    assert first == macro_fingerprint(884, 0, 0, 100)
    assert len(first) == 10
    # 884 and 885 share the 5 kcal bucket around 885, 0.4 g rounds to 0
    assert macro_fingerprint(885, 0.4, 0, 100) == first
    assert macro_fingerprint(900, 0, 0, 100) != first


def test_macro_fingerprint_respects_config_length():
    config = DedupeConfig(fingerprint_length=6)
    assert len(macro_fingerprint(100, 1, 2, 3, config)) == 6


def test_is_likely_duplicate_is_reflexive():
    macros = Macros(kcal=364, protein=10.3, carbs=76.3, fat=1.0)
    assert is_likely_duplicate("Wheat flour, white", "Wheat flour, white", macros, macros)


def test_is_likely_duplicate_uses_canonical_names():
    a = Macros(100, 1, 2, 3)
    b = Macros(500, 40, 2, 30)
    assert is_likely_duplicate("Olive Oil, Extra-Virgin", "olive oil extra virgin", a, b)


def test_is_likely_duplicate_needs_names_and_macros():
    macros = Macros(884, 0, 0, 100)
    near = Macros(880, 0, 0, 99)
    far = Macros(400, 10, 50, 10)
    name_a = "olive oil extra virgin cold pressed"
    name_b = "olive oil extra virgin cold pressed organic"
    assert name_similarity(canonicalize_name(name_a), canonicalize_name(name_b)) > 0.8
    assert is_likely_duplicate(name_a, name_b, macros, near)
    assert not is_likely_duplicate(name_a, name_b, macros, far)
    assert not is_likely_duplicate("olive oil", "canola oil", macros, macros)


def test_nutrition_similarity_bounds():
    macros = Macros(100, 10, 10, 10)
    assert nutrition_similarity(macros, macros) == 1
    assert nutrition_similarity(Macros(0, 0, 0, 0), Macros(0, 0, 0, 0)) == 1
    assert nutrition_similarity(macros, Macros(200, 10, 10, 10)) == pytest.approx(0.875)


@pytest.mark.parametrize("name", ["Olive Oil", "Eggs", "Brown Rice, cooked", "Oats", "Fresh Basil"])
def test_generate_aliases_contains_canonical_name(name):
    aliases = generate_aliases(name)
    assert canonicalize_name(name) in aliases
    assert all(len(alias) > 2 for alias in aliases)


def test_generate_aliases_variants():
    aliases = generate_aliases("Olive Oil")
    assert "olive oils" in aliases
    assert "olives oil" in aliases
    assert "olive oil raw" in aliases
    assert "olive oil roasted" in aliases


def test_generate_aliases_skips_present_variants_and_short_plurals():
    aliases = generate_aliases("Peas cooked")
    assert "peas cooked cooked" not in aliases
    assert "peas cooked raw" in aliases
    # "peas" is longer than 3, so it gets a singular form
    assert "pea cooked" in aliases

    aliases = generate_aliases("gas")
    assert "ga" not in aliases


def test_generate_aliases_drops_short_strings():
    assert all(len(alias) >= 3 for alias in generate_aliases("ab"))
    assert "ab" not in generate_aliases("ab")
