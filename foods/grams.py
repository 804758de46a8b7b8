"""
Grams resolution for parsed ingredient quantities

Turns "2 tbsp" into a gram mass using fixed unit factors, the food's
density and its named serving options.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from .normalizer import CATEGORY_DENSITY_DEFAULTS
from .types import GramsResolution, ParsedIngredientLine, ServingOption

logger = logging.getLogger(__name__)

MASS_GRAMS = {
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.349523125,
    "lb": 453.59237,
}

VOLUME_ML = {
    "ml": 1.0,
    "l": 1000.0,
    "tsp": 4.92892159375,
    "tbsp": 14.78676478125,
    "cup": 240.0,
    "floz": 29.5735295625,
}

UNIT_ALIASES = {
    "g": "g",
    "gr": "g",
    "gram": "g",
    "grams": "g",
    "kg": "kg",
    "kgs": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "oz": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "l": "l",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "tsp": "tsp",
    "tsps": "tsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tbsp": "tbsp",
    "tbsps": "tbsp",
    "tbs": "tbsp",
    "tbl": "tbsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "cup": "cup",
    "cups": "cup",
    "c": "cup",
    "floz": "floz",
    "fl oz": "floz",
    "fl. oz": "floz",
    "fluid ounce": "floz",
    "fluid ounces": "floz",
    "pieces": "piece",
    "pc": "piece",
    "pcs": "piece",
    "ea": "each",
    "units": "unit",
}

# Categories the normalizer does not assign a density to
EXTRA_CATEGORY_DENSITY = {
    "sugar": 0.85,
    "rice": 0.85,
    "oats": 0.36,
    "grain": 0.80,
    "powder": 0.55,
    "dairy": 1.03,
    "cheese": 1.10,
    "nut": 0.55,
    "seed": 0.60,
    "legume": 0.90,
    "condiment": 1.10,
    "beverage": 1.00,
}

COUNT_UNITS = {"whole", "count", "piece", "each", "unit"}
COUNT_LABEL_PATTERN = re.compile(r"\b(large|medium|small|egg|piece|whole|each|unit|serving)\b")
PIECE_LABEL_PATTERN = re.compile(r"\b(large|medium|small|egg|piece|whole|each)\b")

LABEL_FRACTIONS = {"¼": 0.25, "½": 0.5, "¾": 0.75}

_LABEL_PATTERN = re.compile(r"^(?P<qty>\d+/\d+|\d+(?:\.\d+)?|[¼½¾])?\s*(?P<unit>.+?)$")


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Canonical unit token; unknown units come back lowercased and trimmed"""
    if not unit:
        return None
    text = re.sub(r"\s+", " ", unit.strip().lower())
    if not text:
        return None
    return UNIT_ALIASES.get(text, UNIT_ALIASES.get(text.rstrip("."), text))


def is_mass_unit(unit: Optional[str]) -> bool:
    return unit in MASS_GRAMS


def is_volume_unit(unit: Optional[str]) -> bool:
    return unit in VOLUME_ML


def grams_from_volume(volume: float, unit: str, density_gml: float) -> float:
    """Mass of a volume measure at the given density (g/mL)"""
    canonical = normalize_unit(unit)
    if not is_volume_unit(canonical):
        raise ValueError(f"Volume unit required, got {unit!r}")
    return volume * VOLUME_ML[canonical] * density_gml


def category_density(category_id: Optional[str]) -> Optional[float]:
    """Default density for a category, None when the category has none"""
    if not category_id:
        return None
    key = category_id.lower()
    return CATEGORY_DENSITY_DEFAULTS.get(key, EXTRA_CATEGORY_DENSITY.get(key))


def derive_serving_options(
    units: Iterable[ServingOption],
    density_gml: Optional[float] = None,
    category_id: Optional[str] = None,
) -> List[ServingOption]:
    """
    Serving choices offered for a food

    Food-specific units come first with half and double variants, then
    generic mass units, then volume units when a density is known.
    Labels are de-duplicated, first occurrence wins.
    """
    options: List[ServingOption] = []
    for unit in units:
        options.append(ServingOption(unit.label, unit.grams))
        options.append(ServingOption(f"½ {unit.label}", unit.grams / 2))
        options.append(ServingOption(f"2 × {unit.label}", unit.grams * 2))

    options.extend(
        [
            ServingOption("100 g", 100.0),
            ServingOption("1 oz", MASS_GRAMS["oz"]),
            ServingOption("4 oz", 4 * MASS_GRAMS["oz"]),
        ]
    )

    density = density_gml if density_gml and density_gml > 0 else category_density(category_id)
    if density:
        cup = grams_from_volume(1, "cup", density)
        options.extend(
            [
                ServingOption("1 tbsp", grams_from_volume(1, "tbsp", density)),
                ServingOption("1 tsp", grams_from_volume(1, "tsp", density)),
                ServingOption("¼ cup", cup / 4),
                ServingOption("1 cup", cup),
            ]
        )

    seen = set()
    unique = []
    for option in options:
        if option.label in seen:
            continue
        seen.add(option.label)
        unique.append(option)
    return unique


def _label_quantity(text: Optional[str]) -> Optional[float]:
    if not text:
        return 1.0
    if text in LABEL_FRACTIONS:
        return LABEL_FRACTIONS[text]
    if "/" in text:
        numerator, denominator = text.split("/")
        if float(denominator) == 0:
            return None
        return float(numerator) / float(denominator)
    return float(text)


def _exact_label_grams(option: ServingOption, unit: str) -> Optional[float]:
    """Grams per one `unit` when the label is exactly "<qty?> <unit>" """
    match = _LABEL_PATTERN.match(option.label.strip().lower())
    if not match or normalize_unit(match.group("unit")) != unit:
        return None
    label_qty = _label_quantity(match.group("qty"))
    if not label_qty:
        return None
    return option.grams / label_qty


def _label_mentions(label: str, words: Iterable[str]) -> bool:
    return any(re.search(rf"\b{re.escape(word)}\b", label) for word in words)


def resolve_grams(
    parsed: ParsedIngredientLine,
    density_gml: Optional[float],
    serving_options: Sequence[ServingOption],
) -> GramsResolution:
    """
    Resolve a parsed quantity to grams

    Order: mass unit, exact serving label, volume with density, serving
    label naming the unit (or a piece-like label for count units), then a
    piece-like option or the first option, both flagged as fallback.
    """
    qty = parsed.qty * parsed.multiplier
    raw_unit = (parsed.unit or parsed.raw_unit or "").strip().lower()
    unit = normalize_unit(raw_unit)

    if is_mass_unit(unit):
        return GramsResolution(qty * MASS_GRAMS[unit], False)

    if unit:
        for option in serving_options:
            per_unit = _exact_label_grams(option, unit)
            if per_unit is not None:
                return GramsResolution(per_unit * qty, False)

    if is_volume_unit(unit) and density_gml and density_gml > 0:
        return GramsResolution(grams_from_volume(qty, unit, density_gml), False)

    if unit in COUNT_UNITS:
        for option in serving_options:
            if COUNT_LABEL_PATTERN.search(option.label.lower()):
                return GramsResolution(option.grams * qty, False)
    elif unit and len(unit) >= 2:
        words = {word for word in (unit, raw_unit) if len(word) >= 2}
        for option in serving_options:
            if _label_mentions(option.label.lower(), words):
                return GramsResolution(option.grams * qty, False)

    if serving_options:
        option = next(
            (option for option in serving_options if PIECE_LABEL_PATTERN.search(option.label.lower())),
            serving_options[0],
        )
        logger.debug(f"No serving match for unit {raw_unit!r}, using {option.label!r}")
        return GramsResolution(option.grams * qty, True)

    return GramsResolution(None, False)
