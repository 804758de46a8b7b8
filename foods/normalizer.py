"""
Per-100g normalization for bulk nutrition rows

Rows come from USDA bulk exports and from FoodData Central API payloads.
Both are validated into RawNutritionRow at the boundary; anything that
fails validation or has no energy value is dropped rather than raised,
because bulk sources are expected to contain dirty rows.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Union

from .serializers import RawNutritionRowSerializer
from .types import PerHundredGram, RawNutritionRow

logger = logging.getLogger(__name__)

# Ordered: first match wins ("rice flour" is flour, "coconut milk" is liquid)
CATEGORY_PATTERNS = (
    ("oil", re.compile(r"\boils?\b|\bshortening\b|\bcanola\b")),
    ("whey", re.compile(r"\bwhey\b")),
    ("starch", re.compile(r"\bstarch\b|\bcornstarch\b")),
    ("flour", re.compile(r"\bflours?\b")),
    ("liquid", re.compile(r"\bwater\b|\bmilk\b|\bbroth\b|\bstock\b|\bliquid\b|\bjuice\b")),
    ("sugar", re.compile(r"\bsugars?\b")),
    ("oats", re.compile(r"\boats?\b|\boatmeal\b")),
    ("rice", re.compile(r"\brice\b")),
    ("grain", re.compile(r"\bquinoa\b|\bbarley\b|\bbulgur\b|\bmillet\b|\bcouscous\b|\bfarro\b")),
)

CATEGORY_DENSITY_DEFAULTS = {
    "oil": 0.91,
    "flour": 0.53,
    "starch": 0.53,
    "whey": 0.50,
    "liquid": 1.00,
}

# FoodData Central nutrient numbers
FDC_NUTRIENT_CODES = {
    "208": "kcal",
    "203": "protein",
    "205": "carbs",
    "204": "fat",
    "291": "fiber",
    "269": "sugar",
}

# Same nutrients keyed by FDC nutrient id, used when a payload has no number
FDC_NUTRIENT_IDS = {
    1008: "kcal",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    2000: "sugar",
}


def extract_category_hint(name: str, brand: Optional[str] = None) -> Optional[str]:
    """Guess a category token from the name and brand text"""
    text = f"{name} {brand or ''}".lower()
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    return None


def parse_raw_row(raw: Any) -> Optional[RawNutritionRow]:
    """Validate a loosely-typed row; None when it cannot be read"""
    serializer = RawNutritionRowSerializer(data=raw)
    if not serializer.is_valid():
        logger.debug(f"Dropping malformed nutrition row: {serializer.errors}")
        return None

    data = serializer.validated_data
    nutrients = data.get("nutrients") or {}
    description = data.get("description") or data.get("name") or ""
    return RawNutritionRow(
        id=data.get("id"),
        description=description,
        brand=data.get("brand") or None,
        ingredients=data.get("ingredients") or None,
        **{key: nutrients.get(key) or 0.0 for key in ("kcal", "protein", "carbs", "fat", "fiber", "sugar")},
    )


def _optional(value: float) -> Optional[float]:
    return value if value > 0 else None


def normalize_row(raw: Union[RawNutritionRow, Mapping[str, Any]]) -> Optional[PerHundredGram]:
    """
    Convert one bulk row into a per-100g record

    Returns None when the row is malformed or has no positive energy value.
    """
    row = raw if isinstance(raw, RawNutritionRow) else parse_raw_row(raw)
    # kcal is stored with two decimals and must stay positive there
    if row is None or round(row.kcal, 2) <= 0:
        return None

    category = extract_category_hint(row.description, row.brand)
    protein, carbs, fat = row.protein, row.carbs, row.fat

    if category == "oil":
        protein = min(protein, 100.0)
        fat = min(fat, 100.0)
    elif category in ("flour", "starch"):
        carbs = min(carbs, 100.0)

    brand = row.brand.strip() if row.brand else None
    return PerHundredGram(
        name=row.description.strip(),
        brand=brand or None,
        category_id=category,
        density_gml=CATEGORY_DENSITY_DEFAULTS.get(category),
        kcal100=row.kcal,
        protein100=max(protein, 0.0),
        carbs100=max(carbs, 0.0),
        fat100=max(fat, 0.0),
        fiber100=_optional(row.fiber),
        sugar100=_optional(row.sugar),
    )


def _nutrient_key(food_nutrient: Mapping[str, Any]) -> Optional[str]:
    nutrient = food_nutrient.get("nutrient") or {}
    number = nutrient.get("number") or food_nutrient.get("nutrientNumber")
    if number is not None:
        return FDC_NUTRIENT_CODES.get(str(number))
    nutrient_id = nutrient.get("id") or food_nutrient.get("nutrientId")
    return FDC_NUTRIENT_IDS.get(nutrient_id)


def fdc_to_raw_row(fdc_food: Any) -> Optional[Dict[str, Any]]:
    """
    Map a FoodData Central food (detail or search payload) to the bulk row shape

    Unknown nutrient codes are ignored.
    """
    if not isinstance(fdc_food, Mapping):
        return None

    nutrients: Dict[str, float] = {}
    for food_nutrient in fdc_food.get("foodNutrients") or []:
        if not isinstance(food_nutrient, Mapping):
            continue
        key = _nutrient_key(food_nutrient)
        if key is None:
            continue
        amount = food_nutrient.get("amount", food_nutrient.get("value"))
        nutrients[key] = amount or 0

    return {
        "id": fdc_food.get("fdcId"),
        "description": fdc_food.get("description") or "",
        "brand": fdc_food.get("brandOwner") or fdc_food.get("brandName"),
        "ingredients": fdc_food.get("ingredients"),
        "nutrients": nutrients,
    }
