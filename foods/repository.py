"""
Django ORM persistence for the food matching engine

The engine modules only see FoodRecord values; this module is the one
place that knows about Food, FoodAlias and FoodUnit rows.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q

from .config import DedupeConfig, ImportConfig
from .exceptions import PersistenceWriteError
from .identity import canonicalize_name, macro_fingerprint
from .models import Food, FoodAlias, FoodUnit
from .types import (
    SOURCE_FDC_LIVE,
    UNVERIFIED,
    FoodRecord,
    Macros,
    PerHundredGram,
    ServingOption,
)

logger = logging.getLogger(__name__)


def _decimal(value: Optional[float], places: int = 2) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(round(value, places)))


def _float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def to_record(food: Food) -> FoodRecord:
    """Read-only view of a Food row, serving options in stored order"""
    units = tuple(ServingOption(unit.label, float(unit.grams)) for unit in food.units.all())
    return FoodRecord(
        id=food.id,
        name=food.name,
        brand=food.brand,
        source=food.source,
        verification=food.verification,
        density_gml=_float(food.density_gml),
        category_id=food.category_id,
        kcal100=float(food.calories_per_100g),
        protein100=float(food.protein_per_100g),
        carbs100=float(food.carbs_per_100g),
        fat100=float(food.fat_per_100g),
        fiber100=_float(food.fiber_per_100g),
        sugar100=_float(food.sugar_per_100g),
        popularity=food.popularity,
        external_id=food.usda_fdc_id,
        serving_options=units,
    )


class FoodRepository:
    """Queries and writes used by the importer and the search engine"""

    def __init__(
        self,
        dedupe_config: Optional[DedupeConfig] = None,
        import_config: Optional[ImportConfig] = None,
    ):
        self.dedupe_config = dedupe_config or DedupeConfig()
        self.import_config = import_config or ImportConfig()

    def _queryset(self):
        return Food.objects.prefetch_related("units")

    def _nutrient_fields(self, per100g: PerHundredGram) -> dict:
        return {
            "calories_per_100g": _decimal(per100g.kcal100),
            "protein_per_100g": _decimal(per100g.protein100),
            "carbs_per_100g": _decimal(per100g.carbs100),
            "fat_per_100g": _decimal(per100g.fat100),
            "fiber_per_100g": _decimal(per100g.fiber100),
            "sugar_per_100g": _decimal(per100g.sugar100),
            "macro_fingerprint": macro_fingerprint(
                per100g.kcal100,
                per100g.protein100,
                per100g.carbs100,
                per100g.fat100,
                self.dedupe_config,
            ),
        }

    def find_by_exact_name_or_macro_range(
        self, name: str, macros: Macros, source: str
    ) -> Optional[FoodRecord]:
        """
        Import-time duplicate lookup within one source

        Matches a case-insensitive canonical name, or all four macros
        inside the configured tolerance window.
        """
        kcal_tol = self.import_config.kcal_tolerance
        macro_tol = self.import_config.macro_tolerance
        in_range = Q(
            calories_per_100g__gte=_decimal(macros.kcal - kcal_tol),
            calories_per_100g__lte=_decimal(macros.kcal + kcal_tol),
            protein_per_100g__gte=_decimal(macros.protein - macro_tol),
            protein_per_100g__lte=_decimal(macros.protein + macro_tol),
            carbs_per_100g__gte=_decimal(macros.carbs - macro_tol),
            carbs_per_100g__lte=_decimal(macros.carbs + macro_tol),
            fat_per_100g__gte=_decimal(macros.fat - macro_tol),
            fat_per_100g__lte=_decimal(macros.fat + macro_tol),
        )
        query = Q(canonical_name__iexact=canonicalize_name(name)) | in_range
        food = self._queryset().filter(query, source=source).order_by("id").first()
        return to_record(food) if food else None

    def find_by_substring(
        self, text: str, limit: int, fields: Sequence[str] = ("name", "brand")
    ) -> List[FoodRecord]:
        """Case-insensitive substring match over any of `fields`"""
        query = Q()
        for field in fields:
            query |= Q(**{f"{field}__icontains": text})
        foods = self._queryset().filter(query).order_by("-popularity", "id")[:limit]
        return [to_record(food) for food in foods]

    def find_by_fingerprint(self, fingerprint: str) -> List[FoodRecord]:
        foods = self._queryset().filter(macro_fingerprint=fingerprint).order_by("id")
        return [to_record(food) for food in foods]

    def find_by_external_id(self, external_id: str) -> Optional[FoodRecord]:
        food = self._queryset().filter(usda_fdc_id=str(external_id)).first()
        return to_record(food) if food else None

    def create_food_record(
        self,
        per100g: PerHundredGram,
        source: str,
        verification: str = UNVERIFIED,
        popularity: int = 0,
        external_id: Optional[str] = None,
    ) -> FoodRecord:
        with transaction.atomic():
            food = Food.objects.create(
                name=per100g.name,
                canonical_name=canonicalize_name(per100g.name),
                brand=per100g.brand,
                source=source,
                verification=verification,
                category_id=per100g.category_id,
                density_gml=_decimal(per100g.density_gml, 3),
                popularity=popularity,
                usda_fdc_id=str(external_id) if external_id is not None else None,
                **self._nutrient_fields(per100g),
            )
        return to_record(food)

    def create_alias(self, food_id: int, alias: str) -> None:
        """Store one alias; PersistenceWriteError on failure"""
        try:
            with transaction.atomic():
                FoodAlias.objects.create(food_id=food_id, alias=alias)
        except IntegrityError as e:
            raise PersistenceWriteError(
                f"Alias {alias!r} already exists for food {food_id}", unique_violation=True
            ) from e
        except DatabaseError as e:
            raise PersistenceWriteError(f"Could not store alias {alias!r}: {e}") from e

    def create_serving_option(self, food_id: int, label: str, grams: float) -> None:
        """Store one serving option; PersistenceWriteError on failure"""
        try:
            with transaction.atomic():
                FoodUnit.objects.create(food_id=food_id, label=label, grams=_decimal(grams))
        except IntegrityError as e:
            raise PersistenceWriteError(
                f"Unit {label!r} already exists for food {food_id}", unique_violation=True
            ) from e
        except DatabaseError as e:
            raise PersistenceWriteError(f"Could not store unit {label!r}: {e}") from e

    def upsert_external_record(
        self, external_id: str, per100g: PerHundredGram, source: str = SOURCE_FDC_LIVE
    ) -> Tuple[FoodRecord, bool]:
        """
        Refresh nutrients of the record with this external id, or create it

        Returns the record and whether it was created.
        """
        with transaction.atomic():
            food = Food.objects.filter(usda_fdc_id=str(external_id)).first()
            if food is None:
                record = self.create_food_record(per100g, source=source, external_id=external_id)
                return record, True

            for field, value in self._nutrient_fields(per100g).items():
                setattr(food, field, value)
            food.save()
        return to_record(food), False

    def get_serving_options(self, food_id: int) -> List[ServingOption]:
        units: Iterable[FoodUnit] = FoodUnit.objects.filter(food_id=food_id).order_by("id")
        return [ServingOption(unit.label, float(unit.grams)) for unit in units]
