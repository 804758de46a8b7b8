"""
Plain value types shared by the engine modules
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


SOURCE_TEMPLATE = "template"
SOURCE_USDA = "usda"
SOURCE_COMMUNITY = "community"
SOURCE_FDC_LIVE = "fdc-live"

VERIFIED = "verified"
UNVERIFIED = "unverified"
SUSPECT = "suspect"


@dataclass(frozen=True)
class Macros:
	kcal: float
	protein: float
	carbs: float
	fat: float

	def as_tuple(self) -> Tuple[float, float, float, float]:
		return (self.kcal, self.protein, self.carbs, self.fat)


@dataclass(frozen=True)
class ServingOption:
	label: str
	grams: float

	def to_dict(self) -> Dict[str, Any]:
		return {"label": self.label, "grams": self.grams}


@dataclass(frozen=True)
class RawNutritionRow:
	"""Validated bulk row, the only input shape the normalizer accepts"""
	id: Optional[str]
	description: str
	brand: Optional[str]
	ingredients: Optional[str]
	kcal: float = 0.0
	protein: float = 0.0
	carbs: float = 0.0
	fat: float = 0.0
	fiber: float = 0.0
	sugar: float = 0.0


@dataclass(frozen=True)
class PerHundredGram:
	name: str
	brand: Optional[str]
	category_id: Optional[str]
	density_gml: Optional[float]
	kcal100: float
	protein100: float
	carbs100: float
	fat100: float
	fiber100: Optional[float] = None
	sugar100: Optional[float] = None

	@property
	def macros(self) -> Macros:
		return Macros(self.kcal100, self.protein100, self.carbs100, self.fat100)


@dataclass(frozen=True)
class FoodRecord:
	"""Read-only view of a stored food"""
	id: int
	name: str
	brand: Optional[str]
	source: str
	verification: str
	density_gml: Optional[float]
	category_id: Optional[str]
	kcal100: float
	protein100: float
	carbs100: float
	fat100: float
	fiber100: Optional[float] = None
	sugar100: Optional[float] = None
	popularity: int = 0
	external_id: Optional[str] = None
	serving_options: Tuple[ServingOption, ...] = ()

	@property
	def macros(self) -> Macros:
		return Macros(self.kcal100, self.protein100, self.carbs100, self.fat100)


@dataclass(frozen=True)
class ExternalFoodRecord:
	external_id: str
	name: str
	brand: Optional[str]
	source: str
	per100g: PerHundredGram


@dataclass(frozen=True)
class ParsedIngredientLine:
	qty: float
	unit: Optional[str]
	name: str
	raw_unit: Optional[str] = None
	multiplier: float = 1.0


@dataclass(frozen=True)
class ExpandedQuery:
	original: str
	no_brand: str
	bigrams: Tuple[str, ...]
	tokens: Tuple[str, ...]


@dataclass(frozen=True)
class RankedCandidate:
	food: FoodRecord
	score: float
	confidence: float


@dataclass
class ImportResult:
	created: int = 0
	skipped: int = 0
	errors: int = 0
	cancelled: bool = False

	def add(self, other: "ImportResult") -> None:
		self.created += other.created
		self.skipped += other.skipped
		self.errors += other.errors

	def to_dict(self) -> Dict[str, Any]:
		return {
			"created": self.created,
			"skipped": self.skipped,
			"errors": self.errors,
			"cancelled": self.cancelled,
		}


@dataclass(frozen=True)
class SearchResult:
	candidates: Tuple[RankedCandidate, ...]
	local: int
	external: int

	@property
	def total(self) -> int:
		return len(self.candidates)


@dataclass(frozen=True)
class GramsResolution:
	grams: Optional[float]
	used_fallback: bool

	def to_dict(self) -> Dict[str, Any]:
		return {"grams": self.grams, "usedFallback": self.used_fallback}
