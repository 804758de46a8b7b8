"""
Tunable heuristics for food matching

Defaults are calibration values; any field can be overridden from Django
settings, e.g.

	FOOD_MATCHING = {
		"dedupe": {"name_similarity_threshold": 0.75},
		"search": {"result_limit": 20},
	}
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict

from django.conf import settings


@dataclass(frozen=True)
class DedupeConfig:
	"""Identity resolution constants"""
	kcal_bucket: float = 5.0
	protein_bucket: float = 1.0
	carbs_bucket: float = 1.0
	fat_bucket: float = 1.0
	fingerprint_length: int = 10
	name_similarity_threshold: float = 0.8
	nutrition_similarity_threshold: float = 0.9
	min_alias_length: int = 3


@dataclass(frozen=True)
class ImportConfig:
	"""Bulk import constants"""
	batch_size: int = 100
	progress_every_batches: int = 10
	# Macro window used by the import-time duplicate query
	kcal_tolerance: float = 5.0
	macro_tolerance: float = 2.0
	popularity: int = 1


@dataclass(frozen=True)
class SearchConfig:
	"""Query expansion and ranking constants"""
	min_query_length: int = 2
	per_variant_limit: int = 20
	result_limit: int = 10
	brand_weight: float = 3.0
	bigram_weight: float = 2.0
	prefix_weight: float = 1.5
	coverage_weight: float = 1.0
	edit_distance_weight: float = 0.5
	edit_distance_cap: float = 10.0


@dataclass(frozen=True)
class MatchingConfig:
	dedupe: DedupeConfig = field(default_factory=DedupeConfig)
	imports: ImportConfig = field(default_factory=ImportConfig)
	search: SearchConfig = field(default_factory=SearchConfig)


_SECTIONS = {"dedupe": "dedupe", "import": "imports", "imports": "imports", "search": "search"}


def _apply_overrides(section, overrides: Dict[str, Any]):
	known = {f.name for f in fields(section)}
	unknown = set(overrides) - known
	if unknown:
		raise ValueError(f"Unknown FOOD_MATCHING keys for {type(section).__name__}: {sorted(unknown)}")
	return replace(section, **overrides)


def get_matching_config() -> MatchingConfig:
	"""Build the active config from defaults plus settings.FOOD_MATCHING"""
	overrides = getattr(settings, "FOOD_MATCHING", None) or {}
	config = MatchingConfig()
	for key, values in overrides.items():
		attr = _SECTIONS.get(key)
		if attr is None:
			raise ValueError(f"Unknown FOOD_MATCHING section: {key}")
		config = replace(config, **{attr: _apply_overrides(getattr(config, attr), values)})
	return config
