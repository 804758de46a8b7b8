"""
Food search: query expansion, multi-variant lookup, scoring and backfill

A query is expanded into several search strings (the normalized query,
the query without brand phrases, every adjacent token pair). Each one is
looked up locally, the hits are merged by id and ranked. When the local
catalog has too few hits the external FoodData Central search is used to
backfill it, and the local search runs again.
"""

import logging
import re
from functools import reduce
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from django.db import DatabaseError
from rapidfuzz.distance import Levenshtein

from foodmatch.logging_utils import log_event

from .config import MatchingConfig, SearchConfig, get_matching_config
from .exceptions import QueryValidationError
from .grams import derive_serving_options
from .identity import is_likely_duplicate, macro_fingerprint
from .repository import FoodRepository
from .types import (
    ExpandedQuery,
    ExternalFoodRecord,
    FoodRecord,
    RankedCandidate,
    SearchResult,
)

logger = logging.getLogger(__name__)

STOPWORDS = frozenset(
    [
        "the",
        "brand",
        "original",
        "classic",
        "natural",
        "organic",
        "fresh",
        "premium",
        "select",
        "choice",
        "best",
        "new",
        "improved",
        "light",
        "low",
        "fat",
        "free",
        "sugar",
        "diet",
        "zero",
        "calorie",
    ]
)

# Multi-word brand names, tokenized the same way as queries
BRAND_PHRASES = (
    ("trader", "joes"),
    ("great", "value"),
    ("kirkland", "signature"),
    ("whole", "foods"),
    ("market", "pantry"),
    ("good", "gather"),
    ("nature", "valley"),
    ("bobs", "red", "mill"),
    ("king", "arthur"),
    ("land", "o", "lakes"),
    ("ben", "jerrys"),
    ("simply", "balanced"),
    ("365", "everyday", "value"),
    ("private", "selection"),
)

_PUNCTUATION = re.compile(r"[^\w\s-]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

MergedCandidates = Mapping[int, FoodRecord]


def _tokenize(text: str) -> List[str]:
    return [token for token in _PUNCTUATION.sub("", text).split() if token not in STOPWORDS]


def _remove_brand_phrases(tokens: Sequence[str], phrases: Iterable[Tuple[str, ...]] = BRAND_PHRASES) -> List[str]:
    phrases = sorted(phrases, key=len, reverse=True)
    kept = []
    i = 0
    while i < len(tokens):
        for phrase in phrases:
            if tuple(tokens[i : i + len(phrase)]) == phrase:
                i += len(phrase)
                break
        else:
            kept.append(tokens[i])
            i += 1
    return kept


def expand_query(query: str) -> ExpandedQuery:
    """Normalized query, brand-free variant and adjacent token pairs"""
    original = query.strip().lower()
    tokens = _tokenize(original)
    no_brand = " ".join(_remove_brand_phrases(tokens))
    bigrams = tuple(f"{a} {b}" for a, b in zip(tokens, tokens[1:]))
    return ExpandedQuery(
        original=original,
        no_brand=no_brand,
        bigrams=bigrams,
        tokens=tuple(tokens),
    )


def search_variants(expanded: ExpandedQuery) -> List[str]:
    """Search strings in lookup order, without repeats"""
    variants = [expanded.original]
    if expanded.no_brand and expanded.no_brand != expanded.original:
        variants.append(expanded.no_brand)
    variants.extend(expanded.bigrams)
    return list(dict.fromkeys(variant for variant in variants if variant))


def _alnum(text: str) -> str:
    return _NON_ALNUM.sub("", text.lower())


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance over the alphanumeric-only lowercase forms"""
    return Levenshtein.distance(_alnum(a), _alnum(b))


def calculate_score(
    candidate: FoodRecord,
    expanded: ExpandedQuery,
    config: Optional[SearchConfig] = None,
) -> float:
    config = config or SearchConfig()
    name = candidate.name.lower()
    brand = (candidate.brand or "").lower()
    score = 0.0

    if brand and brand in expanded.original:
        score += config.brand_weight

    if any(bigram in name for bigram in expanded.bigrams):
        score += config.bigram_weight

    if expanded.tokens and name.startswith(expanded.tokens[0]):
        score += config.prefix_weight

    haystack = f"{name} {brand}"
    coverage_tokens = [token for token in expanded.tokens if len(token) > 1]
    if coverage_tokens and all(token in haystack for token in coverage_tokens):
        score += config.coverage_weight

    distance = edit_distance(expanded.original, candidate.name)
    score -= config.edit_distance_weight * min(distance / config.edit_distance_cap, 1)

    return max(score, 0.0)


def max_score(config: Optional[SearchConfig] = None) -> float:
    config = config or SearchConfig()
    return config.brand_weight + config.bigram_weight + config.prefix_weight + config.coverage_weight


def merge_candidates(acc: MergedCandidates, batch: Iterable[FoodRecord]) -> MergedCandidates:
    """Add unseen ids to the accumulator; earlier records win"""
    return {**acc, **{food.id: food for food in batch if food.id not in acc}}


def candidate_to_dict(candidate: RankedCandidate) -> Dict[str, Any]:
    food = candidate.food
    serving_options = derive_serving_options(food.serving_options, food.density_gml, food.category_id)
    return {
        "id": food.id,
        "name": food.name,
        "brand": food.brand,
        "source": food.source,
        "verification": food.verification,
        "categoryId": food.category_id,
        "densityGml": food.density_gml,
        "kcal100": food.kcal100,
        "protein100": food.protein100,
        "carbs100": food.carbs100,
        "fat100": food.fat100,
        "fiber100": food.fiber100,
        "sugar100": food.sugar100,
        "popularity": food.popularity,
        "score": round(candidate.score, 4),
        "confidence": round(candidate.confidence, 4),
        "servingOptions": [option.to_dict() for option in serving_options],
    }


class FoodSearchEngine:
    """Ranked food search over the local catalog with external backfill"""

    def __init__(
        self,
        repository: Optional[FoodRepository] = None,
        external_client=None,
        config: Optional[MatchingConfig] = None,
        use_external: bool = True,
    ):
        self.config = config or get_matching_config()
        self.repository = repository or FoodRepository(self.config.dedupe, self.config.imports)
        if external_client is None and use_external:
            from .usda_service import get_usda_service

            service = get_usda_service()
            external_client = service if service.is_available() else None
        self.external_client = external_client if use_external else None

    def search(self, query: str) -> SearchResult:
        """
        Top ranked candidates for a free-text query

        Raises QueryValidationError for queries shorter than the minimum
        length. External failures never propagate.
        """
        search_config = self.config.search
        if query is None or len(query.strip()) < search_config.min_query_length:
            raise QueryValidationError(
                f"Query must be at least {search_config.min_query_length} characters"
            )

        expanded = expand_query(query)
        local = self._search_local(expanded)
        ranked = self._rank(local.values(), expanded)
        external_count = 0

        if len(local) < search_config.result_limit and self.external_client is not None:
            # Any backfill failure leaves the local ranking in place
            try:
                external = self.external_client.search_by_text(query)
                received = self._backfill(external)
                reranked = self._rank(self._search_local(expanded).values(), expanded)
            except Exception as e:
                log_event(
                    logger,
                    logging.WARNING,
                    "food_search_backfill_failed",
                    q=query,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            else:
                external_count = received
                ranked = reranked

        result = SearchResult(
            candidates=tuple(ranked[: search_config.result_limit]),
            local=len(local),
            external=external_count,
        )

        top = result.candidates[0] if result.candidates else None
        log_event(
            logger,
            logging.INFO,
            "mapping_v2",
            q=query,
            resultCount=result.total,
            topId=top.food.id if top else None,
            topConfidence=round(top.confidence, 4) if top else None,
        )
        return result

    def _search_local(self, expanded: ExpandedQuery) -> MergedCandidates:
        limit = self.config.search.per_variant_limit
        batches = (
            self.repository.find_by_substring(variant, limit, fields=("name", "brand"))
            for variant in search_variants(expanded)
        )
        return reduce(merge_candidates, batches, {})

    def _rank(self, candidates: Iterable[FoodRecord], expanded: ExpandedQuery) -> List[RankedCandidate]:
        search_config = self.config.search
        top_score = max_score(search_config)
        ranked = []
        for food in candidates:
            score = calculate_score(food, expanded, search_config)
            confidence = min(max(score / top_score, 0.0), 1.0) if top_score > 0 else 0.0
            ranked.append(RankedCandidate(food=food, score=score, confidence=confidence))
        # sorted() is stable, ties keep merge order
        return sorted(ranked, key=lambda candidate: -candidate.score)

    def _is_known_duplicate(self, record: ExternalFoodRecord) -> bool:
        per100g = record.per100g
        fingerprint = macro_fingerprint(
            per100g.kcal100,
            per100g.protein100,
            per100g.carbs100,
            per100g.fat100,
            self.config.dedupe,
        )
        return any(
            is_likely_duplicate(record.name, existing.name, per100g.macros, existing.macros, self.config.dedupe)
            for existing in self.repository.find_by_fingerprint(fingerprint)
        )

    def _backfill(self, records: Sequence[ExternalFoodRecord]) -> int:
        """Upsert external records; returns how many were received"""
        created = 0
        for record in records:
            if self.repository.find_by_external_id(record.external_id) is None and self._is_known_duplicate(record):
                logger.debug(f"External food {record.external_id} duplicates a stored food, not storing it")
                continue
            try:
                _, was_created = self.repository.upsert_external_record(
                    record.external_id, record.per100g, record.source
                )
            except DatabaseError as e:
                logger.warning(f"Could not store external food {record.external_id}: {e}")
                continue
            created += int(was_created)

        log_event(logger, logging.INFO, "food_search_backfill", received=len(records), created=created)
        return len(records)


def search_foods(query: str, engine: Optional[FoodSearchEngine] = None) -> Dict[str, Any]:
    """Search response payload: ranked items plus provenance counters"""
    engine = engine or FoodSearchEngine()
    result = engine.search(query)
    return {
        "success": True,
        "data": [candidate_to_dict(candidate) for candidate in result.candidates],
        "sources": {
            "local": result.local,
            "external": result.external,
            "total": result.total,
        },
    }
