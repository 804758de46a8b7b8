"""
Food identity resolution

Comparable keys for food names and macro profiles, and the heuristics
that decide whether two records describe the same food.
"""

import hashlib
import math
import re
from typing import Optional, Set

from .config import DedupeConfig
from .types import Macros

DEFAULT_DEDUPE = DedupeConfig()

_PARENTHETICAL = re.compile(r"\(.*?\)", re.DOTALL)
_SEPARATORS = re.compile(r"[,.\-]")
_WHITESPACE = re.compile(r"\s+")

RAW_VARIANTS = ("raw", "uncooked", "fresh")
COOKED_VARIANTS = ("cooked", "boiled", "steamed", "roasted")


def canonicalize_name(name: str) -> str:
    """Lowercase, drop parentheticals and punctuation, collapse whitespace"""
    text = _PARENTHETICAL.sub("", name.lower())
    text = _SEPARATORS.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def _bucket(value: float, size: float) -> int:
    # Round half up so bucket edges do not depend on banker's rounding
    return math.floor(value / size + 0.5)


def macro_fingerprint(
    kcal: float,
    protein: float,
    carbs: float,
    fat: float,
    config: DedupeConfig = DEFAULT_DEDUPE,
) -> str:
    """
    Coarse bucket key for a macro profile

    Not unique: different foods with similar macros share a fingerprint.
    Only used to narrow duplicate candidates.
    """
    key = "|".join(
        str(b)
        for b in (
            _bucket(kcal, config.kcal_bucket),
            _bucket(protein, config.protein_bucket),
            _bucket(carbs, config.carbs_bucket),
            _bucket(fat, config.fat_bucket),
        )
    )
    return hashlib.md5(key.encode("utf-8")).hexdigest()[: config.fingerprint_length]


def name_similarity(canonical_a: str, canonical_b: str) -> float:
    """Jaccard similarity of the word sets of two canonical names"""
    words_a = set(canonical_a.split(" "))
    words_b = set(canonical_b.split(" "))
    union = words_a | words_b
    if not union:
        return 1.0
    return len(words_a & words_b) / len(union)


def _relative_diff(a: float, b: float) -> float:
    return abs(a - b) / max(a, b, 1)


def nutrition_similarity(macros_a: Macros, macros_b: Macros) -> float:
    """1 minus the mean relative difference over kcal, protein, carbs, fat"""
    diffs = [_relative_diff(a, b) for a, b in zip(macros_a.as_tuple(), macros_b.as_tuple())]
    return 1 - sum(diffs) / len(diffs)


def is_likely_duplicate(
    name_a: str,
    name_b: str,
    macros_a: Macros,
    macros_b: Macros,
    config: DedupeConfig = DEFAULT_DEDUPE,
) -> bool:
    canonical_a = canonicalize_name(name_a)
    canonical_b = canonicalize_name(name_b)
    if canonical_a == canonical_b:
        return True

    return (
        name_similarity(canonical_a, canonical_b) > config.name_similarity_threshold
        and nutrition_similarity(macros_a, macros_b) > config.nutrition_similarity_threshold
    )


def generate_aliases(name: str, config: Optional[DedupeConfig] = None) -> Set[str]:
    """Lookup strings for a food: canonical form, plural flips, raw/cooked variants"""
    config = config or DEFAULT_DEDUPE
    lowered = name.lower()
    aliases = {canonicalize_name(name), lowered}

    words = lowered.split()
    for i, word in enumerate(words):
        if word.endswith("s"):
            if len(word) <= 3:
                continue
            replacement = word[:-1]
        else:
            replacement = word + "s"
        aliases.add(" ".join(words[:i] + [replacement] + words[i + 1 :]))

    for variant in RAW_VARIANTS + COOKED_VARIANTS:
        if variant not in lowered:
            aliases.add(f"{lowered} {variant}")

    return {alias for alias in aliases if len(alias) >= config.min_alias_length}
