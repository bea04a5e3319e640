"""
scorer.py

Purpose:
    Ingredient overlap score between a recipe and the user's pantry.

    For every recipe ingredient:
      - exact / substring / synonym match against any pantry name  -> 1.0
      - otherwise a pantry word (> 2 chars) inside the recipe name -> 0.5
    score = weighted matches / recipe ingredient count, capped at 1.0.

Notes:
    - Lower-casing is the only normalisation. Substrings can false-positive
      ("telur" inside a longer word); that is accepted.
    - Never raises. An empty recipe list scores 0.0.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

PARTIAL_WEIGHT = 0.5
MAX_REASON_ITEMS = 3

# Indonesian key -> English / alternate spellings
SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "ayam": ("chicken", "daging ayam"),
    "bawang": ("onion", "bawang bombay"),
    "tomat": ("tomato",),
    "cabai": ("chili", "cabe"),
    "garam": ("salt",),
    "gula": ("sugar",),
    "minyak": ("oil", "olive oil"),
    "beras": ("rice", "nasi"),
}


@dataclass
class MatchResult:
    score: float = 0.0
    reasons: List[str] = field(default_factory=list)
    matched: List[str] = field(default_factory=list)


def _normalize(names: Iterable[str]) -> List[str]:
    out: List[str] = []
    for n in names or []:
        if not isinstance(n, str):
            continue
        n = n.strip().lower()
        if n:
            out.append(n)
    return out


def _mentions(text: str, key: str, variants: Tuple[str, ...]) -> bool:
    return key in text or any(v in text for v in variants)


def is_similar_ingredient(a: str, b: str) -> bool:
    """True when both names fall in the same synonym group."""
    a = (a or "").lower()
    b = (b or "").lower()
    if not a or not b:
        return False
    for key, variants in SYNONYMS.items():
        if _mentions(a, key, variants) and _mentions(b, key, variants):
            return True
    return False


def _is_full_match(recipe_ing: str, available: str) -> bool:
    return (
        available == recipe_ing
        or available in recipe_ing
        or recipe_ing in available
        or is_similar_ingredient(available, recipe_ing)
    )


def _is_partial_match(recipe_ing: str, available: str) -> bool:
    return any(len(word) > 2 and word in recipe_ing for word in available.split())


def score_match(recipe_ingredient_names: Iterable[str], available_names: Iterable[str]) -> MatchResult:
    recipe_names = _normalize(recipe_ingredient_names)
    pantry = _normalize(available_names)
    if not recipe_names:
        return MatchResult()

    full = 0
    partial = 0
    matched: List[str] = []
    for ing in recipe_names:
        if any(_is_full_match(ing, a) for a in pantry):
            full += 1
            matched.append(ing)
        elif any(_is_partial_match(ing, a) for a in pantry):
            partial += 1

    score = min((full + partial * PARTIAL_WEIGHT) / len(recipe_names), 1.0)

    reasons: List[str] = []
    if matched:
        reasons.append("Uses your ingredients: " + ", ".join(matched[:MAX_REASON_ITEMS]))
    if partial:
        reasons.append(f"Partially matches {partial} more ingredient(s)")

    return MatchResult(score=score, reasons=reasons, matched=matched)
