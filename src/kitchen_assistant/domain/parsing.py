"""
parsing.py

Purpose:
    Deterministic text helpers for community dataset rows, whose ingredients
    and steps are free-text blobs with no stable schema.

    - parse_ingredient_text / parse_step_text: blob -> list of lines
    - estimate_difficulty / estimate_times: rough effort from list sizes
    - extract_tags / extract_semantic_tags: keyword tags from title + ingredients
    - preprocess_text: normalisation applied before embedding
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from kitchen_assistant.domain.schema import Difficulty

MAX_INGREDIENT_LINES = 20
MAX_STEP_LINES = 15
MAX_TAGS = 5

_INGREDIENT_SPLIT = re.compile(r"[,\n\r•\-*]")
_STEP_SPLIT = re.compile(r"[.\n\r]")


def parse_ingredient_text(blob: Optional[str]) -> List[str]:
    """Split an ingredients blob on `, newline bullet - *`; keep short, non-empty lines."""
    if not isinstance(blob, str) or not blob:
        return []
    out: List[str] = []
    for part in _INGREDIENT_SPLIT.split(blob):
        part = part.strip()
        if 0 < len(part) < 100:
            out.append(part)
    return out[:MAX_INGREDIENT_LINES]


def parse_step_text(blob: Optional[str]) -> List[str]:
    """Split a steps blob on `. newline`; very short fragments are dropped."""
    if not isinstance(blob, str) or not blob:
        return []
    out = [p.strip() for p in _STEP_SPLIT.split(blob)]
    return [p for p in out if len(p) > 10][:MAX_STEP_LINES]


def estimate_difficulty(ingredient_count: int, step_count: int) -> Difficulty:
    complexity = ingredient_count + step_count * 1.5
    if complexity <= 10:
        return Difficulty.EASY
    if complexity <= 20:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def estimate_times(ingredient_count: int, step_count: int, minutes_per_step: int = 5) -> Tuple[int, int]:
    """(prep_minutes, cook_minutes) estimated from list sizes."""
    prep = _clamp(ingredient_count * 2, 10, 30)
    cook = _clamp(step_count * minutes_per_step, 15, 60)
    return prep, cook


# (tag, title keywords, ingredient keywords)
_KEYWORD_TAGS: List[Tuple[str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("nasi", ("nasi", "rice"), ()),
    ("ayam", ("ayam",), ("ayam",)),
    ("ikan", ("ikan",), ("ikan",)),
    ("sayuran", ("sayur",), ("sayur",)),
    ("berkuah", ("sup", "soto"), ()),
    ("goreng", ("goreng",), ()),
    ("bakar", ("bakar",), ()),
    ("tumis", ("tumis",), ()),
    ("sarapan", ("sarapan", "breakfast"), ()),
    ("makan-siang", ("makan siang", "lunch"), ()),
    ("makan-malam", ("makan malam", "dinner"), ()),
    ("pedas", ("pedas",), ("cabai",)),
    ("manis", ("manis",), ()),
    ("sehat", ("sehat", "diet"), ()),
]


def extract_tags(title: Optional[str], ingredients_blob: Optional[str]) -> List[str]:
    title_l = (title or "").lower()
    ing_l = (ingredients_blob or "").lower()
    tags: List[str] = []
    for tag, title_words, ing_words in _KEYWORD_TAGS:
        if any(w in title_l for w in title_words) or any(w in ing_l for w in ing_words):
            tags.append(tag)
    return tags[:MAX_TAGS]


_CUISINE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "indonesia": ("nasi", "ayam", "sambal", "rendang", "gudeg", "soto"),
    "asia": ("mie", "tahu", "tempe", "kecap"),
    "western": ("pasta", "cheese", "bread", "butter"),
    "healthy": ("sayur", "buah", "diet", "sehat", "rendah"),
}
_COOKING_METHODS = ("goreng", "bakar", "rebus", "tumis", "kukus", "panggang")


def extract_semantic_tags(title: Optional[str], ingredients_blob: Optional[str], similarity: float) -> List[str]:
    """Tags for vector-search hits: relevance band, cuisine, cooking method."""
    title_l = (title or "").lower()
    ing_l = (ingredients_blob or "").lower()
    tags: List[str] = []

    if similarity >= 0.7:
        tags.append("sangat-relevan")
    elif similarity >= 0.5:
        tags.append("relevan")

    for cuisine, words in _CUISINE_KEYWORDS.items():
        if any(w in title_l or w in ing_l for w in words):
            tags.append(cuisine)

    for method in _COOKING_METHODS:
        if method in title_l:
            tags.append(method)

    return tags[:MAX_TAGS]


def preprocess_text(text: Optional[str], max_len: int = 1000) -> str:
    """Lower-case, punctuation -> space, collapse whitespace, truncate."""
    if not isinstance(text, str):
        return ""
    t = text.lower()
    t = re.sub(r"[^\w\s]", " ", t)
    t = re.sub(r"\s+", " ", t)
    return t.strip()[:max_len]
