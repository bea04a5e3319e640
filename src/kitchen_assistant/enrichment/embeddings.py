"""
embeddings.py

Purpose:
    Provide EmbeddingService.embed(text) -> list[float] (384 dims) that can be:
      - sent to the vector RPCs (find_similar_recipes / search_recipes_by_text)
      - stored in recipe_embeddings by the sync script

Design:
  - This module is "best effort":
      * Call the `generate-embedding` serverless function.
      * If that fails (network, bad payload, wrong size) fall back to a
        deterministic word-hash embedding so similarity math still runs.
  - The fallback is low quality and is logged at WARNING every time.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from kitchen_assistant.domain.parsing import preprocess_text
from kitchen_assistant.domain.schema import Ingredient
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("embeddings")

MODULE_PURPOSE = "Text embeddings via serverless function with hash fallback"

EMBEDDING_DIM = 384
EMBEDDING_FUNCTION = "generate-embedding"
MAX_RECIPE_CONTENT = 2000


def _java_string_hash(s: str) -> int:
    """31-based 32-bit signed string hash."""
    h = 0
    for ch in s:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def hash_embedding(text: str, dim: int = EMBEDDING_DIM) -> List[float]:
    """Deterministic pseudo-embedding: hashed words weighted by 1/(position+1)."""
    vec = [0.0] * dim
    for index, word in enumerate((text or "").lower().split()):
        if len(word) > 2:
            vec[abs(_java_string_hash(word)) % dim] += 1.0 / (index + 1)

    norm = math.sqrt(sum(v * v for v in vec))
    if norm > 0:
        return [v / norm for v in vec]
    return vec


def recipe_content(row: Dict[str, Any]) -> str:
    """Searchable text for a dataset row: title + ingredients + steps."""
    parts = [row.get("title") or "", row.get("ingredients") or "", row.get("steps") or ""]
    return " ".join(p for p in parts if p)[:MAX_RECIPE_CONTENT]


def query_content(ingredients: Iterable[Ingredient]) -> str:
    """Query text for a pantry: ingredient names followed by categories."""
    items = list(ingredients)
    names = " ".join(i.name for i in items if i.name)
    categories = " ".join(i.category for i in items if i.category)
    return f"{names} {categories}".strip()


class EmbeddingService:
    def __init__(self, client: Client, dim: int = EMBEDDING_DIM) -> None:
        self.client = client
        self.dim = dim

    def _parse_response(self, res: Any) -> Optional[List[float]]:
        if isinstance(res, (bytes, bytearray)):
            res = res.decode("utf-8")
        if isinstance(res, str):
            res = json.loads(res)
        if not isinstance(res, dict):
            return None
        vec = res.get("embedding")
        if not isinstance(vec, list) or len(vec) != self.dim:
            return None
        return [float(x) for x in vec]

    def embed(self, text: str) -> List[float]:
        clean = preprocess_text(text)
        try:
            res = self.client.functions.invoke(EMBEDDING_FUNCTION, invoke_options={"body": {"text": clean}})
            vec = self._parse_response(res)
            if vec is None:
                raise ValueError(f"expected a {self.dim}-dim 'embedding' list")
            return vec
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Embedding function failed, using hash fallback: %s",
                exc,
                extra={
                    "invoking_func": "EmbeddingService.embed",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue with degraded hash embedding",
                    "resolution": "Deploy / check the generate-embedding function",
                },
            )
            return hash_embedding(clean, self.dim)
