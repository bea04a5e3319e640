"""
rag.py

Purpose:
    Retrieval-augmented recommendations over the community dataset.

    Flow for get_recommendations():
      1. pantry -> query text -> embedding (hash fallback inside EmbeddingService)
      2. `find_similar_recipes` RPC (pgvector) above a similarity threshold
      3. rank by 0.7 * similarity + 0.3 * loves / 10000
      4. optional chat-model refinement in small batches, one batch at a
         time with a fixed pause; a failed batch is kept unrefined
      5. if the RPC raises or returns nothing: plain ILIKE text search

    semantic_search() does the same for a free-text query with the
    `search_recipes_by_text` RPC and no refinement.

Note:
    Refined items are tagged RAG_AI, everything else DATASET.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from supabase import Client

from kitchen_assistant.domain.parsing import extract_semantic_tags, preprocess_text
from kitchen_assistant.domain.schema import DatasetRecipe, Ingredient, Provenance, RecipeRecommendation
from kitchen_assistant.enrichment.embeddings import EmbeddingService, query_content
from kitchen_assistant.errors import KitchenAssistantError
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.llm.generator import RecipeTextGenerator
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.recommendation.dataset import TABLE, ilike_term, popularity_reason, recipe_from_dataset
from kitchen_assistant.stores.base import run_query

logger = get_logger("rag")

MODULE_PURPOSE = "Vector-search recommendations with optional AI refinement"

INGREDIENT_RPC = "find_similar_recipes"
TEXT_RPC = "search_recipes_by_text"
MAX_REASONS = 4
MAX_FALLBACK_TERMS = 5


def ranking_score(similarity: float, loves_count: int) -> float:
    return similarity * 0.7 + (loves_count / 10000) * 0.3


def confidence_score(similarity: float, loves_count: int, ingredient_count: int, step_count: int) -> float:
    popularity = min(loves_count / 1000, 1.0)
    simplicity = max(0.0, 1 - (ingredient_count + step_count) / 20)
    return round(similarity * 0.5 + popularity * 0.3 + simplicity * 0.2, 2)


def query_terms(query: str) -> List[str]:
    """Words longer than two characters; the whole query when none are."""
    words = [w for w in preprocess_text(query).split() if len(w) > 2]
    if words:
        return words
    whole = (query or "").strip().lower()
    return [whole] if whole else []


def _similarity_reason(similarity: float) -> str:
    pct = round(similarity * 100)
    if pct >= 70:
        return f"Very close match to your ingredients ({pct}% similar)"
    if pct >= 50:
        return f"Good match to your ingredients ({pct}% similar)"
    return f"Relevant to your ingredients ({pct}% similar)"


class RAGRecommender:
    def __init__(
        self,
        client: Client,
        embeddings: EmbeddingService,
        generator: Optional[RecipeTextGenerator] = None,
        flags: Optional[FeatureFlags] = None,
        batch_size: int = 3,
        batch_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.embeddings = embeddings
        self.generator = generator
        self.flags = flags or FeatureFlags()
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def get_recommendations(
        self,
        available: Sequence[Ingredient],
        min_loves: int = 50,
        max_results: int = 12,
        min_similarity: float = 0.3,
        refine: bool = True,
    ) -> List[RecipeRecommendation]:
        if not self.flags.rag:
            return []
        query = query_content(available)
        if not query:
            return []
        user_names = [i.name.lower().strip() for i in available if i.name]

        vector = self.embeddings.embed(query)
        rows = self._call_rpc(
            INGREDIENT_RPC,
            {
                "query_embedding": vector,
                "min_loves": int(min_loves),
                "similarity_threshold": float(min_similarity),
                "match_count": int(max_results) * 2,
            },
            "RAGRecommender.get_recommendations",
        )
        if not rows:
            return self._text_fallback(user_names, max_results, "RAGRecommender.get_recommendations")

        rows.sort(
            key=lambda r: ranking_score(float(r.get("similarity_score") or 0), int(r.get("loves_count") or 0)),
            reverse=True,
        )
        recs = [self._convert(r, float(r.get("similarity_score") or 0), user_names) for r in rows[:max_results]]

        if refine and self.generator is not None and self.generator.enabled():
            self._refine(recs, user_names)
        return recs

    def semantic_search(
        self,
        query: str,
        max_results: int = 10,
        min_similarity: float = 0.4,
    ) -> List[RecipeRecommendation]:
        if not self.flags.rag or not (query or "").strip():
            return []

        vector = self.embeddings.embed(query)
        rows = self._call_rpc(
            TEXT_RPC,
            {
                "query_embedding": vector,
                "similarity_threshold": float(min_similarity),
                "match_count": int(max_results),
            },
            "RAGRecommender.semantic_search",
        )
        if not rows:
            return self._text_fallback(query_terms(query), max_results, "RAGRecommender.semantic_search")

        rows.sort(key=lambda r: float(r.get("similarity_score") or 0), reverse=True)
        return [self._convert(r, float(r.get("similarity_score") or 0), []) for r in rows[:max_results]]

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------
    def _call_rpc(self, name: str, params: Dict[str, Any], invoking_func: str) -> List[Dict[str, Any]]:
        try:
            data = self.client.rpc(name, params).execute().data
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "%s RPC failed: %s",
                name,
                exc,
                extra={
                    "invoking_func": invoking_func,
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Fall back to text search",
                    "resolution": f"Check that the {name} function and pgvector index exist",
                },
            )
            return []
        return list(data or [])

    def _text_fallback(self, terms: Sequence[str], max_results: int, invoking_func: str) -> List[RecipeRecommendation]:
        clean = [t for t in (ilike_term(x) for x in terms) if t][:MAX_FALLBACK_TERMS]
        if not clean:
            return []
        filters = ",".join(f"title.ilike.%{t}%,ingredients.ilike.%{t}%" for t in clean)

        logger.info(
            "Using text search fallback for %d term(s)",
            len(clean),
            extra={"invoking_func": invoking_func, "invoking_purpose": MODULE_PURPOSE},
        )
        rows = run_query(
            self.client.table(TABLE)
            .select("*")
            .is_("user_id", "null")
            .or_(filters)
            .order("loves_count", desc=True)
            .limit(max(max_results * 4, 20)),
            invoking_func=invoking_func,
            purpose=MODULE_PURPOSE,
            user_message="Could not get recipe recommendations.",
        )

        # Text hits have no vector score; use the share of search terms found.
        lowered = [t.lower() for t in clean]
        recs: List[RecipeRecommendation] = []
        for row in rows:
            haystack = f"{row.get('title') or ''} {row.get('ingredients') or ''}".lower()
            hits = sum(1 for t in lowered if t in haystack)
            recs.append(self._convert(row, hits / len(lowered), lowered))

        recs.sort(key=lambda r: ranking_score(r.similarity_score, r.loves_count), reverse=True)
        return recs[:max_results]

    # ------------------------------------------------------------------
    # Conversion + refinement
    # ------------------------------------------------------------------
    def _convert(self, row: Dict[str, Any], similarity: float, user_names: Sequence[str]) -> RecipeRecommendation:
        ds = DatasetRecipe.from_row(row)
        recipe = recipe_from_dataset(
            ds,
            minutes_per_step=4,
            description=f"Recipe with {ds.loves_count} likes - {round(similarity * 100)}% similar",
        )
        recipe.tags = extract_semantic_tags(ds.title, ds.ingredients, similarity)

        reasons = [_similarity_reason(similarity)]
        popular = popularity_reason(ds.loves_count)
        if popular:
            reasons.append(popular)
        names = recipe.ingredient_names()
        used = [n for n in names if any(u in n or n in u for u in user_names if u)]
        if used:
            reasons.append("Uses ingredients you have: " + ", ".join(used[:3]))
        if len(recipe.instructions) <= 5:
            reasons.append("Easy to make (few steps)")

        return RecipeRecommendation(
            recipe=recipe,
            similarity_score=similarity,
            match_score=similarity,
            confidence_score=confidence_score(similarity, ds.loves_count, len(names), len(recipe.instructions)),
            match_reasons=reasons[:MAX_REASONS],
            loves_count=ds.loves_count,
        )

    def _refine(self, recs: List[RecipeRecommendation], user_names: Sequence[str]) -> None:
        batches = [recs[i : i + self.batch_size] for i in range(0, len(recs), self.batch_size)]
        for n, batch in enumerate(batches):
            if n > 0 and self.batch_delay > 0:
                self.sleep(self.batch_delay)
            try:
                items = self.generator.refine_recommendations(batch, user_names)
            except KitchenAssistantError as exc:
                logger.warning(
                    "Refinement batch %d failed, keeping raw results: %s",
                    n,
                    exc,
                    extra={
                        "invoking_func": "RAGRecommender._refine",
                        "invoking_purpose": MODULE_PURPOSE,
                        "next_step": "Continue with next batch",
                    },
                )
                continue

            for item in items:
                rec = batch[item["index"]]
                if item["name"]:
                    rec.recipe.name = item["name"]
                if item["description"]:
                    rec.recipe.description = item["description"]
                if item["instructions"]:
                    rec.recipe.instructions = item["instructions"]
                rec.match_reasons = (item["relevance_reasons"] + rec.match_reasons)[:MAX_REASONS]
                rec.recipe.provenance = Provenance.RAG_AI
