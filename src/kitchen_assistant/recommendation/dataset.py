"""
dataset.py

Purpose:
    Recommend community dataset recipes (`dataset_recipes`, owner NULL) by
    ingredient overlap with the user's pantry.

    Pipeline:
      - fetch up to 500 rows above a popularity floor (loves_count)
      - parse each free-text row into a Recipe
      - score with matching.scorer, keep score > min_score
      - sort by score, then popularity; truncate

Note:
    The whole adapter is behind the `dataset` feature flag; when it is off
    every read returns an empty result without touching storage.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from kitchen_assistant.domain.parsing import (
    estimate_difficulty,
    estimate_times,
    extract_tags,
    parse_ingredient_text,
    parse_step_text,
)
from kitchen_assistant.domain.schema import (
    DatasetRecipe,
    Ingredient,
    Provenance,
    Recipe,
    RecipeIngredient,
    RecipeRecommendation,
    Unit,
)
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.matching.scorer import score_match
from kitchen_assistant.stores.base import run_query
from kitchen_assistant.stores.local_cache import SAVED_DATASET_RECIPES, LocalCache
from kitchen_assistant.stores.recipes import RecipeStore

logger = get_logger("dataset")

MODULE_PURPOSE = "Community dataset recommendations by ingredient match"

TABLE = "dataset_recipes"
CANDIDATE_POOL = 500
QUICK_TITLE_WORDS = ("cepat", "praktis", "simple")


@dataclass
class DatasetStats:
    total: int = 0
    avg_loves: int = 0


def recipe_from_dataset(
    ds: DatasetRecipe,
    *,
    provenance: Provenance = Provenance.DATASET,
    minutes_per_step: int = 5,
    description: Optional[str] = None,
) -> Recipe:
    """Parse a free-text dataset row into the Recipe shape."""
    ingredients = parse_ingredient_text(ds.ingredients)
    steps = parse_step_text(ds.steps)
    prep, cook = estimate_times(len(ingredients), len(steps), minutes_per_step)
    return Recipe(
        id=ds.id,
        name=ds.title,
        description=description or f"Popular community recipe with {ds.loves_count} likes",
        prep_time=prep,
        cook_time=cook,
        servings=4,
        difficulty=estimate_difficulty(len(ingredients), len(steps)),
        instructions=steps,
        tags=extract_tags(ds.title, ds.ingredients),
        ingredients=[RecipeIngredient(name=name, quantity=1.0, unit=Unit.TO_TASTE.value) for name in ingredients],
        provenance=provenance,
        source_url=ds.url,
    )


def popularity_reason(loves_count: int) -> Optional[str]:
    if loves_count >= 1000:
        return f"Very popular: {loves_count:,} likes"
    if loves_count >= 500:
        return f"Popular: {loves_count:,} likes"
    return None


class DatasetRecommender:
    def __init__(self, client: Client, flags: FeatureFlags, cache: Optional[LocalCache] = None) -> None:
        self.client = client
        self.flags = flags
        self.cache = cache

    def _enabled(self, invoking_func: str) -> bool:
        if self.flags.dataset:
            return True
        logger.warning(
            "Dataset feature is disabled",
            extra={
                "invoking_func": invoking_func,
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Return empty result",
                "resolution": "Enable the 'dataset' row in feature_flags",
            },
        )
        return False

    def _base_query(self, columns: str = "*") -> Any:
        return self.client.table(TABLE).select(columns).is_("user_id", "null")

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def get_recommendations(
        self,
        available: Sequence[Ingredient],
        min_loves: int = 50,
        limit: int = 12,
        min_score: float = 0.2,
    ) -> List[RecipeRecommendation]:
        if not self._enabled("DatasetRecommender.get_recommendations"):
            return []

        rows = run_query(
            self._base_query().gte("loves_count", min_loves).order("loves_count", desc=True).limit(CANDIDATE_POOL),
            invoking_func="DatasetRecommender.get_recommendations",
            purpose=MODULE_PURPOSE,
            user_message="Could not load dataset recommendations.",
        )
        names = [i.name for i in available]

        recs: List[RecipeRecommendation] = []
        for row in rows:
            rec = self.recommend(DatasetRecipe.from_row(row), names)
            if rec.match_score > min_score:
                recs.append(rec)

        recs.sort(key=lambda r: (r.match_score, r.loves_count), reverse=True)
        logger.info(
            "Dataset recommendations: %d of %d candidates kept",
            min(len(recs), limit),
            len(rows),
            extra={"invoking_func": "DatasetRecommender.get_recommendations", "invoking_purpose": MODULE_PURPOSE},
        )
        return recs[:limit]

    def recommend(self, ds: DatasetRecipe, available_names: Sequence[str]) -> RecipeRecommendation:
        recipe = recipe_from_dataset(ds)
        match = score_match(recipe.ingredient_names(), available_names)

        reasons: List[str] = []
        popular = popularity_reason(ds.loves_count)
        if popular:
            reasons.append(popular)
        reasons.extend(match.reasons)
        if len(recipe.instructions) <= 5:
            reasons.append("Easy to make (few steps)")
        title = ds.title.lower()
        if any(w in title for w in QUICK_TITLE_WORDS):
            reasons.append("Quick and practical")

        return RecipeRecommendation(
            recipe=recipe,
            match_score=match.score,
            match_reasons=reasons,
            loves_count=ds.loves_count,
        )

    def popular(self, limit: int = 20) -> List[DatasetRecipe]:
        if not self._enabled("DatasetRecommender.popular"):
            return []
        rows = run_query(
            self._base_query().order("loves_count", desc=True).limit(limit),
            invoking_func="DatasetRecommender.popular",
            purpose=MODULE_PURPOSE,
            user_message="Could not load popular recipes.",
        )
        return [DatasetRecipe.from_row(r) for r in rows]

    def search(self, query: str, limit: int = 20) -> List[DatasetRecipe]:
        if not self._enabled("DatasetRecommender.search"):
            return []
        term = ilike_term(query)
        if not term:
            return []
        rows = run_query(
            self._base_query()
            .or_(f"title.ilike.%{term}%,ingredients.ilike.%{term}%")
            .order("loves_count", desc=True)
            .limit(limit),
            invoking_func="DatasetRecommender.search",
            purpose=MODULE_PURPOSE,
            user_message="Could not search recipes.",
        )
        return [DatasetRecipe.from_row(r) for r in rows]

    def stats(self) -> DatasetStats:
        if not self._enabled("DatasetRecommender.stats"):
            return DatasetStats()
        try:
            res = self._base_query("loves_count").execute()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Could not load dataset stats: %s",
                exc,
                extra={
                    "invoking_func": "DatasetRecommender.stats",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Report zeros",
                },
            )
            return DatasetStats()
        rows: List[Dict[str, Any]] = res.data or []
        total = len(rows)
        if not total:
            return DatasetStats()
        loves = sum(int(r.get("loves_count") or 0) for r in rows)
        return DatasetStats(total=total, avg_loves=round(loves / total))

    def save(self, rec: RecipeRecommendation, store: RecipeStore) -> Recipe:
        """Copy a recommendation into the user's collection and remember its id."""
        saved = store.save_external(rec.recipe)
        if self.cache is not None and rec.recipe.id:
            self.cache.mark_saved(SAVED_DATASET_RECIPES, rec.recipe.id)
        return saved

    def saved_ids(self) -> List[str]:
        return sorted(self.cache.saved_ids(SAVED_DATASET_RECIPES)) if self.cache is not None else []


def ilike_term(text: str) -> str:
    """Strip characters that break a PostgREST or=(...) filter."""
    return "".join(ch for ch in (text or "") if ch not in ",()%*\\\"").strip()
