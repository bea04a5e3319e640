"""
suggestions.py

Purpose:
    AI recipe suggestions from the user's pantry.

    generate() never raises: every failure (feature off, no API key, API
    error, unreadable JSON) becomes SuggestionResult(recipes=[], error=msg),
    and the previously cached batch is cleared. A successful batch replaces
    the cached one under `last_ai_suggestions`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from kitchen_assistant.domain.schema import Ingredient, Recipe
from kitchen_assistant.errors import KitchenAssistantError
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.llm.generator import RecipeTextGenerator
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.local_cache import LAST_AI_SUGGESTIONS, SAVED_AI_RECIPES, LocalCache
from kitchen_assistant.stores.recipes import RecipeStore

logger = get_logger("suggestions")

MODULE_PURPOSE = "AI recipe suggestions from pantry ingredients"


@dataclass
class SuggestionResult:
    recipes: List[Recipe] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SuggestionService:
    def __init__(self, generator: RecipeTextGenerator, cache: LocalCache, flags: FeatureFlags) -> None:
        self.generator = generator
        self.cache = cache
        self.flags = flags

    def _fail(self, message: str) -> SuggestionResult:
        self.cache.delete(LAST_AI_SUGGESTIONS)
        return SuggestionResult(recipes=[], error=message)

    def generate(self, ingredients: Sequence[Ingredient], count: int = 3) -> SuggestionResult:
        if not self.flags.suggestions:
            return self._fail("AI suggestions are turned off.")
        if not self.generator.enabled():
            return self._fail("AI suggestions are not available right now.")
        if not ingredients:
            return self._fail("Add some ingredients first.")

        try:
            recipes = self.generator.generate_recipes(ingredients, count)
        except KitchenAssistantError as exc:
            logger.error(
                "Suggestion batch discarded: %s",
                exc,
                extra={
                    "invoking_func": "SuggestionService.generate",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Show error, keep suggestion list empty",
                    "resolution": "Retry; check model output format if it persists",
                },
            )
            return self._fail(exc.user_message)

        if not recipes:
            return self._fail("The AI did not return any recipes. Please try again.")

        self.cache.set(LAST_AI_SUGGESTIONS, [r.to_dict() for r in recipes])
        return SuggestionResult(recipes=recipes)

    def last_batch(self) -> List[Recipe]:
        data = self.cache.get(LAST_AI_SUGGESTIONS, [])
        if not isinstance(data, list):
            return []
        return [Recipe.from_dict(d) for d in data if isinstance(d, dict)]

    def save(self, recipe: Recipe, store: RecipeStore) -> Recipe:
        saved = store.save_external(recipe)
        if recipe.id:
            self.cache.mark_saved(SAVED_AI_RECIPES, recipe.id)
        return saved

    def is_saved(self, recipe: Recipe) -> bool:
        return bool(recipe.id) and recipe.id in self.cache.saved_ids(SAVED_AI_RECIPES)
