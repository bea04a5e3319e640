"""
generator.py

Purpose:
    Recipe generation and recommendation refinement with an OpenAI chat model.

    - generate_recipes(): N new recipes from pantry ingredients, optionally
      one per named meal slot and avoiding ingredients already used.
    - refine_recommendations(): tidy names / instructions and explain
      relevance for a small batch of vector-search hits.

Implementation notes:
  - The model is asked for a fenced ```json block; parsing goes through
    parse_model_json() only.
  - If no OpenAI client is configured the generator reports enabled() == False
    and callers skip it.
  - API failures raise KitchenAssistantError; unreadable output raises
    ModelResponseError. Nothing is retried.
"""
from __future__ import annotations

import json
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openai import OpenAI

from kitchen_assistant.config import DEFAULT_OPENAI_MODEL
from kitchen_assistant.domain.schema import (
    Difficulty,
    Ingredient,
    Provenance,
    Recipe,
    RecipeIngredient,
    RecipeRecommendation,
    Unit,
)
from kitchen_assistant.errors import KitchenAssistantError
from kitchen_assistant.llm.model_json import parse_model_json
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("generator")

MODULE_PURPOSE = "Generate / refine recipes with the generative-AI API"

_RECIPE_SHAPE = {
    "recipes": [
        {
            "name": "Recipe name",
            "description": "Short description",
            "ingredients": [{"name": "ingredient", "quantity": 1, "unit": "gram"}],
            "instructions": ["Step 1", "Step 2"],
            "prepTime": 15,
            "cookTime": 30,
            "servings": 4,
            "difficulty": "easy|medium|hard",
            "tags": ["tag1", "tag2"],
        }
    ]
}

_REFINE_SHAPE = {
    "recipes": [
        {
            "index": 0,
            "name": "Clean recipe name",
            "description": "One sentence",
            "instructions": ["Step 1", "Step 2"],
            "relevance_reasons": ["Why it fits the user's pantry"],
        }
    ]
}


def _describe_ingredient(ing: Ingredient) -> str:
    qty = f"{ing.quantity:g}" if isinstance(ing.quantity, (int, float)) else str(ing.quantity)
    return f"{ing.name} ({qty} {ing.unit})".strip()


def _to_int(value: Any, default: int) -> int:
    try:
        out = int(float(value))
    except (TypeError, ValueError):
        return default
    return out if out > 0 else default


def _to_float(value: Any, default: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    return out if out > 0 else default


def recipe_from_model(item: Dict[str, Any]) -> Recipe:
    """Map one model `recipes[]` entry into an AI_GENERATED Recipe."""
    ingredients = []
    for ing in item.get("ingredients") or []:
        if not isinstance(ing, dict) or not str(ing.get("name") or "").strip():
            continue
        ingredients.append(
            RecipeIngredient(
                name=str(ing["name"]).strip(),
                quantity=_to_float(ing.get("quantity"), 1.0),
                unit=str(ing.get("unit") or Unit.TO_TASTE.value),
            )
        )

    return Recipe(
        id=f"ai-{uuid.uuid4().hex[:12]}",
        name=str(item.get("name") or "Untitled recipe").strip(),
        description=str(item.get("description") or ""),
        prep_time=_to_int(item.get("prepTime"), 15),
        cook_time=_to_int(item.get("cookTime"), 30),
        servings=_to_int(item.get("servings"), 4),
        difficulty=Difficulty.coerce(item.get("difficulty"), Difficulty.EASY),
        instructions=[str(s) for s in item.get("instructions") or [] if str(s).strip()],
        tags=[str(t) for t in item.get("tags") or []],
        ingredients=ingredients,
        provenance=Provenance.AI_GENERATED,
    )


class RecipeTextGenerator:
    def __init__(self, client: Optional[OpenAI], model: Optional[str] = None) -> None:
        self.client = client
        self.model = model or DEFAULT_OPENAI_MODEL

    def enabled(self) -> bool:
        return self.client is not None

    # ------------------------------------------------------------------
    # Low-level call
    # ------------------------------------------------------------------
    def _complete(self, system: str, user: str, *, temperature: float = 0.7) -> str:
        if not self.enabled():
            raise KitchenAssistantError(
                "OpenAI client is not configured",
                user_message="AI suggestions are not available right now.",
            )
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Chat completion failed: %s",
                exc,
                extra={
                    "invoking_func": "RecipeTextGenerator._complete",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Surface error to caller",
                    "resolution": "Check OPENAI_API_KEY / OPENAI_MODEL and network access",
                },
            )
            raise KitchenAssistantError(
                f"Chat completion failed: {exc}",
                user_message="Could not generate recipes with AI. Please try again.",
            ) from exc
        return resp.choices[0].message.content or ""

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def generate_recipes(
        self,
        ingredients: Sequence[Ingredient],
        count: int,
        meal_slots: Optional[Sequence[str]] = None,
        avoid_ingredients: Iterable[str] = (),
    ) -> List[Recipe]:
        if count <= 0:
            return []

        avoid = {a.lower().strip() for a in avoid_ingredients if a}
        pantry = [_describe_ingredient(i) for i in ingredients if i.name.lower().strip() not in avoid]

        lines = [
            f"I have these ingredients in my kitchen: {', '.join(pantry) or 'basic pantry staples'}.",
            f"Create {count} different home-style Indonesian recipes that use them.",
        ]
        if meal_slots:
            lines.append("One recipe for each of: " + ", ".join(meal_slots) + ".")
            lines.append("Breakfast should be lighter; lunch and dinner more complete.")
        if avoid:
            lines.append("Avoid relying on these, they are already used this week: " + ", ".join(sorted(avoid)) + ".")
        lines += [
            "Every recipe must be practical, realistic in timing and different from the others.",
            "Reply with a single ```json fenced block shaped exactly like:",
            json.dumps(_RECIPE_SHAPE, ensure_ascii=False, indent=2),
            "The JSON must be valid and contain no comments.",
        ]

        text = self._complete(
            "You are a helpful home cook who writes clear, realistic recipes.",
            "\n".join(lines),
        )
        data = parse_model_json(text, required_key="recipes")
        recipes = [recipe_from_model(item) for item in data["recipes"] if isinstance(item, dict)]

        logger.info(
            "Generated %d AI recipes (requested %d)",
            len(recipes),
            count,
            extra={"invoking_func": "RecipeTextGenerator.generate_recipes", "invoking_purpose": MODULE_PURPOSE},
        )
        return recipes[:count]

    def refine_recommendations(
        self,
        batch: Sequence[RecipeRecommendation],
        user_ingredient_names: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """Ask the model to tidy a small batch; returns one dict per refined item.

        Each dict has `index` (position in `batch`), `name`, `description`,
        `instructions` and `relevance_reasons`. Items the model skipped are
        simply absent.
        """
        if not batch:
            return []

        payload = [
            {
                "index": i,
                "title": rec.recipe.name,
                "ingredients": rec.recipe.ingredient_names(),
                "steps": rec.recipe.instructions,
                "similarity": round(rec.similarity_score, 2),
            }
            for i, rec in enumerate(batch)
        ]
        user = "\n".join(
            [
                "User pantry: " + (", ".join(user_ingredient_names) or "unknown"),
                "Candidate recipes found by similarity search:",
                json.dumps(payload, ensure_ascii=False),
                "For each candidate, give a clean name, a one-sentence description, concise instructions",
                "and up to 3 reasons it fits the pantry. Keep the same index.",
                "Reply with a single ```json fenced block shaped like:",
                json.dumps(_REFINE_SHAPE, ensure_ascii=False),
            ]
        )
        text = self._complete("You are a precise recipe editor.", user, temperature=0.3)
        data = parse_model_json(text, required_key="recipes")

        out: List[Dict[str, Any]] = []
        for item in data["recipes"]:
            if not isinstance(item, dict):
                continue
            try:
                idx = int(item.get("index"))
            except (TypeError, ValueError):
                continue
            if 0 <= idx < len(batch):
                out.append(
                    {
                        "index": idx,
                        "name": str(item.get("name") or "").strip(),
                        "description": str(item.get("description") or ""),
                        "instructions": [str(s) for s in item.get("instructions") or [] if str(s).strip()],
                        "relevance_reasons": [str(r) for r in item.get("relevance_reasons") or []],
                    }
                )
        return out
