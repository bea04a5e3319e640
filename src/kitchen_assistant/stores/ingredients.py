"""
ingredients.py

Purpose:
    CRUD pass-through for the `ingredients` table, scoped to one user.
    The last fetched list is kept on `.ingredients` and is what the
    recommenders and the weekly planner read.
"""
from __future__ import annotations

from typing import Any, Dict, List

from supabase import Client

from kitchen_assistant.domain.schema import Ingredient
from kitchen_assistant.errors import StorageError
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query

logger = get_logger("ingredients")

MODULE_PURPOSE = "Pantry ingredient CRUD against Supabase"

TABLE = "ingredients"


class IngredientStore:
    def __init__(self, client: Client, user_id: str) -> None:
        self.client = client
        self.user_id = user_id
        self.ingredients: List[Ingredient] = []

    def fetch(self) -> List[Ingredient]:
        rows = run_query(
            self.client.table(TABLE).select("*").eq("user_id", self.user_id).order("created_at", desc=True),
            invoking_func="IngredientStore.fetch",
            purpose=MODULE_PURPOSE,
            user_message="Could not load your ingredients.",
        )
        self.ingredients = [Ingredient.from_row(r) for r in rows]
        logger.info(
            "Loaded %d ingredients",
            len(self.ingredients),
            extra={"invoking_func": "IngredientStore.fetch", "invoking_purpose": MODULE_PURPOSE},
        )
        return self.ingredients

    def add(self, ingredient: Ingredient) -> Ingredient:
        row = {**ingredient.to_row(), "user_id": self.user_id}
        rows = run_query(
            self.client.table(TABLE).insert(row),
            invoking_func="IngredientStore.add",
            purpose=MODULE_PURPOSE,
            user_message="Could not add the ingredient.",
        )
        if not rows:
            raise StorageError("Insert returned no row", user_message="Could not add the ingredient.")
        saved = Ingredient.from_row(rows[0])
        self.ingredients = [saved] + [i for i in self.ingredients if i.id != saved.id]
        return saved

    def update(self, ingredient_id: str, updates: Dict[str, Any]) -> Ingredient:
        rows = run_query(
            self.client.table(TABLE).update(updates).eq("id", ingredient_id).eq("user_id", self.user_id),
            invoking_func="IngredientStore.update",
            purpose=MODULE_PURPOSE,
            user_message="Could not update the ingredient.",
        )
        if not rows:
            raise StorageError(f"Ingredient {ingredient_id} not found", user_message="Ingredient not found.")
        saved = Ingredient.from_row(rows[0])
        self.ingredients = [saved if i.id == ingredient_id else i for i in self.ingredients]
        return saved

    def delete(self, ingredient_id: str) -> None:
        run_query(
            self.client.table(TABLE).delete().eq("id", ingredient_id).eq("user_id", self.user_id),
            invoking_func="IngredientStore.delete",
            purpose=MODULE_PURPOSE,
            user_message="Could not delete the ingredient.",
        )
        self.ingredients = [i for i in self.ingredients if i.id != ingredient_id]
