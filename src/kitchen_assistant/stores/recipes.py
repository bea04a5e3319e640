"""
recipes.py

Purpose:
    CRUD pass-through for the user's own recipes (`recipes`) and their line
    items (`recipe_ingredients`).

    - Line items are loaded with a second `in_` query and attached in Python.
    - Line items are replaced wholesale on update when a new list is given.
    - save_external() is the only way an external recipe (dataset / AI /
      RAG / fallback) becomes OWNED and gets a stable id.
"""
from __future__ import annotations

import dataclasses
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client

from kitchen_assistant.domain.schema import Provenance, Recipe, RecipeIngredient
from kitchen_assistant.errors import StorageError
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query

logger = get_logger("recipes")

MODULE_PURPOSE = "User recipe + recipe_ingredients CRUD against Supabase"

RECIPES = "recipes"
LINE_ITEMS = "recipe_ingredients"
PAGE_SIZE = 8


class RecipeStore:
    def __init__(self, client: Client, user_id: str) -> None:
        self.client = client
        self.user_id = user_id
        self.recipes: List[Recipe] = []
        self.has_more = True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _attach_ingredients(self, rows: List[Dict[str, Any]]) -> List[Recipe]:
        ids = [r["id"] for r in rows if r.get("id")]
        by_recipe: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        if ids:
            items = run_query(
                self.client.table(LINE_ITEMS).select("*").in_("recipe_id", ids),
                invoking_func="RecipeStore._attach_ingredients",
                purpose=MODULE_PURPOSE,
                user_message="Could not load recipe ingredients.",
            )
            for item in items:
                by_recipe[item.get("recipe_id")].append(item)

        # De-dupe while preserving order
        seen = set()
        out: List[Recipe] = []
        for row in rows:
            rid = row.get("id")
            if rid in seen:
                continue
            seen.add(rid)
            out.append(Recipe.from_row(row, by_recipe.get(rid, [])))
        return out

    def fetch(self, page: int = 0) -> List[Recipe]:
        """One page (newest first). Page 0 replaces `.recipes`, later pages append."""
        start = page * PAGE_SIZE
        rows = run_query(
            self.client.table(RECIPES)
            .select("*")
            .eq("user_id", self.user_id)
            .order("created_at", desc=True)
            .range(start, start + PAGE_SIZE - 1),
            invoking_func="RecipeStore.fetch",
            purpose=MODULE_PURPOSE,
            user_message="Could not load your recipes.",
        )
        page_recipes = self._attach_ingredients(rows)
        self.has_more = len(rows) == PAGE_SIZE

        if page == 0:
            self.recipes = page_recipes
        else:
            known = {r.id for r in self.recipes}
            self.recipes += [r for r in page_recipes if r.id not in known]
        return page_recipes

    def fetch_all(self) -> List[Recipe]:
        rows = run_query(
            self.client.table(RECIPES).select("*").eq("user_id", self.user_id).order("created_at", desc=True),
            invoking_func="RecipeStore.fetch_all",
            purpose=MODULE_PURPOSE,
            user_message="Could not load your recipes.",
        )
        self.recipes = self._attach_ingredients(rows)
        self.has_more = False
        return self.recipes

    def get_many(self, recipe_ids: Sequence[str]) -> Dict[str, Recipe]:
        ids = [i for i in dict.fromkeys(recipe_ids) if i]
        if not ids:
            return {}
        rows = run_query(
            self.client.table(RECIPES).select("*").in_("id", ids),
            invoking_func="RecipeStore.get_many",
            purpose=MODULE_PURPOSE,
        )
        return {r.id: r for r in self._attach_ingredients(rows)}

    def _get(self, recipe_id: str) -> Recipe:
        found = self.get_many([recipe_id]).get(recipe_id)
        if found is None:
            raise StorageError(f"Recipe {recipe_id} not found", user_message="Recipe not found.")
        return found

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _insert_line_items(self, recipe_id: str, items: Sequence[RecipeIngredient]) -> None:
        rows = [i.to_row(recipe_id) for i in items if i.name and i.name.strip()]
        if not rows:
            return
        run_query(
            self.client.table(LINE_ITEMS).insert(rows),
            invoking_func="RecipeStore._insert_line_items",
            purpose=MODULE_PURPOSE,
            user_message="Could not save recipe ingredients.",
        )

    def add(self, recipe: Recipe) -> Recipe:
        rows = run_query(
            self.client.table(RECIPES).insert({**recipe.to_row(), "user_id": self.user_id}),
            invoking_func="RecipeStore.add",
            purpose=MODULE_PURPOSE,
            user_message="Could not save the recipe.",
        )
        if not rows:
            raise StorageError("Insert returned no row", user_message="Could not save the recipe.")
        recipe_id = rows[0]["id"]
        self._insert_line_items(recipe_id, recipe.ingredients)

        saved = self._get(recipe_id)
        self.recipes = [saved] + [r for r in self.recipes if r.id != recipe_id]
        logger.info(
            "Saved recipe %s (%s)",
            saved.name,
            recipe_id,
            extra={"invoking_func": "RecipeStore.add", "invoking_purpose": MODULE_PURPOSE},
        )
        return saved

    def update(
        self,
        recipe_id: str,
        updates: Dict[str, Any],
        ingredients: Optional[Sequence[RecipeIngredient]] = None,
    ) -> Recipe:
        if updates:
            run_query(
                self.client.table(RECIPES).update(updates).eq("id", recipe_id).eq("user_id", self.user_id),
                invoking_func="RecipeStore.update",
                purpose=MODULE_PURPOSE,
                user_message="Could not update the recipe.",
            )
        if ingredients is not None:
            run_query(
                self.client.table(LINE_ITEMS).delete().eq("recipe_id", recipe_id),
                invoking_func="RecipeStore.update",
                purpose=MODULE_PURPOSE,
                user_message="Could not update recipe ingredients.",
            )
            self._insert_line_items(recipe_id, ingredients)

        saved = self._get(recipe_id)
        self.recipes = [saved if r.id == recipe_id else r for r in self.recipes]
        return saved

    def delete(self, recipe_id: str) -> None:
        run_query(
            self.client.table(LINE_ITEMS).delete().eq("recipe_id", recipe_id),
            invoking_func="RecipeStore.delete",
            purpose=MODULE_PURPOSE,
            user_message="Could not delete the recipe.",
        )
        run_query(
            self.client.table(RECIPES).delete().eq("id", recipe_id).eq("user_id", self.user_id),
            invoking_func="RecipeStore.delete",
            purpose=MODULE_PURPOSE,
            user_message="Could not delete the recipe.",
        )
        self.recipes = [r for r in self.recipes if r.id != recipe_id]

    def save_external(self, recipe: Recipe) -> Recipe:
        """Copy a non-owned recipe into this user's collection."""
        if recipe.persistable and recipe.user_id == self.user_id:
            return recipe

        tags = list(recipe.tags)
        if recipe.provenance is not Provenance.OWNED and recipe.provenance.value not in tags:
            tags.append(recipe.provenance.value)

        copy = dataclasses.replace(
            recipe,
            id=None,
            user_id=self.user_id,
            created_at=None,
            provenance=Provenance.OWNED,
            tags=tags,
            instructions=list(recipe.instructions),
            ingredients=[RecipeIngredient(name=i.name, quantity=i.quantity, unit=i.unit) for i in recipe.ingredients],
        )
        return self.add(copy)
