"""
shopping_list.py

Purpose:
    Turn a filled WeeklyPlan into a shopping list for N people.

    1. For every populated slot, scale each line item by
       people_count / recipe.servings and sum by lower-cased name.
    2. Subtract what the pantry already holds (same lower-cased name;
       duplicate pantry rows are summed).
    3. owned >= required -> needed=False, quantity 0
       otherwise         -> quantity = required - owned

Known limitation:
    Units are never converted. 1 kg owned against 300 gram required counts
    as 1 >= 300 -> still needed; quantities are compared as bare numbers.
"""
from __future__ import annotations

from collections import OrderedDict, defaultdict
from typing import Dict, Iterable, List

from kitchen_assistant.domain.schema import Ingredient, ShoppingItem, ShoppingList, WeeklyPlan
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("shopping_list")

MODULE_PURPOSE = "Aggregate plan ingredients into a shopping list"

DEFAULT_SERVINGS = 4


def aggregate_requirements(plan: WeeklyPlan, people_count: int) -> List[ShoppingItem]:
    """Scaled, summed requirements before any pantry subtraction."""
    totals: "OrderedDict[str, ShoppingItem]" = OrderedDict()
    for recipe in plan.recipes():
        servings = recipe.servings or DEFAULT_SERVINGS
        for ing in recipe.ingredients:
            key = (ing.name or "").lower().strip()
            if not key:
                continue
            qty = float(ing.quantity or 0) * people_count / servings
            item = totals.get(key)
            if item is None:
                totals[key] = ShoppingItem(
                    name=ing.name.strip(),
                    quantity=qty,
                    unit=ing.unit,
                    needed=True,
                    required_quantity=qty,
                )
            else:
                item.quantity += qty
                item.required_quantity += qty
    return list(totals.values())


def pantry_totals(pantry: Iterable[Ingredient]) -> Dict[str, float]:
    owned: Dict[str, float] = defaultdict(float)
    for ing in pantry:
        key = (ing.name or "").lower().strip()
        if key:
            owned[key] += float(ing.quantity or 0)
    return owned


def build_shopping_list(plan: WeeklyPlan, people_count: int, pantry: Iterable[Ingredient]) -> ShoppingList:
    owned = pantry_totals(pantry)
    items = aggregate_requirements(plan, people_count)

    for item in items:
        have = owned.get(item.name.lower().strip(), 0.0)
        item.owned_quantity = have
        if have >= item.required_quantity:
            item.needed = False
            item.quantity = 0.0
        else:
            item.quantity = max(0.0, item.required_quantity - have)
            item.needed = item.quantity > 0

    result = ShoppingList(items=items, people_count=people_count)
    logger.info(
        "Shopping list: %d to buy, %d already in pantry",
        len(result.to_buy),
        len(result.already_have),
        extra={"invoking_func": "build_shopping_list", "invoking_purpose": MODULE_PURPOSE},
    )
    return result
