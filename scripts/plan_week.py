#!/usr/bin/env python3
"""
plan_week.py

Purpose:
    Generate a weekly meal plan for one user from the command line, print it
    with the shopping list, and optionally save it.

Usage:
    python scripts/plan_week.py --user-id <uuid> --people 4
    python scripts/plan_week.py --user-id <uuid> --week-start 2024-06-03 --save
"""

from __future__ import annotations

import argparse
import datetime as dt
import sys

from kitchen_assistant.config import get_openai_client, get_supabase_client, load_settings
from kitchen_assistant.domain.schema import MEAL_SLOTS, ShoppingList, WeeklyPlan
from kitchen_assistant.errors import KitchenAssistantError
from kitchen_assistant.feature_flags import load_feature_flags
from kitchen_assistant.llm.generator import RecipeTextGenerator
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.planning.weekly_planner import PlannerConfig, WeeklyPlanGenerator
from kitchen_assistant.recommendation.dataset import DatasetRecommender
from kitchen_assistant.stores.ingredients import IngredientStore
from kitchen_assistant.stores.local_cache import LocalCache
from kitchen_assistant.stores.recipes import RecipeStore
from kitchen_assistant.stores.weekly_plans import WeeklyPlanStore

logger = get_logger("plan_week")

MODULE_PURPOSE = "Command-line weekly plan generation"


def print_plan(plan: WeeklyPlan) -> None:
    print(f"\nWeek of {plan.week_start.isoformat()}")
    for day in plan.days:
        print(f"  {day.date.strftime('%a %d %b')}")
        for meal in MEAL_SLOTS:
            recipe = day.by_meal().get(meal)
            label = f"{recipe.name} [{recipe.provenance.value}]" if recipe else "-"
            print(f"    {meal:<10} {label}")


def print_shopping_list(shopping: ShoppingList) -> None:
    print(f"\nShopping list for {shopping.people_count} people")
    for item in shopping.to_buy:
        print(f"  [ ] {item.name}: {item.quantity:g} {item.unit}")
    if shopping.already_have:
        print("  Already in pantry:")
        for item in shopping.already_have:
            print(f"  [x] {item.name}: need {item.required_quantity:g}, have {item.owned_quantity:g}")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--user-id", required=True)
    ap.add_argument("--people", type=int, default=4)
    ap.add_argument("--allow-empty", action="store_true", help="Leave unfilled slots empty")
    ap.add_argument("--week-start", type=dt.date.fromisoformat, default=None)
    ap.add_argument("--save", action="store_true", help="Replace the saved plan for that week")
    args = ap.parse_args()

    settings = load_settings()
    client = get_supabase_client(settings)
    flags = load_feature_flags(client)

    recipes = RecipeStore(client, args.user_id)
    planner = WeeklyPlanGenerator(
        recipes=recipes,
        ingredients=IngredientStore(client, args.user_id),
        flags=flags,
        dataset=DatasetRecommender(client, flags, LocalCache(settings.cache_path)),
        generator=RecipeTextGenerator(get_openai_client(settings), model=settings.openai_model),
        config=PlannerConfig(people_count=args.people, allow_empty_slots=args.allow_empty),
    )

    try:
        result = planner.generate(args.user_id, week_start=args.week_start)
    except KitchenAssistantError as exc:
        logger.error(
            "Plan generation failed: %s",
            exc,
            extra={"invoking_func": "main", "invoking_purpose": MODULE_PURPOSE},
        )
        print(exc.user_message, file=sys.stderr)
        sys.exit(1)

    print_plan(result.plan)
    print_shopping_list(result.shopping_list)
    print(f"\nFilled by phase: {result.phase_counts}")

    if args.save:
        saved = WeeklyPlanStore(client, args.user_id, recipes).save(result.plan)
        print(f"Saved plan {saved.id}")


if __name__ == "__main__":
    main()
