"""
weekly_plans.py

Purpose:
    Persist weekly plans in `weekly_plans` + `daily_meals`.

    - save() is destructive: every plan for the same (user, week_start) is
      deleted with its daily rows, then the new plan and 7 daily rows are
      inserted. There is no partial patching.
    - Only persistable (OWNED, stored) recipes are referenced; any other
      slot is written as NULL and comes back empty on load.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from supabase import Client

from kitchen_assistant.domain.schema import (
    DAYS_PER_WEEK,
    MEAL_SLOTS,
    DailySlots,
    WeeklyPlan,
    monday_of,
    parse_date,
)
from kitchen_assistant.errors import StorageError
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query
from kitchen_assistant.stores.recipes import RecipeStore

logger = get_logger("weekly_plans")

MODULE_PURPOSE = "Persist weekly plans (delete-by-week then insert)"

PLANS = "weekly_plans"
DAILY = "daily_meals"
_SLOT_COLUMNS = tuple(f"{meal}_recipe_id" for meal in MEAL_SLOTS)


class WeeklyPlanStore:
    def __init__(self, client: Client, user_id: str, recipes: RecipeStore) -> None:
        self.client = client
        self.user_id = user_id
        self.recipes = recipes

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _delete_plans(self, plan_ids: List[str], invoking_func: str) -> None:
        if not plan_ids:
            return
        run_query(
            self.client.table(DAILY).delete().in_("weekly_plan_id", plan_ids),
            invoking_func=invoking_func,
            purpose=MODULE_PURPOSE,
            user_message="Could not remove the previous plan.",
        )
        run_query(
            self.client.table(PLANS).delete().in_("id", plan_ids).eq("user_id", self.user_id),
            invoking_func=invoking_func,
            purpose=MODULE_PURPOSE,
            user_message="Could not remove the previous plan.",
        )

    def save(self, plan: WeeklyPlan) -> WeeklyPlan:
        week_start = plan.week_start.isoformat()
        existing = run_query(
            self.client.table(PLANS).select("id").eq("user_id", self.user_id).eq("week_start", week_start),
            invoking_func="WeeklyPlanStore.save",
            purpose=MODULE_PURPOSE,
            user_message="Could not save the weekly plan.",
        )
        self._delete_plans([r["id"] for r in existing], "WeeklyPlanStore.save")

        rows = run_query(
            self.client.table(PLANS).insert({"user_id": self.user_id, "week_start": week_start}),
            invoking_func="WeeklyPlanStore.save",
            purpose=MODULE_PURPOSE,
            user_message="Could not save the weekly plan.",
        )
        if not rows:
            raise StorageError("Insert returned no plan row", user_message="Could not save the weekly plan.")
        plan_row = rows[0]

        daily_rows: List[Dict[str, Any]] = []
        skipped = 0
        for day in plan.days:
            row: Dict[str, Any] = {"weekly_plan_id": plan_row["id"], "date": day.date.isoformat()}
            for column, recipe in zip(_SLOT_COLUMNS, day.slots):
                keep = recipe is not None and recipe.persistable and recipe.user_id == self.user_id
                if recipe is not None and not keep:
                    skipped += 1
                row[column] = recipe.id if keep else None
            daily_rows.append(row)

        run_query(
            self.client.table(DAILY).insert(daily_rows),
            invoking_func="WeeklyPlanStore.save",
            purpose=MODULE_PURPOSE,
            user_message="Could not save the weekly plan.",
        )

        if skipped:
            logger.warning(
                "%d external recipes were not stored in plan %s",
                skipped,
                plan_row["id"],
                extra={
                    "invoking_func": "WeeklyPlanStore.save",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Slots are saved empty",
                    "resolution": "Save those recipes to the collection first (RecipeStore.save_external)",
                },
            )

        saved = plan.copy()
        saved.id = plan_row["id"]
        saved.created_at = plan_row.get("created_at")
        return saved

    def delete(self, plan_id: str) -> None:
        self._delete_plans([plan_id], "WeeklyPlanStore.delete")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _build_plans(self, plan_rows: List[Dict[str, Any]]) -> List[WeeklyPlan]:
        if not plan_rows:
            return []
        plan_ids = [r["id"] for r in plan_rows]
        daily = run_query(
            self.client.table(DAILY).select("*").in_("weekly_plan_id", plan_ids),
            invoking_func="WeeklyPlanStore._build_plans",
            purpose=MODULE_PURPOSE,
            user_message="Could not load weekly plans.",
        )
        recipe_ids = [d.get(c) for d in daily for c in _SLOT_COLUMNS if d.get(c)]
        recipes = self.recipes.get_many(recipe_ids)

        out: List[WeeklyPlan] = []
        for row in plan_rows:
            week_start = parse_date(row.get("week_start")) or monday_of(dt.date.today())
            plan = WeeklyPlan(
                user_id=row.get("user_id") or self.user_id,
                week_start=week_start,
                id=row["id"],
                created_at=row.get("created_at"),
            )
            for d in daily:
                if d.get("weekly_plan_id") != row["id"]:
                    continue
                day = parse_date(d.get("date"))
                if day is None:
                    continue
                day_index = (day - week_start).days
                if not 0 <= day_index < DAYS_PER_WEEK:
                    continue
                plan.days[day_index] = DailySlots(
                    date=week_start + dt.timedelta(days=day_index),
                    slots=[recipes.get(d.get(c)) for c in _SLOT_COLUMNS],
                )
            out.append(plan)
        return out

    def fetch_all(self) -> List[WeeklyPlan]:
        rows = run_query(
            self.client.table(PLANS).select("*").eq("user_id", self.user_id).order("created_at", desc=True),
            invoking_func="WeeklyPlanStore.fetch_all",
            purpose=MODULE_PURPOSE,
            user_message="Could not load weekly plans.",
        )
        return self._build_plans(rows)

    def load(self, plan_id: str) -> Optional[WeeklyPlan]:
        rows = run_query(
            self.client.table(PLANS).select("*").eq("id", plan_id).eq("user_id", self.user_id).limit(1),
            invoking_func="WeeklyPlanStore.load",
            purpose=MODULE_PURPOSE,
            user_message="Could not load the weekly plan.",
        )
        plans = self._build_plans(rows)
        return plans[0] if plans else None

    def current_week_plan(self, today: Optional[dt.date] = None) -> Optional[WeeklyPlan]:
        week_start = monday_of(today or dt.date.today()).isoformat()
        rows = run_query(
            self.client.table(PLANS)
            .select("*")
            .eq("user_id", self.user_id)
            .eq("week_start", week_start)
            .order("created_at", desc=True)
            .limit(1),
            invoking_func="WeeklyPlanStore.current_week_plan",
            purpose=MODULE_PURPOSE,
            user_message="Could not load this week's plan.",
        )
        plans = self._build_plans(rows)
        return plans[0] if plans else None
