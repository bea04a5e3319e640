"""
weekly_planner.py

Purpose:
    Fill a 7-day x 3-slot WeeklyPlan for one user, then derive the shopping
    list for `people_count` people.

    Phases (single pass, each only touches slots still empty, row-major):
      1. owned recipes, sorted by pantry match score then recency; a recipe
         is accepted when score >= owned_min_score, or unconditionally when
         the user has >= owned_pool_override recipes
      2. dataset recommendations            (needs the `dataset` flag)
      3. one AI request for exactly the number of empty slots
                                            (needs `suggestions` + an API key)
      4. static fallback dishes             (skipped if allow_empty_slots)

    A phase that fails is logged and contributes nothing; the next phase
    still runs. The plan is not saved here: persist with WeeklyPlanStore.save.

In-memory edits:
    assign_slot() / clear_slot() return a new plan; nothing is written until
    the caller saves.
"""
from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from kitchen_assistant.domain.schema import (
    DAYS_PER_WEEK,
    MEAL_SLOTS,
    Difficulty,
    Ingredient,
    Provenance,
    Recipe,
    RecipeIngredient,
    ShoppingList,
    Unit,
    WeeklyPlan,
    monday_of,
)
from kitchen_assistant.errors import KitchenAssistantError, ValidationError
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.llm.generator import RecipeTextGenerator
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.matching.scorer import score_match
from kitchen_assistant.planning.shopping_list import build_shopping_list
from kitchen_assistant.recommendation.dataset import DatasetRecommender
from kitchen_assistant.stores.ingredients import IngredientStore
from kitchen_assistant.stores.recipes import RecipeStore

logger = get_logger("weekly_planner")

MODULE_PURPOSE = "Fill a 7-day x 3-slot plan from owned/dataset/AI/fallback recipes"

MIN_PEOPLE = 1
MAX_PEOPLE = 20

# meal -> placeholder dishes, cycled per meal
FALLBACK_RECIPES: Dict[str, Tuple[str, ...]] = {
    "breakfast": ("Nasi Putih + Telur Dadar", "Mie Instan + Telur", "Roti Bakar + Selai"),
    "lunch": ("Nasi + Ayam Goreng", "Nasi + Ikan Bakar", "Nasi + Sayur Sop"),
    "dinner": ("Nasi + Rendang", "Nasi + Gudeg", "Nasi + Soto Ayam"),
}

PHASES = ("owned", "dataset", "ai", "fallback")


@dataclass
class PlannerConfig:
    people_count: int = 4
    allow_empty_slots: bool = False
    owned_min_score: float = 0.2
    owned_pool_override: int = 10
    dataset_min_loves: int = 30
    dataset_limit: int = 50
    dataset_min_score: float = 0.2

    def __post_init__(self) -> None:
        if not MIN_PEOPLE <= int(self.people_count) <= MAX_PEOPLE:
            raise ValidationError(
                f"people_count must be between {MIN_PEOPLE} and {MAX_PEOPLE}, got {self.people_count}",
                user_message=f"Choose between {MIN_PEOPLE} and {MAX_PEOPLE} people.",
            )


@dataclass
class PlanResult:
    plan: WeeklyPlan
    shopping_list: ShoppingList
    phase_counts: Dict[str, int] = field(default_factory=lambda: {p: 0 for p in PHASES})


def fallback_recipe(meal: str, index: int, people_count: int) -> Recipe:
    names = FALLBACK_RECIPES.get(meal) or FALLBACK_RECIPES["lunch"]
    return Recipe(
        id=f"fallback-{uuid.uuid4().hex[:8]}",
        name=names[index % len(names)],
        description="Simple dish to complete the weekly plan",
        prep_time=10,
        cook_time=15,
        servings=people_count,
        difficulty=Difficulty.EASY,
        instructions=["Prepare the ingredients", "Cook as usual", "Serve warm"],
        tags=["simple", "quick"],
        ingredients=[RecipeIngredient(name="main ingredients", quantity=1.0, unit=Unit.PORTION.value)],
        provenance=Provenance.FALLBACK,
    )


def _check_position(day: int, slot: int) -> None:
    if not 0 <= day < DAYS_PER_WEEK or not 0 <= slot < len(MEAL_SLOTS):
        raise ValidationError(f"No slot at day={day}, slot={slot}", user_message="That meal slot does not exist.")


def assign_slot(plan: WeeklyPlan, day: int, slot: int, recipe: Optional[Recipe]) -> WeeklyPlan:
    """New plan with one slot replaced (None empties it)."""
    _check_position(day, slot)
    updated = plan.copy()
    updated.days[day].slots[slot] = recipe
    return updated


def clear_slot(plan: WeeklyPlan, day: int, slot: int) -> WeeklyPlan:
    return assign_slot(plan, day, slot, None)


class WeeklyPlanGenerator:
    def __init__(
        self,
        recipes: RecipeStore,
        ingredients: IngredientStore,
        flags: FeatureFlags,
        dataset: Optional[DatasetRecommender] = None,
        generator: Optional[RecipeTextGenerator] = None,
        config: Optional[PlannerConfig] = None,
    ) -> None:
        self.recipes = recipes
        self.ingredients = ingredients
        self.flags = flags
        self.dataset = dataset
        self.generator = generator
        self.config = config or PlannerConfig()

    def generate(self, user_id: str, week_start: Optional[dt.date] = None) -> PlanResult:
        if not self.flags.weekly_planner:
            raise KitchenAssistantError(
                "Weekly planner feature is disabled",
                user_message="The weekly planner is turned off.",
            )

        cfg = self.config
        pantry = self.ingredients.fetch()
        owned = self.recipes.fetch_all()
        plan = WeeklyPlan(user_id=user_id, week_start=monday_of(week_start or dt.date.today()))
        used: Set[str] = set()
        counts = {p: 0 for p in PHASES}

        counts["owned"] = self._fill_owned(plan, owned, pantry, used)
        if self.flags.dataset and self.dataset is not None:
            counts["dataset"] = self._fill_dataset(plan, pantry, used)
        if self.flags.suggestions and self.generator is not None and self.generator.enabled():
            counts["ai"] = self._fill_ai(plan, pantry, used)
        if not cfg.allow_empty_slots:
            counts["fallback"] = self._fill_fallback(plan)

        shopping = build_shopping_list(plan, cfg.people_count, pantry)
        logger.info(
            "Plan for week %s: %s, %d/%d slots filled",
            plan.week_start.isoformat(),
            counts,
            plan.populated,
            DAYS_PER_WEEK * len(MEAL_SLOTS),
            extra={"invoking_func": "WeeklyPlanGenerator.generate", "invoking_purpose": MODULE_PURPOSE},
        )
        return PlanResult(plan=plan, shopping_list=shopping, phase_counts=counts)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    @staticmethod
    def _place(plan: WeeklyPlan, day: int, slot: int, recipe: Recipe, used: Set[str]) -> None:
        plan.days[day].slots[slot] = recipe
        used.update(recipe.ingredient_names())

    def _fill_owned(self, plan: WeeklyPlan, owned: List[Recipe], pantry: List[Ingredient], used: Set[str]) -> int:
        cfg = self.config
        names = [i.name for i in pantry]
        scored = [(score_match(r.ingredient_names(), names).score, r) for r in owned]
        scored.sort(key=lambda pair: (pair[0], pair[1].created_at or ""), reverse=True)

        large_pool = len(owned) >= cfg.owned_pool_override
        eligible = [r for score, r in scored if large_pool or score >= cfg.owned_min_score]

        filled = 0
        for (day, slot), recipe in zip(plan.empty_slots(), eligible):
            self._place(plan, day, slot, recipe, used)
            filled += 1
        return filled

    def _fill_dataset(self, plan: WeeklyPlan, pantry: List[Ingredient], used: Set[str]) -> int:
        cfg = self.config
        try:
            recs = self.dataset.get_recommendations(
                pantry,
                min_loves=cfg.dataset_min_loves,
                limit=cfg.dataset_limit,
                min_score=cfg.dataset_min_score,
            )
        except KitchenAssistantError as exc:
            logger.warning(
                "Dataset phase skipped: %s",
                exc,
                extra={
                    "invoking_func": "WeeklyPlanGenerator._fill_dataset",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue with AI / fallback phases",
                },
            )
            return 0

        filled = 0
        for (day, slot), rec in zip(plan.empty_slots(), recs):
            self._place(plan, day, slot, rec.recipe, used)
            filled += 1
        return filled

    def _fill_ai(self, plan: WeeklyPlan, pantry: List[Ingredient], used: Set[str]) -> int:
        empty = plan.empty_slots()
        if not empty:
            return 0
        labels = [f"{MEAL_SLOTS[slot]} for day {day + 1}" for day, slot in empty]
        try:
            generated = self.generator.generate_recipes(
                pantry,
                len(empty),
                meal_slots=labels,
                avoid_ingredients=sorted(used),
            )
        except KitchenAssistantError as exc:
            logger.warning(
                "AI phase skipped: %s",
                exc,
                extra={
                    "invoking_func": "WeeklyPlanGenerator._fill_ai",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue with fallback phase",
                },
            )
            return 0

        filled = 0
        for (day, slot), recipe in zip(empty, generated):
            self._place(plan, day, slot, recipe, used)
            filled += 1
        return filled

    def _fill_fallback(self, plan: WeeklyPlan) -> int:
        per_meal = {meal: 0 for meal in MEAL_SLOTS}
        filled = 0
        for day, slot in plan.empty_slots():
            meal = MEAL_SLOTS[slot]
            plan.days[day].slots[slot] = fallback_recipe(meal, per_meal[meal], self.config.people_count)
            per_meal[meal] += 1
            filled += 1
        return filled
