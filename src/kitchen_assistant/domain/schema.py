"""
schema.py

Purpose:
    Shared dataclasses for the kitchen assistant: pantry ingredients,
    recipes and their line items, community dataset rows, recommendations,
    weekly plans and shopping lists.

    These are the internal contracts between:
      - storage proxies (Supabase rows <-> dataclasses),
      - recommendation adapters (dataset / AI / RAG),
      - the weekly planner and shopping list aggregator.

    Nothing in this module talks to Supabase directly.

Provenance:
    Where a recipe came from is an explicit field (Provenance), not a magic
    owner id or id prefix. Only OWNED recipes that already have a stored id
    may be referenced from a persisted weekly plan.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

DAYS_PER_WEEK = 7
MEAL_SLOTS: Tuple[str, ...] = ("breakfast", "lunch", "dinner")
SLOTS_PER_DAY = len(MEAL_SLOTS)


class Provenance(str, Enum):
    OWNED = "owned"
    DATASET = "dataset"
    AI_GENERATED = "ai_generated"
    RAG_AI = "rag_ai"
    FALLBACK = "fallback"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def coerce(cls, value: Any, default: Optional["Difficulty"] = None) -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.MEDIUM


class Unit(str, Enum):
    KG = "kg"
    GRAM = "gram"
    LITER = "liter"
    ML = "ml"
    PIECE = "piece"
    CLOVE = "clove"
    PLATE = "piring"
    GRAIN = "butir"
    PORTION = "porsi"
    TO_TASTE = "secukupnya"


class IngredientCategory(str, Enum):
    VEGETABLES = "vegetables"
    MEAT = "meat"
    DAIRY = "dairy"
    SEAFOOD = "seafood"
    FRUITS = "fruits"
    GRAINS = "grains"
    SPICES = "spices"


def parse_date(value: Any) -> Optional[dt.date]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value)[:10])


def monday_of(day: dt.date) -> dt.date:
    """ISO Monday of the week containing `day`."""
    return day - dt.timedelta(days=day.weekday())


# ---------------------------------------------------------------------
# Pantry
# ---------------------------------------------------------------------
@dataclass
class Ingredient:
    name: str
    quantity: float
    unit: str
    category: str
    expiry_date: Optional[dt.date] = None
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Ingredient":
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            quantity=float(row.get("quantity") or 0),
            unit=row.get("unit") or "",
            category=row.get("category") or "",
            expiry_date=parse_date(row.get("expiry_date")),
            user_id=row.get("user_id"),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
        }


# ---------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------
@dataclass
class RecipeIngredient:
    name: str
    quantity: float = 1.0
    unit: str = Unit.PIECE.value
    id: Optional[str] = None
    recipe_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RecipeIngredient":
        return cls(
            id=row.get("id"),
            recipe_id=row.get("recipe_id"),
            name=row.get("name") or "",
            quantity=float(row.get("quantity") or 0),
            unit=row.get("unit") or "",
        )

    def to_row(self, recipe_id: str) -> Dict[str, Any]:
        return {"recipe_id": recipe_id, "name": self.name, "quantity": self.quantity, "unit": self.unit}


@dataclass
class Recipe:
    name: str
    description: str = ""
    prep_time: int = 0                 # minutes
    cook_time: int = 0                 # minutes
    servings: int = 4
    difficulty: Difficulty = Difficulty.EASY
    instructions: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    ingredients: List[RecipeIngredient] = field(default_factory=list)
    provenance: Provenance = Provenance.OWNED
    id: Optional[str] = None           # storage id, or a source-specific id for external recipes
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    source_url: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.provenance is not Provenance.OWNED

    @property
    def persistable(self) -> bool:
        """May be referenced from a saved weekly plan."""
        return self.provenance is Provenance.OWNED and bool(self.id) and bool(self.user_id)

    def ingredient_names(self) -> List[str]:
        return [ing.name.lower().strip() for ing in self.ingredients if ing.name and ing.name.strip()]

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        ingredient_rows: Optional[List[Dict[str, Any]]] = None,
    ) -> "Recipe":
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            description=row.get("description") or "",
            prep_time=int(row.get("prep_time") or 0),
            cook_time=int(row.get("cook_time") or 0),
            servings=int(row.get("servings") or 1),
            difficulty=Difficulty.coerce(row.get("difficulty"), Difficulty.EASY),
            instructions=list(row.get("instructions") or []),
            tags=list(row.get("tags") or []),
            ingredients=[RecipeIngredient.from_row(r) for r in ingredient_rows or []],
            provenance=Provenance.OWNED,
            user_id=row.get("user_id"),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        """Columns of the `recipes` table (owner and id are set by the store)."""
        return {
            "name": self.name,
            "description": self.description,
            "prep_time": int(self.prep_time),
            "cook_time": int(self.cook_time),
            "servings": int(self.servings),
            "difficulty": Difficulty.coerce(self.difficulty).value,
            "instructions": list(self.instructions),
            "tags": list(self.tags),
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe form used by the local cache."""
        data = asdict(self)
        data["difficulty"] = Difficulty.coerce(self.difficulty).value
        data["provenance"] = self.provenance.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            description=data.get("description") or "",
            prep_time=int(data.get("prep_time") or 0),
            cook_time=int(data.get("cook_time") or 0),
            servings=int(data.get("servings") or 4),
            difficulty=Difficulty.coerce(data.get("difficulty"), Difficulty.EASY),
            instructions=list(data.get("instructions") or []),
            tags=list(data.get("tags") or []),
            ingredients=[
                RecipeIngredient(
                    name=i.get("name") or "",
                    quantity=float(i.get("quantity") or 0),
                    unit=i.get("unit") or "",
                )
                for i in data.get("ingredients") or []
            ],
            provenance=Provenance(data.get("provenance") or Provenance.OWNED.value),
            user_id=data.get("user_id"),
            created_at=data.get("created_at"),
            source_url=data.get("source_url"),
        )


@dataclass
class DatasetRecipe:
    """Read-only community dataset row (dataset_recipes, owner is NULL)."""

    id: str
    title: str
    ingredients: str          # free-text blob
    steps: str                # free-text blob
    loves_count: int = 0
    url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DatasetRecipe":
        return cls(
            id=str(row.get("id") or ""),
            title=row.get("title") or "",
            ingredients=row.get("ingredients") or "",
            steps=row.get("steps") or "",
            loves_count=int(row.get("loves_count") or 0),
            url=row.get("url"),
        )


@dataclass
class RecipeRecommendation:
    recipe: Recipe
    match_score: float = 0.0
    similarity_score: float = 0.0
    confidence_score: float = 0.0
    match_reasons: List[str] = field(default_factory=list)
    loves_count: int = 0

    @property
    def name(self) -> str:
        return self.recipe.name

    @property
    def provenance(self) -> Provenance:
        return self.recipe.provenance


# ---------------------------------------------------------------------
# Weekly plan
# ---------------------------------------------------------------------
@dataclass
class DailySlots:
    date: dt.date
    slots: List[Optional[Recipe]] = field(default_factory=lambda: [None] * SLOTS_PER_DAY)

    def __post_init__(self) -> None:
        if len(self.slots) > SLOTS_PER_DAY:
            raise ValueError(f"A day holds at most {SLOTS_PER_DAY} recipes, got {len(self.slots)}")
        self.slots = list(self.slots) + [None] * (SLOTS_PER_DAY - len(self.slots))

    @property
    def populated(self) -> int:
        return sum(1 for r in self.slots if r is not None)

    def by_meal(self) -> Dict[str, Optional[Recipe]]:
        return dict(zip(MEAL_SLOTS, self.slots))


@dataclass
class WeeklyPlan:
    user_id: str
    week_start: dt.date
    days: List[DailySlots] = field(default_factory=list)
    id: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.days:
            self.days = [
                DailySlots(date=self.week_start + dt.timedelta(days=i)) for i in range(DAYS_PER_WEEK)
            ]
        if len(self.days) != DAYS_PER_WEEK:
            raise ValueError(f"A weekly plan has exactly {DAYS_PER_WEEK} days, got {len(self.days)}")

    def iter_slots(self) -> Iterator[Tuple[int, int, Optional[Recipe]]]:
        """(day_index, slot_index, recipe) in row-major order."""
        for d, day in enumerate(self.days):
            for s, recipe in enumerate(day.slots):
                yield d, s, recipe

    def empty_slots(self) -> List[Tuple[int, int]]:
        return [(d, s) for d, s, r in self.iter_slots() if r is None]

    @property
    def populated(self) -> int:
        return sum(day.populated for day in self.days)

    def recipes(self) -> List[Recipe]:
        return [r for _, _, r in self.iter_slots() if r is not None]

    def copy(self) -> "WeeklyPlan":
        """Copy of the grid; recipe objects are shared."""
        days = [DailySlots(date=day.date, slots=list(day.slots)) for day in self.days]
        return WeeklyPlan(
            user_id=self.user_id,
            week_start=self.week_start,
            days=days,
            id=self.id,
            created_at=self.created_at,
        )


# ---------------------------------------------------------------------
# Shopping list (derived, never persisted)
# ---------------------------------------------------------------------
@dataclass
class ShoppingItem:
    name: str
    quantity: float           # still to buy (0 when owned covers it)
    unit: str
    needed: bool = True
    required_quantity: float = 0.0
    owned_quantity: float = 0.0
    category: str = "general"


@dataclass
class ShoppingList:
    items: List[ShoppingItem] = field(default_factory=list)
    people_count: int = 4

    @property
    def to_buy(self) -> List[ShoppingItem]:
        return [i for i in self.items if i.needed]

    @property
    def already_have(self) -> List[ShoppingItem]:
        return [i for i in self.items if not i.needed]

    def get(self, name: str) -> Optional[ShoppingItem]:
        key = name.lower().strip()
        for item in self.items:
            if item.name.lower().strip() == key:
                return item
        return None


