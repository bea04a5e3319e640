"""
In-memory stand-in for the parts of the supabase-py client the stores use.

Supports table().select/insert/update/upsert/delete with eq / is_ / gte /
in_ / or_(ilike) filters, order / limit / range, rpc() and
functions.invoke(). Failures can be injected per table, per (table, op) or
as a queue of per-call outcomes.
"""
from __future__ import annotations

import copy
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from unittest.mock import MagicMock

from kitchen_assistant.domain.schema import Provenance, Recipe, RecipeIngredient


class FakeAPIError(Exception):
    """Looks enough like postgrest's APIError for is_unique_violation()."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


def _ilike(value: Any, pattern: str) -> bool:
    needle = pattern.strip("%").lower()
    return needle in str(value or "").lower()


def _parse_or(expr: str) -> List[Tuple[str, str, str]]:
    out = []
    for part in expr.split(","):
        col, op, arg = part.split(".", 2)
        out.append((col, op, arg))
    return out


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[Tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._range: Optional[Tuple[int, int]] = None

    # operations
    def select(self, columns: str = "*") -> "FakeQuery":
        self.op = "select"
        self.db.selects.append((self.table_name, columns))
        return self

    def insert(self, rows: Any) -> "FakeQuery":
        self.op = "insert"
        self.payload = rows
        return self

    def upsert(self, rows: Any, on_conflict: Optional[str] = None) -> "FakeQuery":
        self.op = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict or "id"
        return self

    def update(self, values: Dict[str, Any]) -> "FakeQuery":
        self.op = "update"
        self.payload = values
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    # filters
    def eq(self, col: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda r: r.get(col) == value)
        return self

    def is_(self, col: str, value: str) -> "FakeQuery":
        if value == "null":
            self.filters.append(lambda r: r.get(col) is None)
        return self

    def gte(self, col: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) >= value)
        return self

    def in_(self, col: str, values: List[Any]) -> "FakeQuery":
        allowed = list(values)
        self.filters.append(lambda r: r.get(col) in allowed)
        return self

    def or_(self, expr: str) -> "FakeQuery":
        clauses = _parse_or(expr)
        self.filters.append(
            lambda r: any(op == "ilike" and _ilike(r.get(col), arg) for col, op, arg in clauses)
        )
        return self

    def order(self, col: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((col, desc))
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self._range = (start, end)
        return self

    # execution
    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(f(row) for f in self.filters)

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table_name, self.op))
        queued = self.db.fail_queue.get((self.table_name, self.op))
        if queued:
            error = queued.pop(0)
            if error is not None:
                raise error
        error = self.db.fail_ops.get((self.table_name, self.op)) or self.db.fail_tables.get(self.table_name)
        if error is not None:
            raise error

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.op == "select":
            out = [copy.deepcopy(r) for r in rows if self._matches(r)]
            for col, desc in reversed(self.orders):
                out.sort(key=lambda r: (r.get(col) is None, r.get(col) or 0), reverse=desc)
            if self._range is not None:
                out = out[self._range[0] : self._range[1] + 1]
            if self._limit is not None:
                out = out[: self._limit]
            return SimpleNamespace(data=out)

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.add_row(self.table_name, item) for item in items]
            return SimpleNamespace(data=inserted)

        if self.op == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in items:
                existing = [r for r in rows if r.get(self.on_conflict) == item.get(self.on_conflict)]
                if existing:
                    existing[0].update(copy.deepcopy(item))
                    out.append(copy.deepcopy(existing[0]))
                else:
                    out.append(self.db.add_row(self.table_name, item))
            return SimpleNamespace(data=out)

        if self.op == "update":
            out = []
            for r in rows:
                if self._matches(r):
                    r.update(copy.deepcopy(self.payload))
                    out.append(copy.deepcopy(r))
            return SimpleNamespace(data=out)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]) -> None:
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> SimpleNamespace:
        self.db.rpc_calls.append((self.name, self.params))
        result = self.db.rpc_results.get(self.name, [])
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(data=copy.deepcopy(result))


class FakeFunctions:
    def __init__(self, db: "FakeSupabase") -> None:
        self.db = db
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.result: Any = None

    def invoke(self, name: str, invoke_options: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((name, invoke_options or {}))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_tables: Dict[str, Exception] = {}
        self.fail_ops: Dict[Tuple[str, str], Exception] = {}
        # per-call outcomes: None succeeds, an exception is raised
        self.fail_queue: Dict[Tuple[str, str], List[Optional[Exception]]] = {}
        self.rpc_results: Dict[str, Any] = {}
        self.rpc_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.calls: List[Tuple[str, str]] = []
        self.selects: List[Tuple[str, str]] = []
        self.functions = FakeFunctions(self)
        self._clock = 0

    def add_row(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert directly (ids and created_at are generated when missing)."""
        self._clock += 1
        stored = copy.deepcopy(row)
        stored.setdefault("id", uuid.uuid4().hex)
        stored.setdefault("created_at", f"2024-01-01T{self._clock // 3600:02d}:{self._clock // 60 % 60:02d}:{self._clock % 60:02d}")
        self.tables.setdefault(table, []).append(stored)
        return copy.deepcopy(stored)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
USER_ID = "user-1"


def make_recipe(
    name: str,
    ingredients: Sequence[tuple] = (),
    servings: int = 4,
    provenance: Provenance = Provenance.OWNED,
    recipe_id: Optional[str] = None,
    user_id: str = USER_ID,
    created_at: Optional[str] = None,
) -> Recipe:
    """Recipe with (name, quantity, unit) line items."""
    return Recipe(
        id=recipe_id or f"r-{name.lower().replace(' ', '-')}",
        name=name,
        servings=servings,
        ingredients=[RecipeIngredient(name=n, quantity=q, unit=u) for n, q, u in ingredients],
        provenance=provenance,
        user_id=user_id if provenance is Provenance.OWNED else None,
        created_at=created_at,
    )


def chat_response(text: str) -> MagicMock:
    """Shape of an openai chat completion: resp.choices[0].message.content."""
    message = MagicMock()
    message.content = text
    choice = MagicMock()
    choice.message = message
    resp = MagicMock()
    resp.choices = [choice]
    return resp


def seed_recipe(db: FakeSupabase, name: str, ingredients: Sequence[tuple] = (), user_id: str = USER_ID) -> str:
    row = db.add_row(
        "recipes",
        {
            "name": name,
            "description": "",
            "servings": 4,
            "difficulty": "easy",
            "instructions": [],
            "tags": [],
            "user_id": user_id,
        },
    )
    for n, q, u in ingredients:
        db.add_row("recipe_ingredients", {"recipe_id": row["id"], "name": n, "quantity": q, "unit": u})
    return row["id"]


def seed_ingredient(db: FakeSupabase, name: str, quantity: float = 1, unit: str = "piece", user_id: str = USER_ID) -> str:
    row = db.add_row(
        "ingredients",
        {"name": name, "quantity": quantity, "unit": unit, "category": "general", "user_id": user_id},
    )
    return row["id"]


def seed_dataset(db: FakeSupabase, title: str, ingredients: str, steps: str = "", loves: int = 100) -> str:
    row = db.add_row(
        "dataset_recipes",
        {"title": title, "ingredients": ingredients, "steps": steps, "loves_count": loves, "user_id": None},
    )
    return row["id"]
