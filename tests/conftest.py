"""
Pytest configuration and shared fixtures.

Builders and the in-memory Supabase client live in fakes.py so test modules
can import them directly.
"""
from __future__ import annotations

from typing import Callable, List
from unittest.mock import MagicMock

import pytest

from kitchen_assistant.domain.schema import Ingredient
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.stores.local_cache import LocalCache

from fakes import FakeSupabase, chat_response


@pytest.fixture
def fake_client() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def all_flags() -> FeatureFlags:
    return FeatureFlags(dataset=True, suggestions=True, rag=True, weekly_planner=True)


@pytest.fixture
def cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / "cache.json")


@pytest.fixture
def pantry() -> List[Ingredient]:
    return [
        Ingredient(name="Ayam", quantity=500, unit="gram", category="meat", id="i1"),
        Ingredient(name="Bawang Putih", quantity=5, unit="clove", category="spices", id="i2"),
        Ingredient(name="Tomat", quantity=3, unit="piece", category="vegetables", id="i3"),
    ]


@pytest.fixture
def openai_client() -> Callable[..., MagicMock]:
    """Factory: openai_client("reply text") or openai_client(side_effect=[...])."""

    def _make(text: str = "", side_effect=None) -> MagicMock:
        client = MagicMock()
        if side_effect is not None:
            client.chat.completions.create.side_effect = side_effect
        else:
            client.chat.completions.create.return_value = chat_response(text)
        return client

    return _make
