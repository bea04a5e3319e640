"""
feature_flags.py

Purpose:
    Load the feature toggles (dataset / suggestions / rag / weeklyPlanner)
    once from the Supabase `feature_flags` table and hand the resulting
    FeatureFlags object to every component that needs it.

    Loading never fails: any storage error falls back to the defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable

from supabase import Client

from kitchen_assistant.logging_utils import get_logger

logger = get_logger("feature_flags")

MODULE_PURPOSE = "Load feature toggles once from the feature_flags table"

# table name -> dataclass attribute
_FLAG_NAMES: Dict[str, str] = {
    "dataset": "dataset",
    "suggestions": "suggestions",
    "rag": "rag",
    "weeklyPlanner": "weekly_planner",
}


@dataclass(frozen=True)
class FeatureFlags:
    dataset: bool = False
    suggestions: bool = True
    rag: bool = True
    weekly_planner: bool = True

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]]) -> "FeatureFlags":
        values: Dict[str, bool] = {}
        for row in rows:
            attr = _FLAG_NAMES.get(row.get("name") or "")
            if attr is None:
                continue
            values[attr] = bool(row.get("enabled"))
        return cls(**values)

    def is_enabled(self, name: str) -> bool:
        attr = _FLAG_NAMES.get(name, name)
        if attr not in {f.name for f in fields(self)}:
            return False
        return bool(getattr(self, attr))


def load_feature_flags(client: Client) -> FeatureFlags:
    try:
        res = client.table("feature_flags").select("name,enabled").execute()
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Could not load feature flags, using defaults: %s",
            exc,
            extra={
                "invoking_func": "load_feature_flags",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Continue with default flags",
                "resolution": "Check the feature_flags table and its read policy",
            },
        )
        return FeatureFlags()

    flags = FeatureFlags.from_rows(res.data or [])
    logger.info(
        "Feature flags loaded: %s",
        flags,
        extra={"invoking_func": "load_feature_flags", "invoking_purpose": MODULE_PURPOSE},
    )
    return flags
