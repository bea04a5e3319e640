"""
local_cache.py

Purpose:
    Small JSON-file key/value store for client-side state that never goes
    to Supabase:
      - saved_dataset_recipes : ids of dataset recipes the user saved
      - saved_ai_recipes      : ids of AI suggestions the user saved
      - last_ai_suggestions   : the last AI suggestion batch (serialised)

Notes:
    - No expiry, no versioning.
    - The whole file is re-read on every get and rewritten on every set.
      Two processes writing at once: last writer wins.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Set, Union

from kitchen_assistant.logging_utils import get_logger

logger = get_logger("local_cache")

MODULE_PURPOSE = "JSON-file key/value cache for saved ids and suggestions"

SAVED_DATASET_RECIPES = "saved_dataset_recipes"
SAVED_AI_RECIPES = "saved_ai_recipes"
LAST_AI_SUGGESTIONS = "last_ai_suggestions"


class LocalCache:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "Cache file unreadable, starting empty: %s",
                exc,
                extra={
                    "invoking_func": "LocalCache._read",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Overwrite on next write",
                    "resolution": f"Delete {self.path} if this keeps happening",
                },
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def saved_ids(self, key: str) -> Set[str]:
        value = self.get(key, [])
        return {str(v) for v in value} if isinstance(value, list) else set()

    def mark_saved(self, key: str, item_id: str) -> None:
        ids: List[str] = sorted(self.saved_ids(key) | {str(item_id)})
        self.set(key, ids)
