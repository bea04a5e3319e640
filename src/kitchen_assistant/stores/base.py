"""
base.py

Purpose:
    Shared plumbing for the Supabase storage proxies: run a query, log a
    failure once in the project format, and re-raise it as StorageError.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from kitchen_assistant.errors import StorageError
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("stores")


def run_query(
    query: Any,
    *,
    invoking_func: str,
    purpose: str,
    user_message: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Execute a postgrest query builder and return `data` as a list."""
    try:
        res = query.execute()
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "Storage call failed: %s",
            exc,
            extra={
                "invoking_func": invoking_func,
                "invoking_purpose": purpose,
                "next_step": "Surface error to caller",
                "resolution": "Check SUPABASE_URL / key and row-level security policies",
            },
        )
        raise StorageError(f"{invoking_func} failed: {exc}", user_message=user_message) from exc

    data = res.data
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)
