"""
embedding_sync.py

Purpose:
    Backfill `recipe_embeddings` for dataset recipes that have none yet, so
    the vector RPCs can find them.

    1) read the recipe ids that already have an embedding
    2) read popular dataset recipes, keep the missing ones
    3) embed title + ingredients + steps, upsert in batches with a pause

A failed batch is logged and recorded in SyncResult.errors; later batches
still run.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from supabase import Client

from kitchen_assistant.enrichment.embeddings import EmbeddingService, recipe_content
from kitchen_assistant.errors import StorageError
from kitchen_assistant.feature_flags import FeatureFlags
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query

logger = get_logger("embedding_sync")

MODULE_PURPOSE = "Backfill recipe_embeddings for dataset recipes"

EMBEDDINGS = "recipe_embeddings"
DATASET = "dataset_recipes"


@dataclass
class SyncResult:
    candidates: int = 0
    written: int = 0
    errors: List[str] = field(default_factory=list)


def sync_missing_embeddings(
    client: Client,
    service: EmbeddingService,
    flags: FeatureFlags,
    *,
    limit: int = 1000,
    batch: int = 50,
    min_loves: int = 50,
    delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    if not flags.dataset:
        logger.warning(
            "Dataset feature is disabled; syncing embeddings anyway",
            extra={
                "invoking_func": "sync_missing_embeddings",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Continue (maintenance run)",
            },
        )

    existing = run_query(
        client.table(EMBEDDINGS).select("recipe_id"),
        invoking_func="sync_missing_embeddings",
        purpose=MODULE_PURPOSE,
    )
    have = {r.get("recipe_id") for r in existing}

    rows = run_query(
        client.table(DATASET)
        .select("id,title,ingredients,steps,loves_count")
        .is_("user_id", "null")
        .gte("loves_count", min_loves)
        .order("loves_count", desc=True)
        .limit(limit),
        invoking_func="sync_missing_embeddings",
        purpose=MODULE_PURPOSE,
    )
    missing = [r for r in rows if r.get("id") not in have]
    logger.info(
        "%d of %d dataset recipes need embeddings",
        len(missing),
        len(rows),
        extra={"invoking_func": "sync_missing_embeddings", "invoking_purpose": MODULE_PURPOSE},
    )

    result = SyncResult(candidates=len(missing))
    size = max(1, batch)
    for start in range(0, len(missing), size):
        if start > 0 and delay > 0:
            sleep(delay)
        chunk = missing[start : start + size]
        updates: List[Dict[str, Any]] = []
        for r in chunk:
            content = recipe_content(r)
            updates.append({"recipe_id": r["id"], "content": content, "embedding": service.embed(content)})
        try:
            run_query(
                client.table(EMBEDDINGS).upsert(updates, on_conflict="recipe_id"),
                invoking_func="sync_missing_embeddings",
                purpose=MODULE_PURPOSE,
            )
        except StorageError as exc:
            result.errors.append(f"Batch {start // size + 1}: {exc}")
            logger.warning(
                "Embedding batch %d (%d recipes) failed: %s",
                start // size + 1,
                len(chunk),
                exc,
                extra={
                    "invoking_func": "sync_missing_embeddings",
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Continue with next batch",
                    "resolution": "Re-run the sync; rows already written are skipped",
                },
            )
            continue
        result.written += len(updates)

    logger.info(
        "Embedding sync finished: %d written, %d failed batch(es)",
        result.written,
        len(result.errors),
        extra={"invoking_func": "sync_missing_embeddings", "invoking_purpose": MODULE_PURPOSE},
    )
    return result
