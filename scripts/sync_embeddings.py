#!/usr/bin/env python3
"""Backfill embeddings for community dataset recipes.

Assumes the database has:
  - recipe_embeddings(recipe_id unique, content text, embedding vector(384))
  - the `generate-embedding` edge function (otherwise hash embeddings are used)

It will:
  1) find dataset recipes without a recipe_embeddings row
  2) embed title + ingredients + steps
  3) upsert in batches with a short pause between batches
"""

from __future__ import annotations

import argparse

from kitchen_assistant.config import get_supabase_client
from kitchen_assistant.enrichment.embedding_sync import sync_missing_embeddings
from kitchen_assistant.enrichment.embeddings import EmbeddingService
from kitchen_assistant.feature_flags import load_feature_flags


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--limit", type=int, default=1000)
    ap.add_argument("--batch", type=int, default=50)
    ap.add_argument("--min-loves", type=int, default=50)
    ap.add_argument("--delay", type=float, default=0.1, help="Seconds to wait between batches")
    args = ap.parse_args()

    client = get_supabase_client()
    flags = load_feature_flags(client)

    result = sync_missing_embeddings(
        client,
        EmbeddingService(client),
        flags,
        limit=args.limit,
        batch=args.batch,
        min_loves=args.min_loves,
        delay=args.delay,
    )
    for err in result.errors:
        print(f"  ! {err}")
    print(f"Done. Wrote {result.written} of {result.candidates} embeddings ({len(result.errors)} failed batches).")


if __name__ == "__main__":
    main()
