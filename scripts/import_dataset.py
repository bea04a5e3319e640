#!/usr/bin/env python3
"""
import_dataset.py

Purpose:
    Load a community recipe CSV export into `dataset_recipes`.

Usage:
    python scripts/import_dataset.py data/cookpad.csv --min-loves 20 --batch 500
"""

from __future__ import annotations

import argparse

from kitchen_assistant.config import get_supabase_client
from kitchen_assistant.datasets.community_csv import insert_dataset_rows, load_community_csv
from kitchen_assistant.logging_utils import get_logger

logger = get_logger("import_dataset")

MODULE_PURPOSE = "Command-line CSV import into dataset_recipes"


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("csv", help="Path to the recipe CSV export")
    ap.add_argument("--min-loves", type=int, default=0)
    ap.add_argument("--batch", type=int, default=500)
    args = ap.parse_args()

    rows = load_community_csv(args.csv, min_loves=args.min_loves)
    print(f"Prepared {len(rows)} recipes from {args.csv}")
    if not rows:
        print("Nothing to import.")
        return

    client = get_supabase_client()
    inserted = insert_dataset_rows(client, rows, batch=args.batch)
    logger.info(
        "Imported %d recipes from %s",
        inserted,
        args.csv,
        extra={"invoking_func": "main", "invoking_purpose": MODULE_PURPOSE},
    )
    print(f"Done. Inserted {inserted} recipes.")


if __name__ == "__main__":
    main()
