"""
community_csv.py

Purpose:
    Load a community recipe export (CSV) and insert it into
    `dataset_recipes` as shared rows (user_id NULL).

Key points:
1. Column names differ between exports, so they are normalised and matched
   against synonym tuples (e.g. "Title", "recipe name", "judul" -> title).
2. Ingredients and steps are kept as free-text blobs; parsing happens at
   read time (domain.parsing).
3. Rows without a title or ingredients are skipped; loves below the floor
   are skipped.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from supabase import Client

from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query

logger = get_logger("community_csv")

MODULE_PURPOSE = "Load a community recipe CSV into dataset_recipes"

TABLE = "dataset_recipes"


def _normalize_col_name(col: str) -> str:
    """
    Normalize column names so they match across exports.
    Examples:
      "Recipe Name" -> "recipe_name"
      "Loves-Count" -> "loves_count"
    """
    c = str(col).strip().lower()
    for ch in [" ", "-", ".", "(", ")", "[", "]"]:
        c = c.replace(ch, "_")
    while "__" in c:
        c = c.replace("__", "_")
    return c.strip("_")


# Canonical field synonyms (normalized), first match wins
TITLE_COLS = ("title", "name", "recipe_name", "judul")
INGREDIENTS_COLS = ("ingredients", "ingredient_list", "cleaned_ingredients", "bahan")
STEPS_COLS = ("steps", "instructions", "directions", "method", "langkah")
LOVES_COLS = ("loves", "loves_count", "likes", "like_count")
URL_COLS = ("url", "link", "source_url")


def _find_col(norm_to_orig: Dict[str, str], candidates: Sequence[str]) -> Optional[str]:
    for cand in candidates:
        if cand in norm_to_orig:
            return norm_to_orig[cand]
    return None


def _text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def _loves(value: Any) -> int:
    s = _text(value).replace(",", "")
    try:
        return int(float(s)) if s else 0
    except ValueError:
        return 0


def rows_from_frame(df: pd.DataFrame, min_loves: int = 0) -> List[Dict[str, Any]]:
    norm_to_orig = {_normalize_col_name(c): c for c in df.columns}
    title_col = _find_col(norm_to_orig, TITLE_COLS)
    ingredients_col = _find_col(norm_to_orig, INGREDIENTS_COLS)
    steps_col = _find_col(norm_to_orig, STEPS_COLS)
    loves_col = _find_col(norm_to_orig, LOVES_COLS)
    url_col = _find_col(norm_to_orig, URL_COLS)

    if not title_col or not ingredients_col:
        raise ValueError(f"CSV needs a title and an ingredients column, got {list(df.columns)}")

    rows: List[Dict[str, Any]] = []
    skipped = 0
    for _, rec in df.iterrows():
        title = _text(rec.get(title_col))
        ingredients = _text(rec.get(ingredients_col))
        loves = _loves(rec.get(loves_col)) if loves_col else 0
        if not title or not ingredients or loves < min_loves:
            skipped += 1
            continue
        rows.append(
            {
                "title": title,
                "ingredients": ingredients,
                "steps": _text(rec.get(steps_col)) if steps_col else "",
                "loves_count": loves,
                "url": (_text(rec.get(url_col)) or None) if url_col else None,
                "user_id": None,
            }
        )

    logger.info(
        "Prepared %d dataset rows (%d skipped)",
        len(rows),
        skipped,
        extra={"invoking_func": "rows_from_frame", "invoking_purpose": MODULE_PURPOSE},
    )
    return rows


def load_community_csv(path: str, min_loves: int = 0) -> List[Dict[str, Any]]:
    df = pd.read_csv(path)
    return rows_from_frame(df, min_loves=min_loves)


def insert_dataset_rows(client: Client, rows: List[Dict[str, Any]], batch: int = 500) -> int:
    inserted = 0
    size = max(1, batch)
    for start in range(0, len(rows), size):
        chunk = rows[start : start + size]
        run_query(
            client.table(TABLE).insert(chunk),
            invoking_func="insert_dataset_rows",
            purpose=MODULE_PURPOSE,
        )
        inserted += len(chunk)
        logger.info(
            "Inserted %d/%d dataset rows",
            inserted,
            len(rows),
            extra={"invoking_func": "insert_dataset_rows", "invoking_purpose": MODULE_PURPOSE},
        )
    return inserted
