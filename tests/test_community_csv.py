"""
Community CSV import: column synonyms, row filtering, batched inserts.
"""
import pandas as pd
import pytest

from kitchen_assistant.datasets.community_csv import (
    _normalize_col_name,
    insert_dataset_rows,
    load_community_csv,
    rows_from_frame,
)


def test_normalize_col_name():
    assert _normalize_col_name(" Recipe Name ") == "recipe_name"
    assert _normalize_col_name("Loves-Count") == "loves_count"
    assert _normalize_col_name("Ingredients (raw)") == "ingredients_raw"


def test_rows_from_frame_maps_synonyms_and_filters():
    df = pd.DataFrame(
        {
            "Judul": ["Soto Ayam", "Es Teh", None, "Rendang"],
            "Bahan": ["ayam, kunyit", "teh, gula", "x", None],
            "Langkah": ["Rebus ayam", None, "y", "z"],
            "Likes": ["1,200", 3, 10, 50],
            "URL": ["https://contoh.id/soto", None, None, None],
        }
    )

    rows = rows_from_frame(df, min_loves=5)

    assert rows == [
        {
            "title": "Soto Ayam",
            "ingredients": "ayam, kunyit",
            "steps": "Rebus ayam",
            "loves_count": 1200,
            "url": "https://contoh.id/soto",
            "user_id": None,
        }
    ]


def test_missing_required_columns():
    with pytest.raises(ValueError):
        rows_from_frame(pd.DataFrame({"title": ["A"]}))


def test_load_csv_file(tmp_path):
    path = tmp_path / "recipes.csv"
    path.write_text("Title,Ingredients,Steps,Loves\nNasi Goreng,\"nasi, telur\",Goreng nasi,42\n", encoding="utf-8")

    rows = load_community_csv(str(path))

    assert rows[0]["title"] == "Nasi Goreng"
    assert rows[0]["ingredients"] == "nasi, telur"
    assert rows[0]["loves_count"] == 42
    assert rows[0]["url"] is None


def test_insert_in_batches(fake_client):
    rows = [{"title": f"R{i}", "ingredients": "x", "user_id": None} for i in range(5)]

    inserted = insert_dataset_rows(fake_client, rows, batch=2)

    assert inserted == 5
    assert fake_client.calls == [("dataset_recipes", "insert")] * 3
    assert len(fake_client.rows("dataset_recipes")) == 5
