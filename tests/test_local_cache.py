"""
JSON-file cache for saved ids and the last suggestion batch.
"""
from kitchen_assistant.stores.local_cache import SAVED_AI_RECIPES, LocalCache


def test_values_persist_across_instances(tmp_path):
    path = tmp_path / "nested" / "cache.json"
    LocalCache(path).set("answer", {"a": [1, 2]})

    assert LocalCache(path).get("answer") == {"a": [1, 2]}


def test_delete_and_default(cache):
    cache.set("k", 1)
    cache.delete("k")
    cache.delete("never-set")

    assert cache.get("k", "missing") == "missing"


def test_mark_saved_is_idempotent(cache):
    cache.mark_saved(SAVED_AI_RECIPES, "ai-1")
    cache.mark_saved(SAVED_AI_RECIPES, "ai-1")
    cache.mark_saved(SAVED_AI_RECIPES, "ai-2")

    assert cache.saved_ids(SAVED_AI_RECIPES) == {"ai-1", "ai-2"}
    assert cache.get(SAVED_AI_RECIPES) == ["ai-1", "ai-2"]


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    cache = LocalCache(path)

    assert cache.get("anything") is None
    cache.set("k", "v")
    assert LocalCache(path).get("k") == "v"


def test_non_list_saved_ids(cache):
    cache.set(SAVED_AI_RECIPES, "oops")

    assert cache.saved_ids(SAVED_AI_RECIPES) == set()
