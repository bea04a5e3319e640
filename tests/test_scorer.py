"""
Ingredient overlap scoring between a recipe and the pantry.
"""
import pytest

from kitchen_assistant.matching.scorer import is_similar_ingredient, score_match


def test_full_matches_count_once_each():
    result = score_match(["ayam", "bawang putih", "garam"], ["Ayam", "Bawang Putih"])

    assert result.score == pytest.approx(2 / 3)
    assert result.matched == ["ayam", "bawang putih"]
    assert result.reasons == ["Uses your ingredients: ayam, bawang putih"]


def test_synonym_counts_as_full_match():
    result = score_match(["chicken breast"], ["ayam"])

    assert result.score == 1.0
    assert result.matched == ["chicken breast"]


def test_pantry_word_inside_recipe_name_is_partial():
    result = score_match(["kecap manis"], ["gula manis"])

    assert result.score == pytest.approx(0.5)
    assert result.matched == []
    assert result.reasons == ["Partially matches 1 more ingredient(s)"]


def test_short_words_do_not_partially_match():
    result = score_match(["kecap manis"], ["es"])

    assert result.score == 0.0


def test_empty_recipe_scores_zero():
    result = score_match([], ["ayam"])

    assert result.score == 0.0
    assert result.reasons == []


def test_score_never_exceeds_one():
    result = score_match(["ayam", "ayam goreng"], ["ayam", "chicken", "ayam goreng"])

    assert result.score <= 1.0


def test_reason_lists_at_most_three_ingredients():
    result = score_match(["ayam", "tomat", "garam", "gula"], ["ayam", "tomat", "garam", "gula"])

    assert result.reasons[0] == "Uses your ingredients: ayam, tomat, garam"


def test_is_similar_ingredient():
    assert is_similar_ingredient("cabe rawit", "chili")
    assert is_similar_ingredient("Nasi", "beras merah")
    assert not is_similar_ingredient("ayam", "tomat")
    assert not is_similar_ingredient("", "ayam")
