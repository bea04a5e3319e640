"""
Extraction of JSON objects from free-text model replies.
"""
import pytest

from kitchen_assistant.errors import ModelResponseError
from kitchen_assistant.llm.model_json import clean_json_text, parse_model_json


def test_fenced_block_is_preferred():
    text = 'Here you go:\n```json\n{"recipes": [{"name": "Soto Ayam"}]}\n```\nEnjoy {not this}'

    data = parse_model_json(text, required_key="recipes")

    assert data["recipes"][0]["name"] == "Soto Ayam"


def test_fence_without_language_tag():
    data = parse_model_json('```\n{"recipes": []}\n```', required_key="recipes")

    assert data == {"recipes": []}


def test_bare_object_with_comments_and_trailing_commas():
    text = 'Sure! {"recipes": [ // the list\n {"name": "Nasi Goreng",},\n]} thanks'

    data = parse_model_json(text, required_key="recipes")

    assert data["recipes"] == [{"name": "Nasi Goreng"}]


def test_urls_inside_strings_survive_cleaning():
    raw = '{"url": "https://example.com/resep"}'

    assert clean_json_text(raw) == raw


def test_no_json_raises():
    with pytest.raises(ModelResponseError):
        parse_model_json("Sorry, I cannot help with that.")


def test_empty_text_raises():
    with pytest.raises(ModelResponseError):
        parse_model_json("   ")
    with pytest.raises(ModelResponseError):
        parse_model_json(None)


def test_invalid_json_raises():
    with pytest.raises(ModelResponseError):
        parse_model_json("{name: Nasi Goreng}")


def test_missing_required_list_raises():
    with pytest.raises(ModelResponseError):
        parse_model_json('{"recipes": "none"}', required_key="recipes")
    with pytest.raises(ModelResponseError):
        parse_model_json('{"items": []}', required_key="recipes")
