"""
Settings come from environment variables; clients are built from them.
"""
import dataclasses
from pathlib import Path

import pytest

from kitchen_assistant.config import (
    DEFAULT_CACHE_PATH,
    DEFAULT_OPENAI_MODEL,
    AppSettings,
    get_openai_client,
    get_supabase_client,
    load_settings,
)
from kitchen_assistant.errors import ConfigError

ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "KITCHEN_CACHE_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_settings_reads_environment(clean_env, tmp_path):
    clean_env.setenv("SUPABASE_URL", "https://example.supabase.co")
    clean_env.setenv("SUPABASE_ANON_KEY", "anon")
    clean_env.setenv("OPENAI_API_KEY", "sk-test")
    clean_env.setenv("KITCHEN_CACHE_PATH", str(tmp_path / "c.json"))

    settings = load_settings()

    assert settings.supabase_url == "https://example.supabase.co"
    assert settings.supabase_key == "anon"
    assert settings.openai_api_key == "sk-test"
    assert settings.openai_model == DEFAULT_OPENAI_MODEL
    assert settings.cache_path == Path(tmp_path / "c.json")


def test_settings_fields_are_all_consumed():
    assert [f.name for f in dataclasses.fields(AppSettings)] == [
        "supabase_url",
        "supabase_key",
        "openai_api_key",
        "openai_model",
        "cache_path",
    ]


def test_blank_openai_key_means_no_client(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "   ")

    settings = load_settings()

    assert settings.openai_api_key is None
    assert settings.cache_path == DEFAULT_CACHE_PATH
    assert get_openai_client(settings) is None


def test_supabase_client_requires_url_and_key(clean_env):
    with pytest.raises(ConfigError):
        get_supabase_client(load_settings())
