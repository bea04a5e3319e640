"""
config.py

Purpose:
    Build the Supabase client and the OpenAI client from environment
    variables. Client connection details are never hardcoded.

Usage:
    from kitchen_assistant.config import get_supabase_client, load_settings
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI
from supabase import Client, create_client

from kitchen_assistant.errors import ConfigError

load_dotenv()  # loads .env

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_CACHE_PATH = Path.home() / ".kitchen_assistant" / "cache.json"


@dataclass
class AppSettings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    openai_api_key: Optional[str]
    openai_model: str = DEFAULT_OPENAI_MODEL
    cache_path: Path = DEFAULT_CACHE_PATH


def load_settings() -> AppSettings:
    """Read settings from the environment (.env already loaded)."""
    key = (
        os.getenv("SUPABASE_KEY")
        or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        or os.getenv("SUPABASE_ANON_KEY")
    )
    openai_key = os.getenv("OPENAI_API_KEY")
    if openai_key is not None and not openai_key.strip():
        openai_key = None

    cache_path = os.getenv("KITCHEN_CACHE_PATH")
    return AppSettings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=key,
        openai_api_key=openai_key,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        cache_path=Path(cache_path).expanduser() if cache_path else DEFAULT_CACHE_PATH,
    )


def get_supabase_client(settings: Optional[AppSettings] = None) -> Client:
    """Create a Supabase client using env vars."""
    settings = settings or load_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(settings.supabase_url, settings.supabase_key)


def get_openai_client(settings: Optional[AppSettings] = None) -> Optional[OpenAI]:
    """OpenAI client, or None when no API key is configured (AI features off)."""
    settings = settings or load_settings()
    if not settings.openai_api_key:
        return None
    return OpenAI(api_key=settings.openai_api_key)
