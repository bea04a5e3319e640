"""
logging_utils.py

Central logging utilities for the Kitchen Assistant project.

Log format (one line):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>
"""

from __future__ import annotations

import datetime
import logging
import os
import uuid
from typing import Dict

RUN_ID: str = uuid.uuid4().hex[:8]


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that emits a single '|' separated line conforming
    to the project log template.
    """

    # High-level purposes by module name
    MODULE_PURPOSES: Dict[str, str] = {
        "config": "Create Supabase / OpenAI clients from environment variables",
        "feature_flags": "Load feature toggles once from the feature_flags table",
        "base": "Run Supabase queries and map failures to StorageError",
        "ingredients": "Pantry ingredient CRUD against Supabase",
        "recipes": "User recipe + recipe_ingredients CRUD against Supabase",
        "weekly_plans": "Persist weekly plans (delete-by-week then insert)",
        "profiles": "User profile and feedback persistence",
        "local_cache": "JSON-file key/value cache for saved ids and suggestions",
        "model_json": "Extract JSON payloads from free-text model responses",
        "generator": "Generate / refine recipes with the generative-AI API",
        "embeddings": "Text embeddings via serverless function with hash fallback",
        "dataset": "Community dataset recommendations by ingredient match",
        "suggestions": "AI recipe suggestions from pantry ingredients",
        "rag": "Vector-search recommendations with optional AI refinement",
        "weekly_planner": "Fill a 7-day x 3-slot plan from owned/dataset/AI/fallback recipes",
        "shopping_list": "Aggregate plan ingredients into a shopping list",
        "community_csv": "Load a community recipe CSV into dataset_recipes",
        "embedding_sync": "Backfill recipe_embeddings for dataset recipes",
        "import_dataset": "Command-line CSV import into dataset_recipes",
        "sync_embeddings": "Command-line embedding backfill",
        "plan_week": "Command-line weekly plan generation",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        """Format log record into structured pipe-delimited format."""
        dt = datetime.datetime.fromtimestamp(record.created)
        date_str = dt.strftime("%Y-%m-%d")
        time_str = dt.strftime("%H:%M:%S")

        run_id = getattr(record, "run_id", RUN_ID)

        level = record.levelname
        code_location = f"{record.filename}:{record.lineno}"
        func_name = record.funcName
        module_name = record.module
        module_purpose = self.MODULE_PURPOSES.get(module_name, "")

        # Optional extra context supplied via logger calls
        invoking_func = getattr(record, "invoking_func", "")
        invoking_purpose = getattr(record, "invoking_purpose", "")
        next_step = getattr(record, "next_step", "")
        resolution = getattr(record, "resolution", "")

        detail = record.getMessage()
        if record.exc_info:
            detail = f"{detail} | EXC={record.exc_info[1]!r}"

        return (
            f"{run_id}|{date_str}|{time_str}|{level}|{code_location}|"
            f"{module_name}.{func_name}|{module_purpose}|"
            f"{invoking_func}|{invoking_purpose}|"
            f"{detail}|{next_step}|{resolution}|<END>"
        )


def init_logging(level: int | str | None = None) -> None:
    """
    Initialize root logger once with our StructuredFormatter.

    Call get_logger() from modules instead of calling logging.basicConfig()
    everywhere, so configuration stays central.
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured (REPL, pytest, host application)
        return

    if level is None:
        level = os.getenv("KITCHEN_LOG_LEVEL", "INFO").upper()

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(level)

    # supabase-py logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger configured with structured formatting.

    Usage:
        logger = get_logger("my_module")
        logger.info(
            "Something happened",
            extra={
                "invoking_func": "some_function",
                "invoking_purpose": "High-level purpose",
                "next_step": "What happens next",
                "resolution": "How to fix if error",
            },
        )
    """
    init_logging()
    return logging.getLogger(name)
