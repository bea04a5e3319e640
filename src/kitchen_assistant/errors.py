"""
errors.py

Purpose:
    The few exception types the assistant raises. Every one of them carries a
    short `user_message` that a UI can show as-is; callers that only want a
    string use `str(exc.user_message)`.
"""
from __future__ import annotations

from typing import Optional


class KitchenAssistantError(RuntimeError):
    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class ConfigError(KitchenAssistantError):
    default_user_message = "The application is not configured correctly."


class StorageError(KitchenAssistantError):
    default_user_message = "Could not reach the database. Please try again."


class ModelResponseError(KitchenAssistantError):
    default_user_message = "The AI returned an unreadable answer. Please try again."


class ValidationError(KitchenAssistantError):
    default_user_message = "Please check the form and try again."


def is_unique_violation(exc: BaseException, constraint: Optional[str] = None) -> bool:
    """True when a storage error is a Postgres unique-constraint violation.

    PostgREST errors expose `code`/`message`; edge and auth errors sometimes
    only have a string `body`. All three are checked.
    """
    if getattr(exc, "code", None) == "23505":
        return True

    texts = [str(getattr(exc, "message", "") or ""), str(exc)]
    body = getattr(exc, "body", None)
    if isinstance(body, str):
        texts.append(body)

    for text in texts:
        if "duplicate key value violates unique constraint" in text:
            if constraint is None or constraint in text:
                return True
        if constraint and constraint in text:
            return True
    return False
