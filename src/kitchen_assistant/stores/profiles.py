"""
profiles.py

Purpose:
    User profile (`user_profiles`) and feedback (`user_feedback`) persistence.

    A duplicate username is reported by Postgres as a unique violation on
    `user_profiles_username_key`; it is mapped to ValidationError so a UI can
    show "Username already taken".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from supabase import Client

from kitchen_assistant.errors import StorageError, ValidationError, is_unique_violation
from kitchen_assistant.logging_utils import get_logger
from kitchen_assistant.stores.base import run_query

logger = get_logger("profiles")

MODULE_PURPOSE = "User profile and feedback persistence"

PROFILES = "user_profiles"
FEEDBACK = "user_feedback"
USERNAME_CONSTRAINT = "user_profiles_username_key"


@dataclass
class UserProfile:
    user_id: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id") or "",
            username=row.get("username"),
            full_name=row.get("full_name"),
        )

    @property
    def display_name(self) -> str:
        return self.username or self.full_name or ""


class ProfileStore:
    def __init__(self, client: Client, user_id: str) -> None:
        self.client = client
        self.user_id = user_id

    def get_or_create(self) -> UserProfile:
        rows = run_query(
            self.client.table(PROFILES).select("*").eq("user_id", self.user_id).limit(1),
            invoking_func="ProfileStore.get_or_create",
            purpose=MODULE_PURPOSE,
            user_message="Could not load your profile.",
        )
        if rows:
            return UserProfile.from_row(rows[0])

        rows = run_query(
            self.client.table(PROFILES).insert({"user_id": self.user_id}),
            invoking_func="ProfileStore.get_or_create",
            purpose=MODULE_PURPOSE,
            user_message="Could not create your profile.",
        )
        logger.info(
            "Created profile for user %s",
            self.user_id,
            extra={"invoking_func": "ProfileStore.get_or_create", "invoking_purpose": MODULE_PURPOSE},
        )
        return UserProfile.from_row(rows[0]) if rows else UserProfile(user_id=self.user_id)

    def _update(self, updates: Dict[str, Any], invoking_func: str) -> UserProfile:
        rows = run_query(
            self.client.table(PROFILES).update(updates).eq("user_id", self.user_id),
            invoking_func=invoking_func,
            purpose=MODULE_PURPOSE,
            user_message="Could not update your profile.",
        )
        if not rows:
            raise StorageError("Profile not found", user_message="Could not update your profile.")
        return UserProfile.from_row(rows[0])

    def update_username(self, username: str) -> UserProfile:
        value = (username or "").strip() or None
        try:
            return self._update({"username": value}, "ProfileStore.update_username")
        except StorageError as exc:
            if exc.__cause__ is not None and is_unique_violation(exc.__cause__, USERNAME_CONSTRAINT):
                logger.warning(
                    "Username already exists: %s",
                    value,
                    extra={
                        "invoking_func": "ProfileStore.update_username",
                        "invoking_purpose": MODULE_PURPOSE,
                        "next_step": "Ask the user for another username",
                    },
                )
                raise ValidationError(
                    f"Username {value!r} already taken",
                    user_message="Username already taken. Please choose another one.",
                ) from exc
            raise

    def update_full_name(self, full_name: str) -> UserProfile:
        return self._update({"full_name": (full_name or "").strip() or None}, "ProfileStore.update_full_name")

    def submit_feedback(
        self,
        text: str,
        email: Optional[str] = None,
        page_url: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        body = (text or "").strip()
        if not body:
            raise ValidationError("Empty feedback", user_message="Please enter your feedback.")
        run_query(
            self.client.table(FEEDBACK).insert(
                {
                    "user_id": self.user_id or None,
                    "feedback_text": body,
                    "user_email": (email or "").strip() or None,
                    "page_url": page_url,
                    "user_agent": user_agent,
                }
            ),
            invoking_func="ProfileStore.submit_feedback",
            purpose=MODULE_PURPOSE,
            user_message="Could not send your feedback.",
        )
