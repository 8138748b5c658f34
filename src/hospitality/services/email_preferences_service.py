"""
Email preferences: one row per profile, created on first save.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select

from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import EmailPreferences, Profile
from hospitality.schemas import EmailPreferencesRecord, EmailPreferencesRequest
from hospitality.validation import NotFoundError

logger = get_logger(__name__)


class EmailPreferencesService:
    def __init__(self, store: Store):
        self.store = store

    def get_preferences(self, user_id: uuid.UUID) -> EmailPreferencesRecord | None:
        with self.store.session() as session:
            prefs = session.execute(
                select(EmailPreferences).where(EmailPreferences.user_id == user_id)
            ).scalar_one_or_none()
            return EmailPreferencesRecord.model_validate(prefs) if prefs else None

    def get_effective_preferences(self, user_id: uuid.UUID) -> EmailPreferencesRecord:
        """Saved preferences, or the defaults when the profile never saved any."""
        return self.get_preferences(user_id) or EmailPreferencesRecord(user_id=user_id)

    def update_preferences(
        self, user_id: uuid.UUID, partial: dict[str, Any] | EmailPreferencesRequest
    ) -> EmailPreferencesRecord:
        """
        Upsert keyed by ``user_id``. Only the supplied fields change.
        """
        if not isinstance(partial, EmailPreferencesRequest):
            partial = EmailPreferencesRequest.model_validate(partial)
        changes = partial.model_dump(exclude_unset=True)

        with self.store.session() as session:
            if session.get(Profile, user_id) is None:
                raise NotFoundError(f"Profilo {user_id} non trovato")
            prefs = session.execute(
                select(EmailPreferences).where(EmailPreferences.user_id == user_id)
            ).scalar_one_or_none()
            if prefs is None:
                prefs = EmailPreferences(
                    user_id=user_id,
                    receive_check_in_notifications=True,
                    receive_check_out_notifications=True,
                    receive_daily_reports=True,
                    receive_system_alerts=True,
                    email_frequency="real_time",
                )
                session.add(prefs)
            for key, value in changes.items():
                if value is None and key.startswith("receive_"):
                    continue
                if value is None and key == "email_frequency":
                    continue
                setattr(prefs, key, value)
            session.flush()
            record = EmailPreferencesRecord.model_validate(prefs)

        logger.info(f"Saved email preferences for {user_id}: {sorted(changes)}")
        return record
