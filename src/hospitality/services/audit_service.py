"""
Audit Service - append-only history of actions taken on guests.

Rows are written once inside the transaction of the change they describe.
There is no update or delete API.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from hospitality.constants import AUDIT_LOG_DEFAULT_LIMIT, AuditAction
from hospitality.datetime_utils import as_utc
from hospitality.db import Store
from hospitality.models import AuditLog, Guest, Profile, Room
from hospitality.schemas import AuditLogRecord


def _snapshot_name(row: AuditLog) -> str | None:
    data = row.new_data or row.old_data or {}
    first = data.get("first_name")
    last = data.get("last_name")
    if first or last:
        return f"{first or ''} {last or ''}".strip()
    return None


class AuditService:
    """Writes and reads audit rows."""

    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def record(
        session: Session,
        guest_id: uuid.UUID,
        user_id: uuid.UUID | None,
        action: AuditAction,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> AuditLog:
        """
        Append one audit row inside the caller's transaction.
        """
        row = AuditLog(
            guest_id=guest_id,
            user_id=user_id,
            action=action.value,
            old_data=old_data,
            new_data=new_data,
        )
        session.add(row)
        return row

    def _base_query(self):
        return (
            select(
                AuditLog,
                Profile.full_name,
                Profile.email,
                Guest.first_name,
                Guest.last_name,
                Room.name,
            )
            .outerjoin(Profile, Profile.id == AuditLog.user_id)
            .outerjoin(Guest, Guest.id == AuditLog.guest_id)
            .outerjoin(Room, Room.id == Guest.room_id)
        )

    @staticmethod
    def _to_record(result) -> AuditLogRecord:
        row, full_name, email, first_name, last_name, room_name = result
        record = AuditLogRecord.model_validate(row)
        guest_name = f"{first_name} {last_name}".strip() if first_name is not None else None
        return record.model_copy(
            update={
                "user_name": full_name or email,
                "user_email": email,
                "guest_name": guest_name or _snapshot_name(row),
                "room_name": room_name,
            }
        )

    def get_guest_audit_log(self, guest_id: uuid.UUID) -> list[AuditLogRecord]:
        """Audit rows for one guest, newest first."""
        with self.store.session() as session:
            results = session.execute(
                self._base_query()
                .where(AuditLog.guest_id == guest_id)
                .order_by(AuditLog.created_at.desc())
            ).all()
            return [self._to_record(result) for result in results]

    def get_all_audit_logs(self, limit: int = AUDIT_LOG_DEFAULT_LIMIT) -> list[AuditLogRecord]:
        """Most recent audit rows across all guests, with actor and guest names."""
        with self.store.session() as session:
            results = session.execute(
                self._base_query().order_by(AuditLog.created_at.desc()).limit(limit)
            ).all()
            return [self._to_record(result) for result in results]

    def get_actions_between(
        self,
        start: datetime,
        end: datetime,
        actions: tuple[AuditAction, ...] = (AuditAction.CHECK_IN, AuditAction.CHECK_OUT),
    ) -> list[AuditLogRecord]:
        """Rows with one of ``actions`` created in ``[start, end)``, oldest first."""
        with self.store.session() as session:
            results = session.execute(
                self._base_query()
                .where(AuditLog.action.in_([action.value for action in actions]))
                .where(AuditLog.created_at >= as_utc(start))
                .where(AuditLog.created_at < as_utc(end))
                .order_by(AuditLog.created_at)
            ).all()
            return [self._to_record(result) for result in results]

    def get_recent_by_user(
        self, user_id: uuid.UUID, action: AuditAction, limit: int
    ) -> list[AuditLogRecord]:
        with self.store.session() as session:
            results = session.execute(
                self._base_query()
                .where(AuditLog.user_id == user_id)
                .where(AuditLog.action == action.value)
                .order_by(AuditLog.created_at.desc())
                .limit(limit)
            ).all()
            return [self._to_record(result) for result in results]
