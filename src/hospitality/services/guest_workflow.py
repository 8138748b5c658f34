"""
Guest Workflow - check-in and check-out with audit trail and admin email.

The guest mutation and its audit row commit together. The admin notification
is handed to a deferrer and runs after the response; its failures are logged
and never reach the caller.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from hospitality.constants import (
    DEFAULT_HOSTESS_NAME,
    UNKNOWN_ROOM_NAME,
    AuditAction,
    NotificationType,
    RealtimeEventType,
)
from hospitality.datetime_utils import as_utc, format_clock, utcnow
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import Profile
from hospitality.schemas import GuestRecord, GuestView
from hospitality.services.audit_service import AuditService
from hospitality.services.email_service import EmailService
from hospitality.services.guest_service import GuestService, guest_snapshot
from hospitality.services.profile_service import ProfileService
from hospitality.validation import ValidationError

logger = get_logger(__name__)


def format_duration(minutes: int) -> str:
    """``"45m"`` under an hour, ``"2h 5m"`` otherwise."""
    minutes = max(int(minutes), 0)
    if minutes < 60:
        return f"{minutes}m"
    return f"{minutes // 60}h {minutes % 60}m"


def stay_minutes(checked_in_at: datetime | None, now: datetime) -> int:
    """Whole minutes between check-in and ``now``; 0 when never checked in."""
    if checked_in_at is None:
        return 0
    return round((as_utc(now) - as_utc(checked_in_at)).total_seconds() / 60)


class TimerDeferrer:
    """
    Runs tasks on daemon timer threads after ``delay`` seconds.

    Handles are kept so tests and shutdown hooks can wait for them.
    """

    def __init__(self, delay: float = 0.1):
        self.delay = delay
        self._timers: list[threading.Timer] = []
        self._lock = threading.Lock()

    def defer(self, task: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(self.delay, task)
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        return timer

    def join(self, timeout: float | None = None) -> None:
        with self._lock:
            timers = list(self._timers)
        for timer in timers:
            timer.join(timeout)


class ImmediateDeferrer:
    """Runs deferred tasks inline. Used by the CLI and in tests."""

    def defer(self, task: Callable[[], None]) -> None:
        task()

    def join(self, timeout: float | None = None) -> None:
        return None


@dataclass
class WorkflowResult:
    success: bool
    guest: GuestRecord | None = None
    error: str | None = None


class GuestWorkflow:
    def __init__(
        self,
        store: Store,
        guest_service: GuestService,
        email_service: EmailService,
        profile_service: ProfileService,
        deferrer: TimerDeferrer | ImmediateDeferrer | None = None,
    ):
        self.store = store
        self.guest_service = guest_service
        self.email_service = email_service
        self.profile_service = profile_service
        self.deferrer = deferrer or TimerDeferrer()

    def _actor_name(self, actor_id: uuid.UUID) -> str:
        with self.store.session() as session:
            profile = session.get(Profile, actor_id)
            if profile is None or not profile.full_name:
                return DEFAULT_HOSTESS_NAME
            return profile.full_name

    def check_in_guest_with_notification(
        self, guest_id: uuid.UUID, actor_id: uuid.UUID
    ) -> WorkflowResult:
        """
        Check the guest in, append the ``check_in`` audit row in the same
        transaction and schedule the admin notification.
        """
        try:
            view = self.guest_service.get_guest_view(guest_id)
            hostess_name = self._actor_name(actor_id)

            with self.store.session() as session:
                old, guest = self.guest_service.apply_check_in(session, guest_id, actor_id)
                new = guest_snapshot(guest)
                AuditService.record(
                    session,
                    guest_id,
                    actor_id,
                    AuditAction.CHECK_IN,
                    old_data={"checked_in": old["checked_in"], "checked_in_at": old["checked_in_at"]},
                    new_data={"checked_in": True, "checked_in_at": new["checked_in_at"]},
                )
                record = GuestRecord.model_validate(guest)
        except (ValidationError, SQLAlchemyError) as e:
            logger.warning(f"Check-in of guest {guest_id} failed: {e}")
            return WorkflowResult(success=False, error=str(e) or "Errore durante check-in")

        self.guest_service.publish_change(RealtimeEventType.UPDATE, new=new, old=old)
        logger.info(f"Guest {guest_id} checked in by {actor_id}")

        data = {
            "guest_name": view.full_name,
            "room_name": view.room_name or UNKNOWN_ROOM_NAME,
            "table_number": view.table_number,
            "hostess_name": hostess_name,
            "check_in_time": format_clock(as_utc(record.checked_in_at).astimezone()),
        }
        self.deferrer.defer(lambda: self._notify(NotificationType.GUEST_CHECK_IN, data))
        return WorkflowResult(success=True, guest=record)

    def check_out_guest_with_notification(
        self, guest_id: uuid.UUID, actor_id: uuid.UUID
    ) -> WorkflowResult:
        """
        Check the guest out, record the ``check_out`` audit row with the prior
        state and schedule the admin notification with the length of stay.
        """
        try:
            view = self.guest_service.get_guest_view(guest_id)
            hostess_name = self._actor_name(actor_id)
            checked_out_at = utcnow()
            duration = format_duration(stay_minutes(view.checked_in_at, checked_out_at))

            with self.store.session() as session:
                old, guest = self.guest_service.apply_check_out(session, guest_id)
                new = guest_snapshot(guest)
                AuditService.record(
                    session,
                    guest_id,
                    actor_id,
                    AuditAction.CHECK_OUT,
                    old_data={"checked_in": old["checked_in"], "checked_in_at": old["checked_in_at"]},
                    new_data={"checked_in": False, "checked_in_at": None},
                )
                record = GuestRecord.model_validate(guest)
        except (ValidationError, SQLAlchemyError) as e:
            logger.warning(f"Check-out of guest {guest_id} failed: {e}")
            return WorkflowResult(success=False, error=str(e) or "Errore durante check-out")

        self.guest_service.publish_change(RealtimeEventType.UPDATE, new=new, old=old)
        logger.info(f"Guest {guest_id} checked out by {actor_id} after {duration}")

        data = {
            "guest_name": view.full_name,
            "room_name": view.room_name or UNKNOWN_ROOM_NAME,
            "hostess_name": hostess_name,
            "check_out_time": format_clock(checked_out_at.astimezone()),
            "duration": duration,
        }
        self.deferrer.defer(lambda: self._notify(NotificationType.GUEST_CHECK_OUT, data))
        return WorkflowResult(success=True, guest=record)

    def _notify(self, notification_type: NotificationType, data: dict[str, Any]) -> None:
        try:
            recipients = self.profile_service.resolve_notification_recipients(notification_type)
            if not recipients:
                return
            if notification_type == NotificationType.GUEST_CHECK_IN:
                self.email_service.send_check_in_notification(data, recipients)
            else:
                self.email_service.send_check_out_notification(data, recipients)
        except Exception as e:
            logger.error(f"Failed to send {notification_type.value} notification: {e}")
