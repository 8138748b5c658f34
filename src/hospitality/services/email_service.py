"""
Email Service - admin notifications with a persisted outbox.

Every send inserts an ``email_notifications`` row as ``pending``, dispatches it
through the configured provider and records ``sent`` or ``failed``. Sending
never raises: failures are logged and reported as ``False``.
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from hospitality.config import AppConfig
from hospitality.constants import (
    NOTIFICATION_DEFAULT_PRIORITY,
    NOTIFICATIONS_DEFAULT_LIMIT,
    SYSTEM_CREATOR,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from hospitality.datetime_utils import as_utc, format_clock, utcnow
from hospitality.db import Store
from hospitality.logging_config import LoggerAdapter, get_logger
from hospitality.models import EmailNotification
from hospitality.schemas import DailyActivity, EmailNotificationRecord, EmailStats
from hospitality.services.email_providers import EmailMessage, EmailProvider
from hospitality.services.email_templates import (
    DAILY_REPORT,
    GUEST_CHECK_IN,
    GUEST_CHECK_OUT,
    SYSTEM_ALERT,
    TEST_EMAIL,
    render_template,
)

logger = get_logger(__name__)

ADMIN_RECIPIENT_NAME = "Admin"
TEST_RECIPIENT_NAME = "Test User"


@dataclass
class OutgoingEmail:
    """An email about to be queued for one recipient."""

    recipient: str
    type: NotificationType
    subject: str
    content: str
    recipient_name: str | None = None
    priority: NotificationPriority | None = None
    created_by: str = SYSTEM_CREATOR
    metadata: dict[str, Any] = field(default_factory=dict)


def _recipient_address(recipient: Any) -> str:
    return getattr(recipient, "email", recipient)


class EmailService:
    """Queue, dispatch and report on notification emails."""

    def __init__(self, store: Store, provider: EmailProvider, config: AppConfig | None = None):
        self.store = store
        self.provider = provider
        self.config = config
        self.log = LoggerAdapter(logger, {"provider": getattr(provider, "name", "custom")})

    # --- sending ----------------------------------------------------------

    def send_email(self, email: OutgoingEmail) -> bool:
        """
        Persist the notification as pending, dispatch it once and record the
        outcome.
        """
        try:
            notification_id = self._save_pending(email)
        except SQLAlchemyError as e:
            self.log.error(f"[EMAIL] Could not queue notification for {email.recipient}: {e}")
            return False
        return self._dispatch(notification_id, final=True)

    def _save_pending(self, email: OutgoingEmail) -> uuid.UUID:
        notification_type = NotificationType(email.type)
        priority = email.priority or NOTIFICATION_DEFAULT_PRIORITY[notification_type]
        with self.store.session() as session:
            row = EmailNotification(
                recipient=email.recipient,
                recipient_name=email.recipient_name,
                type=notification_type.value,
                subject=email.subject,
                content=email.content,
                priority=NotificationPriority(priority).value,
                status=NotificationStatus.PENDING.value,
                metadata_=email.metadata or None,
                attempt_count=0,
                created_by=email.created_by or SYSTEM_CREATOR,
            )
            session.add(row)
            session.flush()
            return row.id

    def _dispatch(self, notification_id: uuid.UUID, final: bool) -> bool:
        """
        Deliver a pending row through the provider.

        With ``final`` a failed attempt moves the row to ``failed``; otherwise
        it stays ``pending`` for the next sweep.
        """
        try:
            with self.store.session() as session:
                row = session.get(EmailNotification, notification_id)
                if row is None or row.status != NotificationStatus.PENDING.value:
                    return False
                message = EmailMessage(
                    recipient=row.recipient,
                    recipient_name=row.recipient_name,
                    subject=row.subject,
                    html=row.content,
                )
        except SQLAlchemyError as e:
            self.log.error(f"[EMAIL] Could not load notification {notification_id}: {e}")
            return False

        error = None
        try:
            success = bool(self.provider.send(message))
        except Exception as e:
            self.log.error(f"[EMAIL] Provider error for {message.recipient}: {e}")
            success = False
            error = str(e)

        try:
            with self.store.session() as session:
                row = session.get(EmailNotification, notification_id)
                if row is None:
                    self.log.warning(
                        f"[EMAIL] Notification {notification_id} deleted before update"
                    )
                    return False
                row.attempt_count = (row.attempt_count or 0) + 1
                row.last_attempt_at = utcnow()
                if success:
                    row.status = NotificationStatus.SENT.value
                    row.sent_at = row.last_attempt_at
                    row.last_error = None
                else:
                    row.last_error = error or "Il provider ha rifiutato il messaggio"
                    if final:
                        row.status = NotificationStatus.FAILED.value
        except SQLAlchemyError as e:
            self.log.error(f"[EMAIL] Could not update notification {notification_id}: {e}")
            return False

        if success:
            self.log.info(f"[EMAIL] Sent to {message.recipient}: {message.subject}")
        else:
            self.log.warning(f"[EMAIL] Delivery failed to {message.recipient}: {message.subject}")
        return success

    def redeliver(self, notification_id: uuid.UUID) -> bool:
        """
        Re-dispatch an existing pending row in place. A failed attempt leaves
        it pending with one more attempt counted.
        """
        return self._dispatch(notification_id, final=False)

    def _send_to_all(
        self,
        recipients: Iterable[Any],
        notification_type: NotificationType,
        subject: str,
        content: str,
        metadata: dict[str, Any],
        recipient_name: str | None = ADMIN_RECIPIENT_NAME,
    ) -> dict[str, bool]:
        outcomes: dict[str, bool] = {}
        for recipient in recipients:
            address = _recipient_address(recipient)
            outcomes[address] = self.send_email(
                OutgoingEmail(
                    recipient=address,
                    recipient_name=recipient_name,
                    type=notification_type,
                    subject=subject,
                    content=content,
                    metadata=metadata,
                )
            )
        return outcomes

    def send_check_in_notification(
        self, data: dict[str, Any], admin_emails: Iterable[Any]
    ) -> dict[str, bool]:
        """
        ``data`` carries guest_name, room_name, table_number, hostess_name and
        check_in_time.
        """
        return self._send_to_all(
            admin_emails,
            NotificationType.GUEST_CHECK_IN,
            render_template(GUEST_CHECK_IN.subject, data),
            render_template(GUEST_CHECK_IN.html, data),
            {
                "guest_name": data.get("guest_name"),
                "room_name": data.get("room_name"),
                "action": "check_in",
            },
        )

    def send_check_out_notification(
        self, data: dict[str, Any], admin_emails: Iterable[Any]
    ) -> dict[str, bool]:
        return self._send_to_all(
            admin_emails,
            NotificationType.GUEST_CHECK_OUT,
            render_template(GUEST_CHECK_OUT.subject, data),
            render_template(GUEST_CHECK_OUT.html, data),
            {
                "guest_name": data.get("guest_name"),
                "room_name": data.get("room_name"),
                "duration": data.get("duration"),
                "action": "check_out",
            },
        )

    def send_daily_report(
        self, report: dict[str, Any], admin_emails: Iterable[Any]
    ) -> dict[str, bool]:
        return self._send_to_all(
            admin_emails,
            NotificationType.DAILY_REPORT,
            render_template(DAILY_REPORT.subject, report),
            render_template(DAILY_REPORT.html, report),
            {
                "report_date": report.get("date"),
                "total_check_ins": report.get("total_check_ins"),
                "total_check_outs": report.get("total_check_outs"),
            },
        )

    def send_system_alert(self, alert: dict[str, Any], recipients: Iterable[Any]) -> dict[str, bool]:
        data = {"timestamp": format_clock(utcnow().astimezone()), "details": "", **alert}
        return self._send_to_all(
            recipients,
            NotificationType.SYSTEM_ALERT,
            render_template(SYSTEM_ALERT.subject, data),
            render_template(SYSTEM_ALERT.html, data),
            {"alert_type": data.get("alert_type")},
        )

    def send_test_notification(self, recipient: str, created_by: str = SYSTEM_CREATOR) -> bool:
        """One low priority ``system_alert`` row, one dispatch attempt."""
        data = {"timestamp": utcnow().astimezone().strftime("%d/%m/%Y %H:%M")}
        return self.send_email(
            OutgoingEmail(
                recipient=recipient,
                recipient_name=TEST_RECIPIENT_NAME,
                type=NotificationType.SYSTEM_ALERT,
                subject=TEST_EMAIL.subject,
                content=render_template(TEST_EMAIL.html, data),
                priority=NotificationPriority.LOW,
                created_by=created_by,
                metadata={"test": True},
            )
        )

    # --- history and stats ------------------------------------------------

    def get_notifications(
        self,
        limit: int = NOTIFICATIONS_DEFAULT_LIMIT,
        status: str | None = None,
        type: str | None = None,
    ) -> list[EmailNotificationRecord]:
        """Newest first, optionally filtered by status and type."""
        with self.store.session() as session:
            query = select(EmailNotification)
            if status:
                query = query.where(EmailNotification.status == status)
            if type:
                query = query.where(EmailNotification.type == type)
            query = query.order_by(EmailNotification.created_at.desc()).limit(limit)
            rows = session.execute(query).scalars().all()
            return [EmailNotificationRecord.model_validate(row) for row in rows]

    def get_email_stats(self, days: int = 7) -> EmailStats:
        since = utcnow() - timedelta(days=days)
        with self.store.session() as session:
            rows = session.execute(
                select(
                    EmailNotification.status,
                    EmailNotification.type,
                    EmailNotification.created_at,
                ).where(EmailNotification.created_at >= since)
            ).all()

        by_status: Counter = Counter()
        by_type: Counter = Counter()
        activity: dict[Any, DailyActivity] = {}
        for status, notification_type, created_at in rows:
            by_status[status] += 1
            by_type[notification_type] += 1
            day = as_utc(created_at).date()
            entry = activity.setdefault(day, DailyActivity(day=day))
            if status == NotificationStatus.SENT.value:
                entry.sent += 1
            elif status == NotificationStatus.FAILED.value:
                entry.failed += 1

        sent = by_status[NotificationStatus.SENT.value]
        failed = by_status[NotificationStatus.FAILED.value]
        attempted = sent + failed
        return EmailStats(
            total_sent=sent,
            total_failed=failed,
            total_pending=by_status[NotificationStatus.PENDING.value],
            total_dead=by_status[NotificationStatus.DEAD.value],
            success_rate=round(sent * 100.0 / attempted, 2) if attempted else 0.0,
            by_type=dict(by_type),
            by_status=dict(by_status),
            recent_activity=[activity[day] for day in sorted(activity)],
        )

    def get_dead_notifications(
        self, limit: int = NOTIFICATIONS_DEFAULT_LIMIT
    ) -> list[EmailNotificationRecord]:
        return self.get_notifications(limit=limit, status=NotificationStatus.DEAD.value)

    # --- maintenance ------------------------------------------------------

    def process_pending_notifications(
        self,
        delay_minutes: int | None = None,
        batch_size: int | None = None,
        max_attempts: int | None = None,
    ) -> int:
        """
        Sweep stuck ``pending`` rows.

        A row is due once ``delay_minutes`` doubled per previous attempt have
        passed since its last attempt (or creation). Rows that already used
        ``max_attempts`` move to ``dead``; the rest are redelivered in place.
        Returns the number of rows processed.
        """
        if delay_minutes is None:
            delay_minutes = self._setting("pending_sweep_delay_minutes", 5)
        if batch_size is None:
            batch_size = self._setting("pending_sweep_batch_size", 10)
        if max_attempts is None:
            max_attempts = self._setting("max_delivery_attempts", 5)
        now = utcnow()

        try:
            with self.store.session() as session:
                rows = session.execute(
                    select(EmailNotification)
                    .where(EmailNotification.status == NotificationStatus.PENDING.value)
                    .where(EmailNotification.created_at < now - timedelta(minutes=delay_minutes))
                    .order_by(EmailNotification.created_at)
                ).scalars().all()

                due, exhausted = [], []
                for row in rows:
                    attempts = row.attempt_count or 0
                    reference = as_utc(row.last_attempt_at or row.created_at)
                    if reference > now - timedelta(minutes=delay_minutes * 2**attempts):
                        continue
                    if attempts >= max_attempts:
                        exhausted.append(row)
                    else:
                        due.append(row.id)
                    if len(due) + len(exhausted) >= batch_size:
                        break

                for row in exhausted:
                    row.status = NotificationStatus.DEAD.value
                    self.log.warning(
                        f"[EMAIL] Notification {row.id} to {row.recipient} dead after "
                        f"{row.attempt_count} attempts"
                    )
        except SQLAlchemyError as e:
            self.log.error(f"[EMAIL] Pending sweep failed: {e}")
            return 0

        for notification_id in due:
            try:
                self.redeliver(notification_id)
            except Exception as e:
                self.log.error(f"[EMAIL] Redelivery of {notification_id} failed: {e}")

        processed = len(due) + len(exhausted)
        if processed:
            self.log.info(f"[EMAIL] Pending sweep processed {processed} notifications")
        return processed

    def cleanup_old_email_notifications(self, days_to_keep: int | None = None) -> int:
        """Delete notifications older than ``days_to_keep`` days. Returns the count."""
        if days_to_keep is None:
            days_to_keep = self._setting("notification_retention_days", 90)
        cutoff = utcnow() - timedelta(days=days_to_keep)
        with self.store.session() as session:
            result = session.execute(
                delete(EmailNotification).where(EmailNotification.created_at < cutoff)
            )
            deleted = result.rowcount or 0
        self.log.info(f"[EMAIL] Cleaned up {deleted} old email notifications")
        return deleted

    def _setting(self, key: str, default: int) -> int:
        if self.config is None:
            return default
        return self.config.get_int(key, default)
