"""
Periodic email jobs: daily report, outbox sweep and retention cleanup.

Run from the CLI (cron) or from the admin email panel.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta

from hospitality.constants import (
    DAILY_REPORT_TOP_HOSTESSES,
    EXPORT_UNKNOWN_ROOM,
    NO_DATA_AVAILABLE,
    UNKNOWN_HOSTESS_NAME,
    AuditAction,
    NotificationType,
)
from hospitality.logging_config import get_logger
from hospitality.schemas import AuditLogRecord
from hospitality.services.audit_service import AuditService
from hospitality.services.email_service import EmailService
from hospitality.services.profile_service import ProfileService
from hospitality.supabase.realtime import RealtimeManager

logger = get_logger(__name__)


def _empty_fragment() -> str:
    return f"<p>{NO_DATA_AVAILABLE}</p>"


def build_daily_report(
    day: date,
    check_ins: list[AuditLogRecord],
    check_outs: list[AuditLogRecord],
    report_time: datetime | None = None,
) -> dict:
    """
    Template data for one day's report: totals, per-room counts and the five
    busiest hostesses as HTML fragments.
    """
    rooms: dict[str, Counter] = {}
    for key, rows in (("check_ins", check_ins), ("check_outs", check_outs)):
        for row in rows:
            room = row.room_name or EXPORT_UNKNOWN_ROOM
            rooms.setdefault(room, Counter())[key] += 1

    hostesses: Counter = Counter(
        row.user_name or UNKNOWN_HOSTESS_NAME for row in [*check_ins, *check_outs]
    )

    rooms_html = "".join(
        f"<p><strong>{room}:</strong> {counts['check_ins']} check-in, "
        f"{counts['check_outs']} check-out</p>"
        for room, counts in rooms.items()
    )
    hostess_html = "".join(
        f"<p><strong>{name}:</strong> {count} operazioni</p>"
        for name, count in hostesses.most_common(DAILY_REPORT_TOP_HOSTESSES)
    )

    report_time = report_time or datetime.now().astimezone()
    return {
        "date": day.strftime("%d/%m/%Y"),
        "total_check_ins": len(check_ins),
        "total_check_outs": len(check_outs),
        "rooms_stats": rooms_html or _empty_fragment(),
        "hostess_stats": hostess_html or _empty_fragment(),
        "report_time": report_time.strftime("%H:%M"),
    }


class ScheduledEmailTasks:
    def __init__(
        self,
        email_service: EmailService,
        profile_service: ProfileService,
        audit_service: AuditService,
        realtime: RealtimeManager | None = None,
    ):
        self.email_service = email_service
        self.profile_service = profile_service
        self.audit_service = audit_service
        self.realtime = realtime

    def send_daily_report(self, for_date: date | None = None) -> bool:
        """
        Report on ``for_date`` (yesterday by default, local time) to every admin
        opted into daily reports. Returns False when the job fails.
        """
        for_date = for_date or (datetime.now().astimezone().date() - timedelta(days=1))
        start = datetime.combine(for_date, time.min).astimezone()
        end = start + timedelta(days=1)

        try:
            check_ins = self.audit_service.get_actions_between(
                start, end, (AuditAction.CHECK_IN,)
            )
            check_outs = self.audit_service.get_actions_between(
                start, end, (AuditAction.CHECK_OUT,)
            )
            report = build_daily_report(for_date, check_ins, check_outs)
            recipients = self.profile_service.resolve_notification_recipients(
                NotificationType.DAILY_REPORT
            )
            if recipients:
                self.email_service.send_daily_report(report, recipients)
        except Exception as e:
            logger.error(f"Failed to send scheduled daily report: {e}")
            return False

        logger.info(f"Daily report for {for_date} sent to {len(recipients)} admins")
        return True

    def cleanup_old_notifications(self, days_to_keep: int | None = None) -> int:
        """
        Delete old email notifications and prune the realtime event feed.
        Returns the number of emails deleted.
        """
        self.cleanup_realtime_events()
        try:
            return self.email_service.cleanup_old_email_notifications(days_to_keep)
        except Exception as e:
            logger.error(f"Failed to cleanup old notifications: {e}")
            return 0

    def cleanup_realtime_events(self) -> int:
        if self.realtime is None:
            return 0
        try:
            return self.realtime.prune_events()
        except Exception as e:
            logger.error(f"Failed to prune realtime events: {e}")
            return 0

    def process_pending_notifications(self) -> int:
        return self.email_service.process_pending_notifications()
