"""Tests for the email outbox: sends, stats, pending sweep and cleanup."""

from datetime import timedelta

from sqlalchemy import delete

from hospitality.constants import NotificationPriority, NotificationStatus, NotificationType
from hospitality.datetime_utils import utcnow
from hospitality.models import EmailNotification
from hospitality.services.email_service import OutgoingEmail


def _outgoing(recipient="ops@example.com", type=NotificationType.SYSTEM_ALERT):
    return OutgoingEmail(
        recipient=recipient,
        type=type,
        subject="Oggetto",
        content="<p>Corpo</p>",
    )


def _insert_pending(store, minutes_old, attempts=0, last_attempt_minutes=None):
    created_at = utcnow() - timedelta(minutes=minutes_old)
    with store.session() as session:
        row = EmailNotification(
            recipient="ops@example.com",
            type=NotificationType.SYSTEM_ALERT.value,
            subject="Bloccata",
            content="<p>...</p>",
            priority=NotificationPriority.HIGH.value,
            status=NotificationStatus.PENDING.value,
            attempt_count=attempts,
            last_attempt_at=(
                utcnow() - timedelta(minutes=last_attempt_minutes)
                if last_attempt_minutes is not None
                else None
            ),
            created_at=created_at,
            created_by="system",
        )
        session.add(row)
        session.flush()
        return row.id


def _status(store, notification_id):
    with store.session() as session:
        row = session.get(EmailNotification, notification_id)
        return row.status, row.attempt_count


# ============== Sending ==============

class TestSendEmail:
    def test_success_marks_sent(self, svc, provider):
        assert svc.email.send_email(_outgoing()) is True

        row = svc.email.get_notifications()[0]
        assert row.status == NotificationStatus.SENT.value
        assert row.sent_at is not None
        assert row.attempt_count == 1
        assert row.last_error is None
        assert row.priority == NotificationPriority.HIGH.value
        assert row.created_by == "system"

    def test_rejection_marks_failed(self, svc, provider):
        provider.result = False
        assert svc.email.send_email(_outgoing()) is False

        row = svc.email.get_notifications()[0]
        assert row.status == NotificationStatus.FAILED.value
        assert row.sent_at is None
        assert row.last_error

    def test_provider_exception_never_raises(self, svc, provider):
        provider.error = ConnectionError("timeout")
        assert svc.email.send_email(_outgoing()) is False
        assert svc.email.get_notifications()[0].last_error == "timeout"

    def test_one_row_per_recipient(self, svc, provider):
        outcomes = svc.email.send_system_alert(
            {"alert_type": "Database", "message": "Connessione persa"},
            ["a@example.com", "b@example.com"],
        )
        assert outcomes == {"a@example.com": True, "b@example.com": True}
        assert len(svc.email.get_notifications()) == 2
        assert "Connessione persa" in provider.sent[0].html

    def test_test_notification(self, svc, provider):
        assert svc.email.send_test_notification("ops@example.com", created_by="admin-1") is True

        row = svc.email.get_notifications()[0]
        assert row.type == NotificationType.SYSTEM_ALERT.value
        assert row.priority == NotificationPriority.LOW.value
        assert row.recipient_name == "Test User"
        assert row.metadata == {"test": True}
        assert row.created_by == "admin-1"
        assert provider.sent[0].subject.startswith("🧪 Test Email")

    def test_filters(self, svc, provider):
        svc.email.send_email(_outgoing(type=NotificationType.DAILY_REPORT))
        provider.result = False
        svc.email.send_email(_outgoing())

        failed = svc.email.get_notifications(status=NotificationStatus.FAILED.value)
        reports = svc.email.get_notifications(type=NotificationType.DAILY_REPORT.value)
        assert len(failed) == 1
        assert [r.type for r in reports] == [NotificationType.DAILY_REPORT.value]

    def test_row_deleted_during_dispatch(self, svc, store, provider):
        def send_and_purge(message):
            provider.sent.append(message)
            with store.session() as session:
                session.execute(delete(EmailNotification))
            return True

        provider.send = send_and_purge
        assert svc.email.send_email(_outgoing()) is False
        assert len(provider.sent) == 1
        assert svc.email.get_notifications() == []


# ============== Stats ==============

class TestEmailStats:
    def test_counts_and_success_rate(self, svc, provider):
        svc.email.send_email(_outgoing())
        svc.email.send_email(_outgoing(type=NotificationType.GUEST_CHECK_IN))
        provider.result = False
        svc.email.send_email(_outgoing())

        stats = svc.email.get_email_stats(days=7)
        assert stats.total_sent == 2
        assert stats.total_failed == 1
        assert stats.total_pending == 0
        assert stats.success_rate == 66.67
        assert stats.by_type == {"system_alert": 2, "guest_check_in": 1}
        assert len(stats.recent_activity) == 1
        assert stats.recent_activity[0].sent == 2
        assert stats.recent_activity[0].failed == 1

    def test_empty(self, svc):
        stats = svc.email.get_email_stats()
        assert stats.total_sent == 0
        assert stats.success_rate == 0.0
        assert stats.recent_activity == []

    def test_window_excludes_old_rows(self, svc, store):
        _insert_pending(store, minutes_old=60 * 24 * 10)
        assert svc.email.get_email_stats(days=7).total_pending == 0
        assert svc.email.get_email_stats(days=30).total_pending == 1


# ============== Pending sweep ==============

class TestPendingSweep:
    def test_recent_rows_are_left_alone(self, svc, store, provider):
        notification_id = _insert_pending(store, minutes_old=1)
        assert svc.email.process_pending_notifications() == 0
        assert _status(store, notification_id) == ("pending", 0)
        assert provider.sent == []

    def test_stuck_row_is_redelivered(self, svc, store, provider):
        notification_id = _insert_pending(store, minutes_old=30)
        assert svc.email.process_pending_notifications() == 1
        assert _status(store, notification_id) == ("sent", 1)

    def test_failed_redelivery_stays_pending(self, svc, store, provider):
        provider.result = False
        notification_id = _insert_pending(store, minutes_old=30)
        svc.email.process_pending_notifications()
        assert _status(store, notification_id) == ("pending", 1)

    def test_backoff_doubles_per_attempt(self, svc, store, provider):
        # Three attempts need 5 * 2**3 = 40 minutes since the last one.
        waiting = _insert_pending(store, minutes_old=120, attempts=3, last_attempt_minutes=30)
        due = _insert_pending(store, minutes_old=120, attempts=3, last_attempt_minutes=45)

        assert svc.email.process_pending_notifications() == 1
        assert _status(store, waiting) == ("pending", 3)
        assert _status(store, due) == ("sent", 4)

    def test_exhausted_rows_go_dead(self, svc, store, provider):
        notification_id = _insert_pending(
            store, minutes_old=600, attempts=5, last_attempt_minutes=200
        )
        assert svc.email.process_pending_notifications() == 1
        assert _status(store, notification_id) == ("dead", 5)
        assert provider.sent == []
        assert [r.id for r in svc.email.get_dead_notifications()] == [notification_id]

    def test_batch_size(self, svc, store, provider):
        for _ in range(4):
            _insert_pending(store, minutes_old=30)
        assert svc.email.process_pending_notifications(batch_size=3) == 3
        assert len(svc.email.get_notifications(status="pending")) == 1

    def test_zero_delay_is_honoured(self, svc, store, provider):
        notification_id = _insert_pending(store, minutes_old=1)
        assert svc.email.process_pending_notifications(delay_minutes=0) == 1
        assert _status(store, notification_id) == ("sent", 1)

    def test_sent_rows_are_never_redelivered(self, svc, store, provider):
        svc.email.send_email(_outgoing())
        assert svc.email.redeliver(svc.email.get_notifications()[0].id) is False
        assert len(provider.sent) == 1


# ============== Cleanup ==============

class TestCleanup:
    def test_deletes_only_old_rows(self, svc, store):
        _insert_pending(store, minutes_old=60 * 24 * 100)
        _insert_pending(store, minutes_old=5)
        assert svc.email.cleanup_old_email_notifications(90) == 1
        assert len(svc.email.get_notifications()) == 1

    def test_zero_days_deletes_everything_older_than_now(self, svc, store):
        _insert_pending(store, minutes_old=5)
        assert svc.email.cleanup_old_email_notifications(0) == 1

    def test_scheduled_cleanup_uses_configured_retention(self, svc, store):
        _insert_pending(store, minutes_old=60 * 24 * 91)
        assert svc.scheduled.cleanup_old_notifications() == 1
