"""Tests for the check-in/check-out workflow: audit, notifications, durations."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from hospitality.constants import AuditAction, NotificationStatus, NotificationType
from hospitality.datetime_utils import utcnow
from hospitality.models import Guest
from hospitality.services.guest_workflow import (
    ImmediateDeferrer,
    TimerDeferrer,
    format_duration,
    stay_minutes,
)


class TestDurationFormat:
    @pytest.mark.parametrize(
        "minutes,expected",
        [(0, "0m"), (45, "45m"), (59, "59m"), (60, "1h 0m"), (125, "2h 5m"), (-3, "0m")],
    )
    def test_format_duration(self, minutes, expected):
        assert format_duration(minutes) == expected

    def test_stay_minutes(self):
        now = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)
        assert stay_minutes(now - timedelta(minutes=90), now) == 90
        assert stay_minutes(None, now) == 0

    def test_stay_minutes_accepts_naive_utc(self):
        now = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)
        assert stay_minutes(datetime(2026, 3, 1, 17, 30), now) == 30


class TestDeferrers:
    def test_immediate_runs_inline(self):
        calls = []
        ImmediateDeferrer().defer(lambda: calls.append(1))
        assert calls == [1]

    def test_timer_runs_after_delay(self):
        calls = []
        deferrer = TimerDeferrer(delay=0.01)
        deferrer.defer(lambda: calls.append(1))
        deferrer.join(timeout=2)
        assert calls == [1]


class TestCheckInWorkflow:
    def test_check_in_writes_guest_and_audit(self, svc, guest, assigned_hostess):
        result = svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)

        assert result.success is True
        assert result.guest.checked_in is True
        assert result.guest.checked_in_by == assigned_hostess.id

        rows = [
            row for row in svc.audit.get_guest_audit_log(guest.id)
            if row.action == AuditAction.CHECK_IN.value
        ]
        assert len(rows) == 1
        assert rows[0].user_id == assigned_hostess.id
        assert rows[0].old_data == {"checked_in": False, "checked_in_at": None}
        assert rows[0].new_data["checked_in"] is True
        assert rows[0].new_data["checked_in_at"] is not None

    def test_check_in_notifies_admins(self, svc, guest, admin, assigned_hostess, provider):
        svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)

        assert [m.recipient for m in provider.sent] == ["admin@example.com"]
        message = provider.sent[0]
        assert message.subject == "🎯 Nuovo Check-in - Mario Rossi"
        assert "SKYBOX" in message.html
        assert "Giulia Bianchi" in message.html

        rows = svc.email.get_notifications(type=NotificationType.GUEST_CHECK_IN.value)
        assert len(rows) == 1
        assert rows[0].status == NotificationStatus.SENT.value
        assert rows[0].priority == "medium"
        assert rows[0].recipient_name == "Admin"
        assert rows[0].metadata["action"] == "check_in"

    def test_no_admins_means_no_email(self, svc, room, assigned_hostess, provider):
        guest = svc.guests.create_guest(
            {"room_id": room.id, "first_name": "Mario", "last_name": "Rossi"}
        )
        assert [p.role for p in svc.profiles.get_all_profiles()] == ["hostess"]

        result = svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)
        assert result.success is True
        assert provider.sent == []

    def test_provider_failure_does_not_fail_check_in(
        self, svc, guest, admin, assigned_hostess, provider
    ):
        provider.error = RuntimeError("provider down")
        result = svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)

        assert result.success is True
        rows = svc.email.get_notifications()
        assert rows[0].status == NotificationStatus.FAILED.value
        assert rows[0].attempt_count == 1
        assert rows[0].last_error == "provider down"

    def test_unknown_guest(self, svc, admin):
        result = svc.workflow.check_in_guest_with_notification(uuid.uuid4(), admin.id)
        assert result.success is False
        assert "non trovato" in result.error

    def test_actor_without_profile_is_named_hostess(self, svc, guest, admin, provider):
        svc.workflow.check_in_guest_with_notification(guest.id, uuid.uuid4())
        assert "Hostess" in provider.sent[0].html


class TestCheckOutWorkflow:
    def _checked_in_minutes_ago(self, svc, guest, hostess, minutes):
        with svc.store.session() as session:
            row = session.get(Guest, guest.id)
            row.checked_in = True
            row.checked_in_at = utcnow() - timedelta(minutes=minutes)
            row.checked_in_by = hostess.id

    def test_check_out_clears_state_and_audits_prior_values(self, svc, guest, assigned_hostess):
        svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)
        result = svc.workflow.check_out_guest_with_notification(guest.id, assigned_hostess.id)

        assert result.success is True
        assert result.guest.checked_in is False
        assert result.guest.checked_in_at is None
        assert result.guest.checked_in_by is None

        rows = [
            row for row in svc.audit.get_guest_audit_log(guest.id)
            if row.action == AuditAction.CHECK_OUT.value
        ]
        assert rows[0].old_data["checked_in"] is True
        assert rows[0].old_data["checked_in_at"] is not None
        assert rows[0].new_data == {"checked_in": False, "checked_in_at": None}

    def test_duration_in_notification(self, svc, guest, admin, assigned_hostess, provider):
        self._checked_in_minutes_ago(svc, guest, assigned_hostess, 125)
        svc.workflow.check_out_guest_with_notification(guest.id, assigned_hostess.id)

        message = provider.sent[-1]
        assert message.subject == "🚪 Check-out - Mario Rossi"
        assert "2h 5m" in message.html

        row = svc.email.get_notifications(type=NotificationType.GUEST_CHECK_OUT.value)[0]
        assert row.metadata["duration"] == "2h 5m"
        assert row.priority == "low"

    def test_short_stay(self, svc, guest, admin, assigned_hostess, provider):
        self._checked_in_minutes_ago(svc, guest, assigned_hostess, 45)
        svc.workflow.check_out_guest_with_notification(guest.id, assigned_hostess.id)
        assert "45m" in provider.sent[-1].html

    def test_check_out_of_guest_never_checked_in(self, svc, guest, admin, provider):
        result = svc.workflow.check_out_guest_with_notification(guest.id, admin.id)
        assert result.success is True
        assert "0m" in provider.sent[-1].html


class ManualDeferrer:
    """Holds deferred tasks until the test runs them."""

    def __init__(self):
        self.tasks = []

    def defer(self, task):
        self.tasks.append(task)

    def run_all(self):
        while self.tasks:
            self.tasks.pop(0)()


class TestDeferredNotification:
    def test_result_settles_before_transport_is_called(
        self, svc, guest, admin, assigned_hostess, provider
    ):
        deferrer = ManualDeferrer()
        svc.workflow.deferrer = deferrer

        result = svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)

        assert result.success is True
        assert provider.sent == []
        assert svc.email.get_notifications() == []

        deferrer.run_all()
        assert [m.recipient for m in provider.sent] == ["admin@example.com"]
