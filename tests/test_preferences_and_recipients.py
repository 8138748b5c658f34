"""Tests for email preferences and notification recipient resolution."""

import uuid
from datetime import datetime

import pytest

from hospitality.constants import NotificationType
from hospitality.datetime_utils import in_quiet_hours
from hospitality.validation import NotFoundError, ValidationError

NIGHT = datetime(2026, 3, 1, 23, 30)
NOON = datetime(2026, 3, 1, 12, 0)


class TestPreferences:
    def test_defaults_when_never_saved(self, svc, admin):
        assert svc.email_preferences.get_preferences(admin.id) is None
        prefs = svc.email_preferences.get_effective_preferences(admin.id)
        assert prefs.receive_check_in_notifications is True
        assert prefs.email_frequency == "real_time"
        assert prefs.quiet_hours_start is None

    def test_partial_update_keeps_other_fields(self, svc, admin):
        svc.email_preferences.update_preferences(admin.id, {"receive_daily_reports": False})
        prefs = svc.email_preferences.update_preferences(admin.id, {"email_frequency": "hourly"})
        assert prefs.receive_daily_reports is False
        assert prefs.receive_check_in_notifications is True
        assert prefs.email_frequency == "hourly"

    def test_invalid_frequency(self, svc, admin):
        with pytest.raises(ValidationError):
            svc.email_preferences.update_preferences(admin.id, {"email_frequency": "weekly"})

    def test_invalid_quiet_hours(self, svc, admin):
        with pytest.raises(ValidationError):
            svc.email_preferences.update_preferences(admin.id, {"quiet_hours_start": "25:00"})

    def test_unknown_profile(self, svc):
        with pytest.raises(NotFoundError):
            svc.email_preferences.update_preferences(uuid.uuid4(), {"receive_daily_reports": False})

    def test_deleted_with_profile(self, svc, admin):
        svc.email_preferences.update_preferences(admin.id, {"receive_daily_reports": False})
        svc.profiles.delete_profile(admin.id)
        assert svc.email_preferences.get_preferences(admin.id) is None


class TestQuietHours:
    @pytest.mark.parametrize(
        "start,end,now,expected",
        [
            ("22:00", "07:00", NIGHT, True),
            ("22:00", "07:00", datetime(2026, 3, 1, 6, 59), True),
            ("22:00", "07:00", datetime(2026, 3, 1, 7, 0), False),
            ("13:00", "15:00", datetime(2026, 3, 1, 14, 0), True),
            ("13:00", "15:00", NOON, False),
            (None, "07:00", NIGHT, False),
            ("08:00", "08:00", datetime(2026, 3, 1, 8, 0), False),
        ],
    )
    def test_window(self, start, end, now, expected):
        assert in_quiet_hours(start, end, now) is expected


class TestRecipients:
    def test_admins_only(self, svc, admin, hostess):
        recipients = svc.profiles.resolve_notification_recipients(NotificationType.GUEST_CHECK_IN)
        assert [r.email for r in recipients] == ["admin@example.com"]
        assert recipients[0].name == "Anna Admin"

    def test_category_opt_out(self, svc, admin):
        svc.email_preferences.update_preferences(
            admin.id, {"receive_check_in_notifications": False}
        )
        assert svc.profiles.resolve_notification_recipients("guest_check_in") == []
        assert len(svc.profiles.resolve_notification_recipients("guest_check_out")) == 1

    def test_disabled_frequency(self, svc, admin):
        svc.email_preferences.update_preferences(admin.id, {"email_frequency": "disabled"})
        for notification_type in NotificationType:
            assert svc.profiles.resolve_notification_recipients(notification_type) == []

    def test_quiet_hours_skip_non_urgent(self, svc, admin):
        svc.email_preferences.update_preferences(
            admin.id, {"quiet_hours_start": "22:00", "quiet_hours_end": "07:00"}
        )
        resolve = svc.profiles.resolve_notification_recipients
        assert resolve(NotificationType.GUEST_CHECK_IN, now=NIGHT) == []
        assert resolve(NotificationType.DAILY_REPORT, now=NIGHT) == []
        assert len(resolve(NotificationType.GUEST_CHECK_IN, now=NOON)) == 1

    def test_quiet_hours_do_not_hold_system_alerts(self, svc, admin):
        svc.email_preferences.update_preferences(
            admin.id, {"quiet_hours_start": "22:00", "quiet_hours_end": "07:00"}
        )
        recipients = svc.profiles.resolve_notification_recipients(
            NotificationType.SYSTEM_ALERT, now=NIGHT
        )
        assert len(recipients) == 1

    def test_admin_emails(self, svc, admin):
        svc.auth.sign_up("second@example.com", "Password123", "Second Admin", role="admin")
        assert svc.profiles.get_admin_emails() == ["admin@example.com", "second@example.com"]


class TestHostessRooms:
    def test_toggle_assigns_then_removes(self, svc, hostess, room):
        assert svc.profiles.toggle_room_assignment(hostess.id, room.id) is True
        assert [r.id for r in svc.profiles.get_hostess_rooms(hostess.id)] == [room.id]
        assert svc.profiles.toggle_room_assignment(hostess.id, room.id) is False
        assert svc.profiles.get_hostess_rooms(hostess.id) == []

    def test_hostesses_with_rooms(self, svc, assigned_hostess, room, admin):
        hostesses = svc.profiles.get_hostesses_with_rooms()
        assert [h.id for h in hostesses] == [assigned_hostess.id]
        assert [r.name for r in hostesses[0].rooms] == ["SKYBOX"]

    def test_assign_unknown_room(self, svc, hostess):
        with pytest.raises(NotFoundError):
            svc.profiles.assign_room_to_hostess(hostess.id, uuid.uuid4())
