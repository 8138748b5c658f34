"""Tests for realtime guest events, statistics and the email admin API."""

from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select, update

from hospitality.constants import RealtimeEventType
from hospitality.datetime_utils import utcnow
from hospitality.models import RealtimeEvent
from hospitality.supabase.realtime import room_channel


def _data(response):
    return response.get_json()["data"]


# ============== Realtime ==============

class TestRealtime:
    def test_subscriber_receives_room_changes(self, svc, room, other_room, admin):
        received = []
        unsubscribe = svc.realtime.subscribe_room(room.id, received.append)

        guest = svc.guests.create_guest(
            {"room_id": room.id, "first_name": "Mario", "last_name": "Rossi"}, admin.id
        )
        svc.guests.create_guest(
            {"room_id": other_room.id, "first_name": "Laura", "last_name": "Verdi"}, admin.id
        )

        assert len(received) == 1
        assert received[0]["event"] == RealtimeEventType.INSERT.value
        assert received[0]["new"]["id"] == str(guest.id)

        unsubscribe()
        svc.guests.delete_guest(guest.id, admin.id)
        assert len(received) == 1
        assert svc.realtime.subscriber_count(room.id) == 0

    def test_failing_subscriber_does_not_break_writes(self, svc, room, admin):
        def broken(payload):
            raise RuntimeError("boom")

        svc.realtime.subscribe_room(room.id, broken)
        guest = svc.guests.create_guest(
            {"room_id": room.id, "first_name": "Mario", "last_name": "Rossi"}, admin.id
        )
        assert svc.guests.get_guest(guest.id).id == guest.id

    def test_events_are_persisted_for_polling(self, svc, guest, admin, room):
        svc.guests.check_in_guest(guest.id, admin.id)
        svc.guests.delete_guest(guest.id, admin.id)

        events = svc.realtime.read_events(room.id)
        assert [e.event_type for e in events] == ["INSERT", "UPDATE", "DELETE"]
        assert all(e.channel == room_channel(room.id) for e in events)
        assert events[1].payload["new"]["checked_in"] is True
        assert events[2].payload["old"]["id"] == str(guest.id)

        later = svc.realtime.read_events(room.id, after_id=events[0].id)
        assert [e.event_type for e in later] == ["UPDATE", "DELETE"]

    def test_move_is_announced_in_both_rooms(self, svc, guest, admin, room, other_room):
        svc.guests.update_guest(guest.id, {"room_id": other_room.id}, admin.id)
        assert [e.event_type for e in svc.realtime.read_events(other_room.id)] == ["UPDATE"]
        assert [e.event_type for e in svc.realtime.read_events(room.id)][-1] == "UPDATE"

    def _age_events(self, store, days):
        with store.session() as session:
            session.execute(
                update(RealtimeEvent).values(created_at=utcnow() - timedelta(days=days))
            )

    def _event_count(self, store):
        with store.session() as session:
            return session.execute(select(func.count(RealtimeEvent.id))).scalar_one()

    def test_prune_removes_only_old_events(self, svc, store, guest, admin):
        self._age_events(store, days=3)
        svc.guests.check_in_guest(guest.id, admin.id)

        assert svc.realtime.prune_events(utcnow() - timedelta(days=1)) == 1
        assert self._event_count(store) == 1

    def test_scheduled_cleanup_prunes_events(self, svc, store, guest, admin):
        for _ in range(5):
            svc.guests.check_in_guest(guest.id, admin.id)
            svc.guests.check_out_guest(guest.id)
        self._age_events(store, days=2)

        svc.scheduled.cleanup_old_notifications(1)
        assert self._event_count(store) == 0

    def test_polling_api_is_room_scoped(self, client, hostess_headers, guest, room, other_room):
        response = client.get(f"/api/realtime/rooms/{room.id}/events", headers=hostess_headers)
        assert response.status_code == 200
        data = _data(response)
        assert [e["event_type"] for e in data["events"]] == ["INSERT"]
        assert data["last_id"] == data["events"][-1]["id"]

        empty = _data(
            client.get(
                f"/api/realtime/rooms/{room.id}/events?after={data['last_id']}",
                headers=hostess_headers,
            )
        )
        assert empty == {"events": [], "last_id": data["last_id"]}

        forbidden = client.get(f"/api/realtime/rooms/{other_room.id}/events", headers=hostess_headers)
        assert forbidden.status_code == 403


# ============== Statistics ==============

class TestStatistics:
    def test_global_stats(self, svc, guest, other_guest, hostess, admin):
        svc.guests.check_in_guest(guest.id, admin.id)
        stats = svc.statistics.get_global_stats()
        assert stats.total_guests == 2
        assert stats.checked_in == 1
        assert stats.pending == 1
        assert stats.rooms == 2
        assert stats.hostesses == 1

    def test_room_window(self, svc, guest, room, admin):
        svc.guests.check_in_guest(guest.id, admin.id)
        now = datetime.now(timezone.utc)

        inside = svc.statistics.get_room_stats_by_date(
            room.id, now - timedelta(hours=1), now + timedelta(hours=1)
        )
        before = svc.statistics.get_room_stats_by_date(
            room.id, now - timedelta(days=2), now - timedelta(days=1)
        )
        assert inside.checked_in == 1
        assert [g.id for g in inside.guests] == [guest.id]
        assert before.checked_in == 0

    def test_hostess_performance(self, svc, guest, other_guest, assigned_hostess):
        svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)
        performance = svc.statistics.get_hostess_performance(assigned_hostess.id)
        assert performance.total_check_ins == 1
        assert len(performance.recent_activity) == 1
        assert performance.recent_activity[0].guest_name == "Mario Rossi"

    def test_statistics_api(self, client, admin_headers, hostess_headers, guest):
        assert _data(client.get("/api/statistics", headers=admin_headers))["total_guests"] == 1
        assert client.get("/api/statistics", headers=hostess_headers).status_code == 403

    def test_room_window_api(self, client, admin_headers, room):
        url = f"/api/statistics/rooms/{room.id}"
        assert client.get(url, headers=admin_headers).status_code == 400
        response = client.get(
            f"{url}?start=2026-01-01T00:00:00Z&end=2026-01-02T00:00:00Z", headers=admin_headers
        )
        assert _data(response)["checked_in"] == 0

    def test_hostess_sees_only_own_performance(
        self, client, hostess_headers, assigned_hostess, admin
    ):
        own = client.get(f"/api/statistics/hostesses/{assigned_hostess.id}", headers=hostess_headers)
        other = client.get(f"/api/statistics/hostesses/{admin.id}", headers=hostess_headers)
        assert own.status_code == 200
        assert other.status_code == 403


# ============== Email admin API ==============

class TestEmailApi:
    def test_preferences_round_trip(self, client, hostess_headers):
        defaults = _data(client.get("/api/email/preferences", headers=hostess_headers))
        assert defaults["receive_daily_reports"] is True

        response = client.put(
            "/api/email/preferences",
            json={"receive_daily_reports": False, "quiet_hours_start": "22:00", "quiet_hours_end": "07:00"},
            headers=hostess_headers,
        )
        assert response.status_code == 200
        assert _data(response)["receive_daily_reports"] is False
        assert _data(response)["quiet_hours_start"] == "22:00"

    def test_invalid_preferences(self, client, hostess_headers):
        response = client.put(
            "/api/email/preferences", json={"email_frequency": "weekly"}, headers=hostess_headers
        )
        assert response.status_code == 400

    def test_test_email(self, client, provider, admin, admin_headers):
        response = client.post(
            "/api/email/test", json={"recipient": "ops@example.com"}, headers=admin_headers
        )
        assert _data(response) == {"sent": True}
        assert provider.sent[0].recipient == "ops@example.com"

        rows = _data(client.get("/api/email/notifications?type=system_alert", headers=admin_headers))
        assert rows[0]["created_by"] == str(admin.id)
        assert rows[0]["metadata"] == {"test": True}

    def test_test_email_bad_address(self, client, admin_headers):
        response = client.post("/api/email/test", json={"recipient": "nope"}, headers=admin_headers)
        assert response.status_code == 400

    def test_stats_and_dead_letters(self, client, admin_headers):
        stats = _data(client.get("/api/email/stats?days=7", headers=admin_headers))
        assert stats["total_sent"] == 0
        assert _data(client.get("/api/email/dead", headers=admin_headers)) == []

    def test_jobs(self, client, provider, admin, admin_headers):
        assert _data(client.post("/api/email/process-pending", headers=admin_headers)) == {"processed": 0}
        assert _data(client.post("/api/email/daily-report", headers=admin_headers)) == {"sent": True}
        assert provider.sent[0].subject.startswith("📊 Report Giornaliero")

    def test_admin_panel_is_admin_only(self, client, hostess_headers):
        assert client.get("/api/email/notifications", headers=hostess_headers).status_code == 403
        assert client.post("/api/email/daily-report", headers=hostess_headers).status_code == 403


class TestDailyReportJob:
    def test_report_counts_todays_activity(self, svc, provider, guest, admin, assigned_hostess):
        svc.workflow.check_in_guest_with_notification(guest.id, assigned_hostess.id)
        provider.sent.clear()

        assert svc.scheduled.send_daily_report(datetime.now().astimezone().date()) is True
        html = provider.sent[0].html
        assert "<p><strong>SKYBOX:</strong> 1 check-in, 0 check-out</p>" in html
        assert "Giulia Bianchi:</strong> 1 operazioni" in html

    def test_report_respects_opt_out(self, svc, provider, admin):
        svc.email_preferences.update_preferences(admin.id, {"receive_daily_reports": False})
        assert svc.scheduled.send_daily_report(date(2026, 1, 1)) is True
        assert provider.sent == []
