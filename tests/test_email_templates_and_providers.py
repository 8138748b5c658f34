"""Tests for template rendering, the daily report builder and delivery providers."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest
import requests

from hospitality.schemas import AuditLogRecord
from hospitality.services.email_providers import (
    EmailError,
    EmailMessage,
    ResendProvider,
    SendGridProvider,
    SupabaseFunctionProvider,
    get_email_provider,
)
from hospitality.services.email_providers import resend_provider, sendgrid_provider
from hospitality.services.email_templates import (
    EMAIL_TEMPLATES,
    GUEST_CHECK_IN,
    render_template,
)
from hospitality.services.scheduled_tasks import build_daily_report

MESSAGE = EmailMessage(
    recipient="admin@example.com", subject="Ciao", html="<p>Ciao</p>", recipient_name="Admin"
)


def _audit_row(action, room_name, user_name):
    return AuditLogRecord(
        id="00000000-0000-0000-0000-000000000001",
        guest_id="00000000-0000-0000-0000-000000000002",
        action=action,
        created_at=datetime(2026, 3, 1, 20, 0),
        room_name=room_name,
        user_name=user_name,
    )


# ============== Templates ==============

class TestRenderTemplate:
    def test_replaces_known_keys(self):
        assert render_template("Ciao {guest_name}", {"guest_name": "Mario"}) == "Ciao Mario"

    def test_unknown_and_none_keys_left_verbatim(self):
        rendered = render_template("{a} {b} {c}", {"a": 1, "c": None})
        assert rendered == "1 {b} {c}"

    def test_lists_are_comma_joined(self):
        assert render_template("{rooms}", {"rooms": ["A", "B"]}) == "A, B"

    def test_check_in_template(self):
        data = {
            "guest_name": "Mario Rossi",
            "room_name": "SKYBOX",
            "table_number": "12",
            "hostess_name": "Giulia",
            "check_in_time": "19:30",
        }
        html = render_template(GUEST_CHECK_IN.html, data)
        assert "<strong>Tavolo:</strong> 12" in html
        assert "{" not in html

    def test_registry_has_every_template(self):
        assert set(EMAIL_TEMPLATES) == {
            "GUEST_CHECK_IN",
            "GUEST_CHECK_OUT",
            "DAILY_REPORT",
            "SYSTEM_ALERT",
            "TEST_EMAIL",
        }


class TestDailyReport:
    def test_aggregates_rooms_and_hostesses(self):
        check_ins = [
            _audit_row("check_in", "SKYBOX", "Giulia"),
            _audit_row("check_in", "SKYBOX", "Giulia"),
            _audit_row("check_in", "TRIBUNA", None),
        ]
        check_outs = [_audit_row("check_out", "SKYBOX", "Giulia")]

        report = build_daily_report(
            date(2026, 3, 1), check_ins, check_outs, report_time=datetime(2026, 3, 2, 8, 0)
        )

        assert report["date"] == "01/03/2026"
        assert report["total_check_ins"] == 3
        assert report["total_check_outs"] == 1
        assert "<p><strong>SKYBOX:</strong> 2 check-in, 1 check-out</p>" in report["rooms_stats"]
        assert "<p><strong>TRIBUNA:</strong> 1 check-in, 0 check-out</p>" in report["rooms_stats"]
        assert report["hostess_stats"].startswith("<p><strong>Giulia:</strong> 3 operazioni</p>")
        assert "Sconosciuta" in report["hostess_stats"]
        assert report["report_time"] == "08:00"

    def test_empty_day(self):
        report = build_daily_report(date(2026, 3, 1), [], [])
        assert report["rooms_stats"] == "<p>Nessun dato disponibile</p>"
        assert report["hostess_stats"] == "<p>Nessun dato disponibile</p>"

    def test_top_five_hostesses(self):
        rows = [_audit_row("check_in", "SKYBOX", f"Hostess {i}") for i in range(7)]
        report = build_daily_report(date(2026, 3, 1), rows, [])
        assert report["hostess_stats"].count("operazioni") == 5


# ============== Providers ==============

class TestResendProvider:
    def test_posts_message(self, monkeypatch):
        calls = []

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append((url, json, headers))
            return SimpleNamespace(ok=True, status_code=200)

        monkeypatch.setattr(resend_provider.requests, "post", fake_post)
        provider = ResendProvider("re_key", "noreply@example.com", "Stadium")

        assert provider.send(MESSAGE) is True
        url, payload, headers = calls[0]
        assert url == resend_provider.RESEND_API_URL
        assert payload["to"] == ["admin@example.com"]
        assert payload["from"] == "Stadium <noreply@example.com>"
        assert headers["Authorization"] == "Bearer re_key"

    def test_http_error_is_false(self, monkeypatch):
        monkeypatch.setattr(
            resend_provider.requests,
            "post",
            lambda *a, **kw: SimpleNamespace(ok=False, status_code=422),
        )
        assert ResendProvider("re_key", "noreply@example.com", "Stadium").send(MESSAGE) is False

    def test_timeout_is_false(self, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.exceptions.Timeout()

        monkeypatch.setattr(resend_provider.requests, "post", fake_post)
        assert ResendProvider("re_key", "noreply@example.com", "Stadium").send(MESSAGE) is False

    def test_missing_key(self):
        with pytest.raises(EmailError):
            ResendProvider("", "noreply@example.com", "Stadium").validate_configuration()


class TestSendGridProvider:
    def test_posts_personalization(self, monkeypatch):
        calls = []

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append(json)
            return SimpleNamespace(ok=True, status_code=202)

        monkeypatch.setattr(sendgrid_provider.requests, "post", fake_post)
        provider = SendGridProvider("sg_key", "noreply@example.com", "Stadium")

        assert provider.send(MESSAGE) is True
        to = calls[0]["personalizations"][0]["to"][0]
        assert to == {"email": "admin@example.com", "name": "Admin"}

    def test_connection_error_is_false(self, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.exceptions.ConnectionError()

        monkeypatch.setattr(sendgrid_provider.requests, "post", fake_post)
        assert SendGridProvider("sg_key", "noreply@example.com", "Stadium").send(MESSAGE) is False


class TestSupabaseProvider:
    def _client(self, invoke):
        return SimpleNamespace(functions=SimpleNamespace(invoke=invoke))

    def test_invokes_edge_function(self):
        calls = []
        client = self._client(lambda name, invoke_options: calls.append((name, invoke_options)))
        provider = SupabaseFunctionProvider(client, "noreply@example.com", "Stadium")

        assert provider.send(MESSAGE) is True
        name, options = calls[0]
        assert name == "send-email"
        assert options["body"]["to"] == "admin@example.com"

    def test_function_error_is_false(self):
        def invoke(name, invoke_options):
            raise RuntimeError("function failed")

        provider = SupabaseFunctionProvider(self._client(invoke), "noreply@example.com", "Stadium")
        assert provider.send(MESSAGE) is False

    def test_unconfigured_client(self):
        provider = SupabaseFunctionProvider(None, "noreply@example.com", "Stadium")
        assert provider.send(MESSAGE) is False
        with pytest.raises(EmailError):
            provider.validate_configuration()


class TestGateway:
    def test_builds_configured_provider(self, app_config):
        provider = get_email_provider("resend", app_config)
        assert isinstance(provider, ResendProvider)
        assert provider.api_key == "re_test_key"
        assert isinstance(get_email_provider("SendGrid", app_config), SendGridProvider)

    def test_supabase_without_credentials(self, app_config):
        provider = get_email_provider("supabase", app_config)
        assert isinstance(provider, SupabaseFunctionProvider)
        assert provider.client is None

    def test_unknown_provider(self, app_config):
        with pytest.raises(EmailError):
            get_email_provider("smtp", app_config)
