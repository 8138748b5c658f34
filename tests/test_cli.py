"""Tests for the operational command line."""

from datetime import timedelta

from sqlalchemy import inspect

from hospitality.cli import main
from hospitality.datetime_utils import utcnow
from hospitality.db import Store
from hospitality.models import EmailNotification


class TestCli:
    def test_init_db_creates_tables(self, app_config, capsys):
        store = Store.from_url("sqlite://")
        assert main(["init-db"], config=app_config, store=store) == 0
        assert "guests" in inspect(store.engine).get_table_names()
        assert "Tabelle create" in capsys.readouterr().out

    def test_create_admin(self, app_config, store, svc, capsys):
        code = main(
            ["create-admin", "boss@example.com", "Capo Sala", "--password", "Password123"],
            config=app_config,
            store=store,
        )
        assert code == 0
        profiles = svc.profiles.get_all_profiles()
        assert [(p.email, p.role) for p in profiles] == [("boss@example.com", "admin")]

    def test_create_admin_rejects_weak_password(self, app_config, store, capsys):
        code = main(
            ["create-admin", "boss@example.com", "Capo", "--password", "weak"],
            config=app_config,
            store=store,
        )
        assert code == 1
        assert "Errore" in capsys.readouterr().err

    def test_process_pending(self, app_config, svc, store, provider, capsys):
        with store.session() as session:
            session.add(
                EmailNotification(
                    recipient="ops@example.com",
                    type="system_alert",
                    subject="Bloccata",
                    content="<p>...</p>",
                    priority="high",
                    status="pending",
                    attempt_count=0,
                    created_at=utcnow() - timedelta(minutes=30),
                    created_by="system",
                )
            )

        assert main(["process-pending"], config=app_config, services=svc) == 0
        assert len(provider.sent) == 1
        assert "Email elaborate: 1" in capsys.readouterr().out

    def test_send_daily_report(self, app_config, svc, admin, provider):
        assert main(["send-daily-report", "--date", "2026-01-01"], config=app_config, services=svc) == 0
        assert provider.sent[0].subject == "📊 Report Giornaliero Accessi - 01/01/2026"

    def test_cleanup(self, app_config, svc, capsys):
        assert main(["cleanup-notifications", "--days", "30"], config=app_config, services=svc) == 0
        assert "Email eliminate: 0" in capsys.readouterr().out
