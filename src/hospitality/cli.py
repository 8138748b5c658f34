#!/usr/bin/env python3
"""
Operational commands for the check-in dashboard.

Uso:
    hospitality init-db
    hospitality create-admin EMAIL "NOME COGNOME" [--password PASSWORD]
    hospitality send-daily-report [--date YYYY-MM-DD]
    hospitality process-pending
    hospitality cleanup-notifications [--days N]

Scheduled jobs (cron, Supabase scheduler) call the last three.
"""

from __future__ import annotations

import argparse
import getpass
import sys
from datetime import date

from hospitality.config import AppConfig, load_config
from hospitality.constants import Roles
from hospitality.db import Store
from hospitality.logging_config import configure_logging
from hospitality.models import Base
from hospitality.services.guest_workflow import ImmediateDeferrer
from hospitality.services.registry import Services, build_services
from hospitality.validation import ValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hospitality", description="Stadium Hospitality Manager - comandi operativi"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Crea le tabelle del database")

    admin = commands.add_parser("create-admin", help="Crea un utente amministratore")
    admin.add_argument("email")
    admin.add_argument("full_name")
    admin.add_argument("--password", help="Se omessa viene chiesta a terminale")

    report = commands.add_parser("send-daily-report", help="Invia il report giornaliero")
    report.add_argument(
        "--date", type=date.fromisoformat, help="Giorno del report (default: ieri)"
    )

    commands.add_parser("process-pending", help="Ritenta le email in attesa")

    cleanup = commands.add_parser("cleanup-notifications", help="Elimina le email vecchie")
    cleanup.add_argument("--days", type=int, help="Giorni da conservare")
    return parser


def _services(config: AppConfig, store: Store | None) -> Services:
    if store is None:
        store = Store.from_config(config)
    return build_services(store, config, deferrer=ImmediateDeferrer())


def main(
    argv: list[str] | None = None,
    config: AppConfig | None = None,
    store: Store | None = None,
    services: Services | None = None,
) -> int:
    args = _build_parser().parse_args(argv)

    config = config or load_config("hospitality-cli")
    configure_logging(config.app_name, config.log_level)
    services = services or _services(config, store)

    if args.command == "init-db":
        services.store.create_all(Base.metadata)
        print("✅ Tabelle create")
        return 0

    if args.command == "create-admin":
        password = args.password or getpass.getpass("Password: ")
        try:
            profile = services.auth.sign_up(
                args.email, password, args.full_name, role=Roles.ADMIN.value
            )
        except ValidationError as e:
            print(f"❌ Errore: {e}", file=sys.stderr)
            return 1
        print(f"✅ Amministratore creato: {profile.email} ({profile.id})")
        return 0

    if args.command == "send-daily-report":
        sent = services.scheduled.send_daily_report(args.date)
        print("✅ Report inviato" if sent else "❌ Invio del report fallito")
        return 0 if sent else 1

    if args.command == "process-pending":
        processed = services.scheduled.process_pending_notifications()
        print(f"📧 Email elaborate: {processed}")
        return 0

    if args.command == "cleanup-notifications":
        removed = services.scheduled.cleanup_old_notifications(args.days)
        print(f"🧹 Email eliminate: {removed}")
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
