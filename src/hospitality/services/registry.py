"""
Wiring of the service graph around one injected store.

The Flask factory and the CLI both build their services here, so every
consumer shares the same store handle and email provider.
"""

from __future__ import annotations

from dataclasses import dataclass

from hospitality.auth.service import AuthService
from hospitality.config import AppConfig
from hospitality.db import Store
from hospitality.services.audit_service import AuditService
from hospitality.services.email_preferences_service import EmailPreferencesService
from hospitality.services.email_providers import EmailProvider, get_email_provider
from hospitality.services.email_service import EmailService
from hospitality.services.guest_service import GuestService
from hospitality.services.guest_workflow import GuestWorkflow, ImmediateDeferrer, TimerDeferrer
from hospitality.services.import_export_service import ImportExportService
from hospitality.services.import_history_service import ImportHistoryService
from hospitality.services.profile_service import ProfileService
from hospitality.services.room_service import RoomService
from hospitality.services.scheduled_tasks import ScheduledEmailTasks
from hospitality.services.statistics_service import StatisticsService
from hospitality.supabase.realtime import RealtimeManager


@dataclass
class Services:
    store: Store
    config: AppConfig
    auth: AuthService
    realtime: RealtimeManager
    audit: AuditService
    guests: GuestService
    rooms: RoomService
    profiles: ProfileService
    email_preferences: EmailPreferencesService
    import_history: ImportHistoryService
    statistics: StatisticsService
    email: EmailService
    workflow: GuestWorkflow
    import_export: ImportExportService
    scheduled: ScheduledEmailTasks


def build_services(
    store: Store,
    config: AppConfig,
    email_provider: EmailProvider | None = None,
    deferrer: TimerDeferrer | ImmediateDeferrer | None = None,
) -> Services:
    """
    Build every service on top of ``store``.

    The email provider is chosen once from ``config.email_provider`` unless
    one is passed in.
    """
    provider = email_provider or get_email_provider(config.email_provider, config)
    deferrer = deferrer or TimerDeferrer(config.notification_delay_seconds)

    realtime = RealtimeManager(store)
    audit = AuditService(store)
    guests = GuestService(store, realtime)
    rooms = RoomService(store, guests)
    profiles = ProfileService(store)
    import_history = ImportHistoryService(store)
    email = EmailService(store, provider, config)

    return Services(
        store=store,
        config=config,
        auth=AuthService(store),
        realtime=realtime,
        audit=audit,
        guests=guests,
        rooms=rooms,
        profiles=profiles,
        email_preferences=EmailPreferencesService(store),
        import_history=import_history,
        statistics=StatisticsService(store, audit),
        email=email,
        workflow=GuestWorkflow(store, guests, email, profiles, deferrer),
        import_export=ImportExportService(rooms, guests, import_history),
        scheduled=ScheduledEmailTasks(email, profiles, audit, realtime),
    )
