"""Pytest configuration and fixtures."""

from typing import Generator

import pytest

from dashboard_app.app import create_app
from hospitality.config import AppConfig
from hospitality.db import Store
from hospitality.jwt_service import create_access_token
from hospitality.models import Base
from hospitality.services.email_providers import EmailMessage, EmailProvider
from hospitality.services.guest_workflow import ImmediateDeferrer
from hospitality.services.registry import build_services

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite://"
TEST_PASSWORD = "Password123"


class FakeEmailProvider(EmailProvider):
    """Records every message; ``result`` (or ``error``) decides the outcome."""

    name = "fake"

    def __init__(self):
        super().__init__("noreply@example.com", "Stadium Hospitality Manager")
        self.sent: list[EmailMessage] = []
        self.result = True
        self.error: Exception | None = None

    def validate_configuration(self) -> bool:
        return True

    def send(self, message: EmailMessage) -> bool:
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        app_name="hospitality-test",
        database_url=TEST_DATABASE_URL,
        db_host="localhost",
        db_port=5432,
        db_user="postgres",
        db_password="postgres",
        db_name="postgres",
        db_sslmode="",
        supabase_url="",
        supabase_anon_key="",
        supabase_service_role_key="",
        email_provider="resend",
        email_api_key="re_test_key",
        email_from="noreply@example.com",
        email_from_name="Stadium Hospitality Manager",
        email_function_name="send-email",
        notification_delay_seconds=0.0,
        pending_sweep_delay_minutes=5,
        pending_sweep_batch_size=10,
        max_delivery_attempts=5,
        notification_retention_days=90,
        secret_key="test-secret-key-for-hospitality",
        log_level="WARNING",
        debug_mode=True,
        cors_allowed_origins=[],
        jwt_access_token_expires_hours=1,
    )


@pytest.fixture(scope="function")
def store() -> Generator[Store, None, None]:
    """Create a fresh in-memory store."""
    store = Store.from_url(TEST_DATABASE_URL)
    store.create_all(Base.metadata)
    yield store
    Base.metadata.drop_all(store.engine)
    store.dispose()


@pytest.fixture
def provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest.fixture
def svc(store, app_config, provider):
    """Service graph on the test store, notifications sent inline."""
    return build_services(store, app_config, email_provider=provider, deferrer=ImmediateDeferrer())


@pytest.fixture
def admin(svc):
    return svc.auth.sign_up("admin@example.com", TEST_PASSWORD, "Anna Admin", role="admin")


@pytest.fixture
def hostess(svc):
    return svc.auth.sign_up("giulia@example.com", TEST_PASSWORD, "Giulia Bianchi", role="hostess")


@pytest.fixture
def room(svc):
    return svc.rooms.create_room("SKYBOX")


@pytest.fixture
def other_room(svc):
    return svc.rooms.create_room("TRIBUNA VIP")


@pytest.fixture
def assigned_hostess(svc, hostess, room):
    """Hostess assigned to ``room`` only."""
    svc.profiles.assign_room_to_hostess(hostess.id, room.id)
    return hostess


@pytest.fixture
def guest(svc, room, admin):
    return svc.guests.create_guest(
        {"room_id": room.id, "first_name": "Mario", "last_name": "Rossi", "table_number": "12"},
        admin.id,
    )


@pytest.fixture
def other_guest(svc, other_room, admin):
    return svc.guests.create_guest(
        {"room_id": other_room.id, "first_name": "Laura", "last_name": "Verdi"}, admin.id
    )


@pytest.fixture
def app(app_config, store, provider):
    return create_app(app_config, store=store, email_provider=provider, deferrer=ImmediateDeferrer())


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def headers_for(app):
    """Build bearer headers for a profile."""

    def _headers(profile) -> dict:
        with app.app_context():
            token = create_access_token(profile.id, profile.email, profile.role, profile.full_name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(headers_for, admin) -> dict:
    return headers_for(admin)


@pytest.fixture
def hostess_headers(headers_for, assigned_hostess) -> dict:
    return headers_for(assigned_hostess)
