"""
SQLAlchemy ORM models for the check-in dashboard.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from .datetime_utils import utcnow


class JSONBType(TypeDecorator):
    """
    JSONB on PostgreSQL, TEXT with JSON serialization elsewhere (SQLite in tests).
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        return json.dumps(value, default=str)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        if isinstance(value, str):
            return json.loads(value)
        return value

    @property
    def python_type(self):
        return object


JSONB_TYPE = JSONBType()


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    guests: Mapped[list[Guest]] = relationship("Guest", back_populates="room")


class Profile(Base):
    """Application user. Shares its id with the authentication principal."""

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'hostess')", name="ck_profile_role"),
        Index("ix_profile_role", "role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="hostess")
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    signed_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    room_links: Mapped[list[UserRoom]] = relationship(
        "UserRoom", back_populates="profile", cascade="all, delete-orphan", passive_deletes=True
    )
    email_preferences: Mapped[EmailPreferences | None] = relationship(
        "EmailPreferences",
        back_populates="profile",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserRoom(Base):
    """Assignment edge between a hostess profile and a room."""

    __tablename__ = "user_rooms"
    __table_args__ = (
        UniqueConstraint("user_id", "room_id", name="uq_user_room"),
        Index("ix_user_rooms_room", "room_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    profile: Mapped[Profile] = relationship("Profile", back_populates="room_links")
    room: Mapped[Room] = relationship("Room")


class Guest(Base):
    __tablename__ = "guests"
    __table_args__ = (
        Index("ix_guests_room", "room_id"),
        Index("ix_guests_last_name", "last_name"),
        CheckConstraint(
            "(checked_in AND checked_in_at IS NOT NULL AND checked_in_by IS NOT NULL) OR "
            "(NOT checked_in AND checked_in_at IS NULL AND checked_in_by IS NULL)",
            name="ck_guest_check_in_consistency",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    room_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("rooms.id"), nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    table_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    seat_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    checked_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # No FK: the attribution survives deletion of the acting profile.
    checked_in_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    room: Mapped[Room] = relationship("Room", back_populates="guests")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AuditLog(Base):
    """Append-only history of actions taken on guests."""

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_guest", "guest_id"),
        Index("ix_audit_log_user", "user_id"),
        Index("ix_audit_log_action", "action"),
        Index("ix_audit_log_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # No FK: rows outlive deleted guests and profiles.
    guest_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    old_data: Mapped[dict | None] = mapped_column(JSONB_TYPE, nullable=True)
    new_data: Mapped[dict | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class ImportHistory(Base):
    __tablename__ = "import_history"
    __table_args__ = (
        CheckConstraint(
            "successful_rows + failed_rows = total_rows", name="ck_import_history_row_counts"
        ),
        Index("ix_import_history_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    imported_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    importer: Mapped[Profile | None] = relationship("Profile")


class EmailNotification(Base):
    """
    Outbox row for one email to one recipient.

    Lifecycle: pending -> sent | failed. The pending sweep redelivers stuck
    rows in place and moves them to ``dead`` once attempts are exhausted.
    """

    __tablename__ = "email_notifications"
    __table_args__ = (
        Index("ix_email_notifications_status", "status"),
        Index("ix_email_notifications_type", "type"),
        Index("ix_email_notifications_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="pending")
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB_TYPE, nullable=True)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="system")


class EmailPreferences(Base):
    __tablename__ = "email_preferences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    receive_check_in_notifications: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    receive_check_out_notifications: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    receive_daily_reports: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    receive_system_alerts: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_frequency: Mapped[str] = mapped_column(String(20), default="real_time", nullable=False)
    quiet_hours_start: Mapped[str | None] = mapped_column(String(8), nullable=True)
    quiet_hours_end: Mapped[str | None] = mapped_column(String(8), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    profile: Mapped[Profile] = relationship("Profile", back_populates="email_preferences")


class RealtimeEvent(Base):
    """
    Persisted guest change events, consumed by polling clients.
    """

    __tablename__ = "realtime_events"
    __table_args__ = (
        Index("ix_realtime_event_channel", "channel"),
        Index("ix_realtime_event_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel: Mapped[str] = mapped_column(String(100), nullable=False)
    event_type: Mapped[str] = mapped_column(String(10), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
