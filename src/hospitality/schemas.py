"""
Pydantic schemas for request validation and typed response records.

Response records are parsed from ORM rows (or joined tuples) at the data
access boundary, so a shape mismatch fails loudly instead of leaking
half-populated dicts to callers.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from hospitality.validation import (
    validate_clock,
    validate_frequency,
    validate_password,
    validate_role,
)


class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Requests -----------------------------------------------------------------


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(default="hostess")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v):
        validate_password(v)
        return v

    @field_validator("role")
    @classmethod
    def validate_role_value(cls, v):
        validate_role(v)
        return v


class CreateHostessRequest(SignUpRequest):
    role: str = Field(default="hostess")
    room_ids: list[uuid.UUID] = Field(default_factory=list)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@]+@[^@]+\.[^@]+$")
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase to ensure consistent authentication."""
        return v.strip().lower()


class RoomRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Il nome della sala è obbligatorio")
        return v


class CreateGuestRequest(BaseModel):
    room_id: uuid.UUID
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    table_number: str | None = Field(None, max_length=50)
    seat_number: str | None = Field(None, max_length=50)


class UpdateGuestRequest(BaseModel):
    room_id: uuid.UUID | None = None
    first_name: str | None = Field(None, min_length=1, max_length=255)
    last_name: str | None = Field(None, min_length=1, max_length=255)
    table_number: str | None = Field(None, max_length=50)
    seat_number: str | None = Field(None, max_length=50)


class UpdateProfileRequest(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    role: str | None = None

    @field_validator("role")
    @classmethod
    def validate_role_value(cls, v):
        if v is not None:
            validate_role(v)
        return v


class EmailPreferencesRequest(BaseModel):
    receive_check_in_notifications: bool | None = None
    receive_check_out_notifications: bool | None = None
    receive_daily_reports: bool | None = None
    receive_system_alerts: bool | None = None
    email_frequency: str | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None

    @field_validator("email_frequency")
    @classmethod
    def validate_frequency_value(cls, v):
        if v is not None:
            validate_frequency(v)
        return v

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_quiet_hours(cls, v):
        validate_clock(v)
        return v or None


class TestEmailRequest(BaseModel):
    recipient: EmailStr


# --- Records ------------------------------------------------------------------


class RoomRecord(Record):
    id: uuid.UUID
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RoomOverview(RoomRecord):
    total_guests: int = 0
    checked_in: int = 0


class RoomStats(Record):
    room_id: uuid.UUID
    total_guests: int
    checked_in: int
    pending: int
    check_in_percentage: float


class ProfileRecord(Record):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    role: str
    signed_in_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HostessWithRooms(ProfileRecord):
    rooms: list[RoomRecord] = Field(default_factory=list)


class GuestRecord(Record):
    id: uuid.UUID
    room_id: uuid.UUID
    first_name: str
    last_name: str
    table_number: str | None = None
    seat_number: str | None = None
    checked_in: bool = False
    checked_in_at: datetime | None = None
    checked_in_by: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class GuestView(GuestRecord):
    room_name: str | None = None
    checked_in_by_name: str | None = None


class AuditLogRecord(Record):
    id: uuid.UUID
    guest_id: uuid.UUID
    user_id: uuid.UUID | None = None
    action: str
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    created_at: datetime
    user_name: str | None = None
    user_email: str | None = None
    guest_name: str | None = None
    room_name: str | None = None


class ImportHistoryRecord(Record):
    id: uuid.UUID
    imported_by: uuid.UUID | None = None
    imported_by_name: str | None = None
    file_name: str
    total_rows: int
    successful_rows: int
    failed_rows: int
    errors: list[str] | None = None
    created_at: datetime


class EmailNotificationRecord(Record):
    id: uuid.UUID
    recipient: str
    recipient_name: str | None = None
    type: str
    subject: str
    content: str
    priority: str
    status: str
    metadata: dict[str, Any] | None = Field(None, validation_alias="metadata_")
    attempt_count: int = 0
    last_attempt_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime
    sent_at: datetime | None = None
    created_by: str


class EmailPreferencesRecord(Record):
    user_id: uuid.UUID
    receive_check_in_notifications: bool = True
    receive_check_out_notifications: bool = True
    receive_daily_reports: bool = True
    receive_system_alerts: bool = True
    email_frequency: str = "real_time"
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    updated_at: datetime | None = None


class DailyActivity(BaseModel):
    day: date
    sent: int = 0
    failed: int = 0


class EmailStats(BaseModel):
    total_sent: int = 0
    total_failed: int = 0
    total_pending: int = 0
    total_dead: int = 0
    success_rate: float = 0.0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    recent_activity: list[DailyActivity] = Field(default_factory=list)


class GlobalStats(BaseModel):
    total_guests: int
    checked_in: int
    pending: int
    rooms: int
    hostesses: int


class RoomWindowStats(BaseModel):
    room_id: uuid.UUID
    start: datetime
    end: datetime
    checked_in: int
    guests: list[GuestRecord] = Field(default_factory=list)


class HostessPerformance(BaseModel):
    user_id: uuid.UUID
    total_check_ins: int
    recent_activity: list[AuditLogRecord] = Field(default_factory=list)


class RealtimeEventRecord(Record):
    id: int
    channel: str
    event_type: str
    payload: dict[str, Any] | None = None
    created_at: datetime


class ImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    total: int = 0
    errors: list[str] = Field(default_factory=list)
    created_rooms: list[str] = Field(default_factory=list)
