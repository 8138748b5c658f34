"""
Constants and enumerations shared by the check-in services.
"""

from __future__ import annotations

from enum import Enum


class Roles(str, Enum):
    ADMIN = "admin"
    HOSTESS = "hostess"

    @classmethod
    def is_admin(cls, role: str) -> bool:
        return role == cls.ADMIN

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class AuditAction(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"


class NotificationType(str, Enum):
    GUEST_CHECK_IN = "guest_check_in"
    GUEST_CHECK_OUT = "guest_check_out"
    DAILY_REPORT = "daily_report"
    SYSTEM_ALERT = "system_alert"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class NotificationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SCHEDULED = "scheduled"
    DEAD = "dead"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class EmailFrequency(str, Enum):
    REAL_TIME = "real_time"
    HOURLY = "hourly"
    DAILY = "daily"
    DISABLED = "disabled"


class RealtimeEventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# Preference flag consulted for each notification category.
NOTIFICATION_PREFERENCE_FLAGS = {
    NotificationType.GUEST_CHECK_IN: "receive_check_in_notifications",
    NotificationType.GUEST_CHECK_OUT: "receive_check_out_notifications",
    NotificationType.DAILY_REPORT: "receive_daily_reports",
    NotificationType.SYSTEM_ALERT: "receive_system_alerts",
}

NOTIFICATION_DEFAULT_PRIORITY = {
    NotificationType.GUEST_CHECK_IN: NotificationPriority.MEDIUM,
    NotificationType.GUEST_CHECK_OUT: NotificationPriority.LOW,
    NotificationType.DAILY_REPORT: NotificationPriority.LOW,
    NotificationType.SYSTEM_ALERT: NotificationPriority.HIGH,
}

SYSTEM_CREATOR = "system"

UNKNOWN_ROOM_NAME = "Sala Sconosciuta"
DEFAULT_HOSTESS_NAME = "Hostess"
EXPORT_UNKNOWN_ROOM = "Sconosciuta"
UNKNOWN_HOSTESS_NAME = "Sconosciuta"
NO_DATA_AVAILABLE = "Nessun dato disponibile"

# Spreadsheet import/export
IMPORT_ALLOWED_EXTENSIONS = (".xlsx", ".xls")
IMPORT_ROOM_COLUMNS = ("HOSPITALITY", "SALA")
IMPORT_SURNAME_COLUMNS = ("COGNOME", "COGNOME ")
IMPORT_NAME_COLUMN = "NOME"
IMPORT_TABLE_COLUMN = "TAVOLO"
IMPORT_CHECK_IN_COLUMN = "CHECK_IN"
IMPORT_CHECK_IN_AT_COLUMN = "DATA_CHECK_IN"
IMPORT_ERROR_PREVIEW = 10
IMPORT_TRUTHY_VALUES = {"SÌ", "SI", "SÍ", "YES", "Y", "TRUE", "1", "X"}

EXPORT_COLUMNS = ("SALA", "COGNOME", "NOME", "TAVOLO", "CHECK_IN", "DATA_CHECK_IN")
EXPORT_SHEET_NAME = "Ospiti"
EXPORT_YES = "SÌ"
EXPORT_NO = "NO"

AUDIT_LOG_DEFAULT_LIMIT = 100
IMPORT_HISTORY_DEFAULT_LIMIT = 50
NOTIFICATIONS_DEFAULT_LIMIT = 50
HOSTESS_RECENT_ACTIVITY_LIMIT = 10
DAILY_REPORT_TOP_HOSTESSES = 5
REALTIME_EVENT_RETENTION_DAYS = 1
