"""
Input validation utilities.
"""

from __future__ import annotations

import re
import uuid

from hospitality.constants import EmailFrequency, Roles


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


class NotFoundError(ValidationError):
    """Raised when a referenced record does not exist."""

    pass


def validate_password(password: str) -> None:
    """
    Validate password strength: at least 8 characters with a letter and a digit.
    """
    if not password:
        raise ValidationError("La password è obbligatoria")

    if len(password) < 8:
        raise ValidationError("La password deve contenere almeno 8 caratteri")

    if not re.search(r"[A-Za-z]", password):
        raise ValidationError("La password deve contenere almeno una lettera")

    if not re.search(r"[0-9]", password):
        raise ValidationError("La password deve contenere almeno un numero")


def validate_email(email: str) -> None:
    """Validate email format."""
    if not email:
        raise ValidationError("L'email è obbligatoria")

    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(pattern, email):
        raise ValidationError("Formato email non valido")


def validate_role(role: str) -> None:
    if role not in Roles.all_values():
        allowed = ", ".join(sorted(Roles.all_values()))
        raise ValidationError(f"Ruolo non valido: {role}. Ruoli ammessi: {allowed}")


def validate_frequency(value: str) -> None:
    allowed = {member.value for member in EmailFrequency}
    if value not in allowed:
        raise ValidationError(f"Frequenza non valida: {value}")


def validate_clock(value: str | None) -> None:
    """Quiet-hours bounds are ``HH:MM`` strings (seconds tolerated)."""
    if value is None or value == "":
        return
    if not re.match(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$", value):
        raise ValidationError(f"Orario non valido: {value}")


def parse_uuid(value, field: str = "id") -> uuid.UUID:
    """Coerce route/body identifiers to UUID, raising ValidationError on garbage."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Identificativo non valido per '{field}': {value}")


def require_text(value: str | None, message: str) -> str:
    """Trimmed non-empty string or ValidationError."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(message)
    return text
