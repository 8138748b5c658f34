"""
Security helpers for hashing credentials.
"""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


def normalize_identifier(value: str | None) -> str:
    """Normalize identifiers such as emails before storing or comparing them."""
    if not value:
        return ""
    return value.strip().lower()


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str | None, stored_hash: str | None) -> bool:
    """
    Compare a candidate password against the stored hash.
    """
    if not stored_hash or not password:
        return False
    return check_password_hash(stored_hash, password)
