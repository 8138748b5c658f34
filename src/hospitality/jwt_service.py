"""
JWT Service - token generation and validation for dashboard sessions.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_COOKIE = "access_token"


def get_access_token_expiry() -> int:
    try:
        return int(current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 12))
    except RuntimeError:
        return int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "12"))


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get JWT secret key from the Flask config or the environment."""
    try:
        secret = current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY"))
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY or SECRET_KEY must be configured")
    return secret


def create_access_token(
    profile_id: str,
    email: str,
    role: str,
    full_name: str | None = None,
    expires_hours: int | None = None,
) -> str:
    """
    Create a JWT access token for a profile.

    The role and name are informational; authorization always re-reads the
    profile from the store.
    """
    secret = get_jwt_secret()
    expires = expires_hours or get_access_token_expiry()

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(profile_id),
        "iat": now,
        "exp": now + timedelta(hours=expires),
        "type": "access",
        "email": email,
        "role": role,
        "full_name": full_name,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid
    """
    secret = get_jwt_secret()

    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))

    if verify_type and payload.get("type") != verify_type:
        raise InvalidTokenError(f"Expected {verify_type} token")

    return payload


def extract_token_from_request(request: Request) -> str | None:
    """
    Extract JWT token from request.

    Checks in order:
    1. Authorization header (Bearer token)
    2. X-Access-Token header
    3. access_token cookie
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    token_header = request.headers.get("X-Access-Token")
    if token_header:
        return token_header

    return request.cookies.get(ACCESS_TOKEN_COOKIE)
