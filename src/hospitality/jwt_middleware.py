"""
JWT Middleware for Flask.

Validates the request token and loads the matching principal from the store
into ``g.current_principal``.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from flask import g, request

from hospitality.auth.service import AuthService, Principal
from hospitality.jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
    extract_token_from_request,
)
from hospitality.logging_config import get_logger

if TYPE_CHECKING:
    from flask import Flask

logger = get_logger(__name__)


def init_jwt_middleware(app: Flask, auth_service: AuthService) -> None:
    """
    Initialize JWT middleware for a Flask app.

    Sets up a before_request handler that:
    1. Extracts the JWT from the request
    2. Validates it
    3. Reloads the profile and its room assignments into g.current_principal
    """

    @app.before_request
    def load_jwt_principal():
        g.current_principal = None
        g.jwt_token = None

        token = extract_token_from_request(request)
        if not token:
            return

        try:
            payload = decode_token(token, verify_type="access")
            user_id = uuid.UUID(payload["sub"])
        except TokenExpiredError:
            logger.debug(f"Expired token on {request.path}")
            return
        except (InvalidTokenError, KeyError, ValueError) as e:
            logger.warning(f"Invalid token on {request.path}: {e}")
            return

        principal = auth_service.load_principal(user_id)
        if principal is None:
            logger.warning(f"Token for deleted profile {user_id} on {request.path}")
            return

        g.current_principal = principal
        g.jwt_token = token


def get_current_principal() -> Principal | None:
    """
    Get the authenticated principal from the request context, or None.
    """
    return getattr(g, "current_principal", None)
