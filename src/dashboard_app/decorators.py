"""Decorators and helpers for route protection using JWT principals."""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus

from flask import current_app, jsonify

from hospitality.auth.service import Principal
from hospitality.jwt_middleware import get_current_principal
from hospitality.serializers import error_response
from hospitality.services.registry import Services


def services() -> Services:
    """Service graph attached to the running app."""
    return current_app.extensions["hospitality"]


def current_principal() -> Principal:
    """The principal of a request already guarded by ``login_required``."""
    principal = get_current_principal()
    if principal is None:
        raise RuntimeError("current_principal() used outside a protected route")
    return principal


def login_required(f):
    """Decorator to require JWT authentication for a route."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_principal() is None:
            return jsonify(error_response("Autenticazione richiesta")), HTTPStatus.UNAUTHORIZED
        return f(*args, **kwargs)

    return decorated_function


def admin_required(f):
    """Decorator to require the admin role for a route."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = get_current_principal()
        if principal is None:
            return jsonify(error_response("Autenticazione richiesta")), HTTPStatus.UNAUTHORIZED
        if not principal.is_admin:
            return jsonify(error_response("Accesso riservato agli amministratori")), HTTPStatus.FORBIDDEN
        return f(*args, **kwargs)

    return decorated_function
