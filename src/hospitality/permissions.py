"""
Capability checks for dashboard principals.

Every privileged operation, whether reached from a route or from the CLI,
asks ``can(principal, action, resource)``. Admins may do everything; hostesses
get a fixed set of actions, most of them scoped to the rooms assigned to them.
"""

from __future__ import annotations

import uuid
from enum import Enum
from functools import wraps
from http import HTTPStatus
from typing import Any

from hospitality.auth.service import AuthError, Principal
from hospitality.logging_config import get_logger

logger = get_logger(__name__)


class Action(str, Enum):
    """Actions available in the dashboard."""

    ADMIN_PANEL = "admin:panel"

    ROOMS_VIEW = "rooms:view"
    ROOMS_MANAGE = "rooms:manage"

    GUESTS_VIEW = "guests:view"
    GUESTS_MANAGE = "guests:manage"
    GUESTS_CHECK_IN = "guests:check_in"

    HOSTESSES_MANAGE = "hostesses:manage"
    PROFILES_MANAGE = "profiles:manage"

    AUDIT_VIEW = "audit:view"
    IMPORT_EXPORT = "import_export:run"

    STATISTICS_VIEW = "statistics:view"
    HOSTESS_PERFORMANCE_VIEW = "statistics:hostess"

    EMAIL_ADMIN = "email:admin"
    EMAIL_PREFERENCES = "email:preferences"

    REALTIME_SUBSCRIBE = "realtime:subscribe"


# Hostess actions whose resource is a room (or something that lives in one).
_HOSTESS_ROOM_SCOPED = {
    Action.ROOMS_VIEW,
    Action.GUESTS_VIEW,
    Action.GUESTS_CHECK_IN,
    Action.REALTIME_SUBSCRIBE,
}

# Hostess actions whose resource is the hostess's own profile id.
_HOSTESS_SELF_SCOPED = {
    Action.EMAIL_PREFERENCES,
    Action.HOSTESS_PERFORMANCE_VIEW,
}


def _room_of(resource: Any) -> uuid.UUID | None:
    if resource is None:
        return None
    if isinstance(resource, uuid.UUID):
        return resource
    room_id = getattr(resource, "room_id", None)
    if room_id is None and isinstance(resource, dict):
        room_id = resource.get("room_id")
    if room_id is None:
        return None
    return room_id if isinstance(room_id, uuid.UUID) else uuid.UUID(str(room_id))


def _user_of(resource: Any) -> uuid.UUID | None:
    if resource is None:
        return None
    if isinstance(resource, uuid.UUID):
        return resource
    user_id = getattr(resource, "user_id", None) or getattr(resource, "id", None)
    if user_id is None:
        return None
    return user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))


def can(principal: Principal | None, action: Action, resource: Any = None) -> bool:
    """
    Whether ``principal`` may perform ``action`` on ``resource``.

    With ``resource=None`` a room-scoped hostess action answers "may the
    principal do this at all", which callers use before narrowing results to
    the assigned rooms.
    """
    if principal is None:
        return False
    if principal.is_admin:
        return True

    if action in _HOSTESS_ROOM_SCOPED:
        room_id = _room_of(resource)
        return room_id is None or room_id in principal.room_ids

    if action in _HOSTESS_SELF_SCOPED:
        user_id = _user_of(resource)
        return user_id is None or user_id == principal.id

    return False


def authorize(principal: Principal | None, action: Action, resource: Any = None) -> None:
    """Raise AuthError unless ``can`` allows the action."""
    if principal is None:
        raise AuthError("Autenticazione richiesta", status=HTTPStatus.UNAUTHORIZED)
    if not can(principal, action, resource):
        logger.warning(f"Principal {principal.id} ({principal.role}) denied {action.value}")
        raise AuthError("Permesso negato", status=HTTPStatus.FORBIDDEN)


def require_action(action: Action):
    """
    Route decorator: the current principal must be allowed ``action``
    (resource-independent form). Resource checks happen inside the view.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            from hospitality.jwt_middleware import get_current_principal

            authorize(get_current_principal(), action)
            return f(*args, **kwargs)

        return decorated_function

    return decorator
