"""
Statistics API - dashboard counters, room windows and hostess performance.
"""

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.permissions import Action, authorize, require_action
from hospitality.serializers import success_response
from hospitality.validation import ValidationError, parse_uuid

statistics_bp = Blueprint("statistics", __name__)


def _parse_datetime(name: str) -> datetime:
    raw = request.args.get(name)
    if not raw:
        raise ValidationError(f"Parametro obbligatorio mancante: {name}")
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Data non valida per '{name}': {raw}")


@statistics_bp.get("/statistics")
@require_action(Action.STATISTICS_VIEW)
def global_stats():
    return jsonify(success_response(services().statistics.get_global_stats())), HTTPStatus.OK


@statistics_bp.get("/statistics/rooms/<room_id>")
@require_action(Action.STATISTICS_VIEW)
def room_window_stats(room_id: str):
    """Checked-in guests of a room between ``start`` and ``end`` (ISO 8601)."""
    stats = services().statistics.get_room_stats_by_date(
        parse_uuid(room_id, "room_id"), _parse_datetime("start"), _parse_datetime("end")
    )
    return jsonify(success_response(stats)), HTTPStatus.OK


@statistics_bp.get("/statistics/hostesses/<user_id>")
@require_action(Action.HOSTESS_PERFORMANCE_VIEW)
def hostess_performance(user_id: str):
    user_uuid = parse_uuid(user_id, "user_id")
    authorize(current_principal(), Action.HOSTESS_PERFORMANCE_VIEW, user_uuid)
    return jsonify(
        success_response(services().statistics.get_hostess_performance(user_uuid))
    ), HTTPStatus.OK
