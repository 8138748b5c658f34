"""
Realtime API - polling feed of guest changes per room.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.permissions import Action, authorize, require_action
from hospitality.serializers import success_response
from hospitality.validation import parse_uuid

realtime_bp = Blueprint("realtime", __name__)


@realtime_bp.get("/realtime/rooms/<room_id>/events")
@require_action(Action.REALTIME_SUBSCRIBE)
def room_events(room_id: str):
    """
    Guest INSERT/UPDATE/DELETE events of a room with id greater than ``after``.
    Clients poll with the last id they saw.
    """
    room_uuid = parse_uuid(room_id, "room_id")
    authorize(current_principal(), Action.REALTIME_SUBSCRIBE, room_uuid)
    events = services().realtime.read_events(
        room_uuid,
        after_id=request.args.get("after", 0, type=int),
        limit=request.args.get("limit", 100, type=int),
    )
    last_id = events[-1].id if events else request.args.get("after", 0, type=int)
    return jsonify(success_response({"events": events, "last_id": last_id})), HTTPStatus.OK
