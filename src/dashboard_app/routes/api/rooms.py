"""
Rooms API - room management and per-room statistics.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.permissions import Action, authorize, require_action
from hospitality.schemas import RoomRequest
from hospitality.serializers import success_response
from hospitality.validation import parse_uuid

rooms_bp = Blueprint("rooms", __name__)


@rooms_bp.get("/rooms")
@require_action(Action.ROOMS_VIEW)
def list_rooms():
    """All rooms for admins, assigned rooms for hostesses."""
    principal = current_principal()
    rooms = services().rooms.get_all_rooms()
    if not principal.is_admin:
        rooms = [room for room in rooms if room.id in principal.room_ids]
    return jsonify(success_response(rooms)), HTTPStatus.OK


@rooms_bp.get("/rooms/overview")
@require_action(Action.ROOMS_MANAGE)
def rooms_overview():
    return jsonify(success_response(services().rooms.get_rooms_overview())), HTTPStatus.OK


@rooms_bp.post("/rooms")
@require_action(Action.ROOMS_MANAGE)
def create_room():
    data = RoomRequest.model_validate(request.get_json(silent=True) or {})
    room = services().rooms.create_room(data.name)
    return jsonify(success_response(room)), HTTPStatus.CREATED


@rooms_bp.put("/rooms/<room_id>")
@require_action(Action.ROOMS_MANAGE)
def update_room(room_id: str):
    data = RoomRequest.model_validate(request.get_json(silent=True) or {})
    room = services().rooms.update_room(parse_uuid(room_id, "room_id"), data.name)
    return jsonify(success_response(room)), HTTPStatus.OK


@rooms_bp.delete("/rooms/<room_id>")
@require_action(Action.ROOMS_MANAGE)
def delete_room(room_id: str):
    """Delete the room and every guest in it."""
    deleted = services().rooms.delete_room(parse_uuid(room_id, "room_id"))
    return jsonify(success_response({"deleted_guests": deleted})), HTTPStatus.OK


@rooms_bp.get("/rooms/<room_id>/stats")
@require_action(Action.ROOMS_VIEW)
def room_stats(room_id: str):
    room_uuid = parse_uuid(room_id, "room_id")
    authorize(current_principal(), Action.ROOMS_VIEW, room_uuid)
    return jsonify(success_response(services().rooms.get_room_stats(room_uuid))), HTTPStatus.OK
