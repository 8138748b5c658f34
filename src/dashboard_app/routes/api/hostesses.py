"""
Hostess management API - profiles and room assignments.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.logging_config import get_logger
from hospitality.permissions import Action, require_action
from hospitality.schemas import CreateHostessRequest, UpdateProfileRequest
from hospitality.serializers import error_response, success_response
from hospitality.validation import parse_uuid

hostesses_bp = Blueprint("hostesses", __name__)
logger = get_logger(__name__)


@hostesses_bp.get("/hostesses")
@require_action(Action.HOSTESSES_MANAGE)
def list_hostesses():
    return jsonify(success_response(services().profiles.get_hostesses_with_rooms())), HTTPStatus.OK


@hostesses_bp.post("/hostesses")
@require_action(Action.HOSTESSES_MANAGE)
def create_hostess():
    """Create a hostess account and assign the requested rooms."""
    data = CreateHostessRequest.model_validate(request.get_json(silent=True) or {})
    svc = services()
    profile = svc.auth.sign_up(
        data.email, data.password, data.full_name, data.role, room_ids=data.room_ids
    )
    logger.info(
        f"Profile {current_principal().id} created {profile.role} {profile.email} "
        f"with {len(data.room_ids)} rooms"
    )
    return jsonify(
        success_response({"profile": profile, "room_ids": [str(r) for r in data.room_ids]})
    ), HTTPStatus.CREATED


@hostesses_bp.get("/profiles")
@require_action(Action.PROFILES_MANAGE)
def list_profiles():
    return jsonify(success_response(services().profiles.get_all_profiles())), HTTPStatus.OK


@hostesses_bp.put("/profiles/<user_id>")
@require_action(Action.PROFILES_MANAGE)
def update_profile(user_id: str):
    data = UpdateProfileRequest.model_validate(request.get_json(silent=True) or {})
    profile = services().profiles.update_profile(parse_uuid(user_id, "user_id"), data)
    return jsonify(success_response(profile)), HTTPStatus.OK


@hostesses_bp.delete("/profiles/<user_id>")
@require_action(Action.PROFILES_MANAGE)
def delete_profile(user_id: str):
    user_uuid = parse_uuid(user_id, "user_id")
    if user_uuid == current_principal().id:
        return jsonify(error_response("Non puoi eliminare il tuo profilo")), HTTPStatus.BAD_REQUEST
    services().profiles.delete_profile(user_uuid)
    return jsonify(success_response({"deleted": True})), HTTPStatus.OK


@hostesses_bp.post("/hostesses/<user_id>/rooms/<room_id>/toggle")
@require_action(Action.HOSTESSES_MANAGE)
def toggle_room(user_id: str, room_id: str):
    """
    Flip a room assignment. The body may carry ``is_assigned``, the state the
    caller believes is current.
    """
    payload = request.get_json(silent=True) or {}
    is_assigned = payload.get("is_assigned")
    assigned = services().profiles.toggle_room_assignment(
        parse_uuid(user_id, "user_id"),
        parse_uuid(room_id, "room_id"),
        is_assigned if isinstance(is_assigned, bool) else None,
    )
    return jsonify(success_response({"assigned": assigned})), HTTPStatus.OK
