"""
Guests API - guest lists, edits and the check-in desk.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.permissions import Action, authorize, require_action
from hospitality.schemas import CreateGuestRequest, UpdateGuestRequest
from hospitality.serializers import error_response, success_response
from hospitality.validation import parse_uuid

guests_bp = Blueprint("guests", __name__)


def _room_arg():
    room_id = request.args.get("room_id")
    return parse_uuid(room_id, "room_id") if room_id else None


@guests_bp.get("/guests")
@require_action(Action.GUESTS_VIEW)
def list_guests():
    """Guests visible to the caller, optionally filtered by room and search text."""
    guests = services().guests.get_guests_for_principal(
        current_principal(), room_id=_room_arg(), search=request.args.get("search")
    )
    return jsonify(success_response(guests)), HTTPStatus.OK


@guests_bp.get("/guests/search")
@require_action(Action.GUESTS_VIEW)
def search_guests():
    guests = services().guests.get_guests_for_principal(
        current_principal(), room_id=_room_arg(), search=request.args.get("q", "")
    )
    return jsonify(success_response(guests)), HTTPStatus.OK


@guests_bp.post("/guests")
@require_action(Action.GUESTS_MANAGE)
def create_guest():
    data = CreateGuestRequest.model_validate(request.get_json(silent=True) or {})
    guest = services().guests.create_guest(data.model_dump(), current_principal().id)
    return jsonify(success_response(guest)), HTTPStatus.CREATED


@guests_bp.put("/guests/<guest_id>")
@require_action(Action.GUESTS_MANAGE)
def update_guest(guest_id: str):
    data = UpdateGuestRequest.model_validate(request.get_json(silent=True) or {})
    guest = services().guests.update_guest(
        parse_uuid(guest_id, "guest_id"),
        data.model_dump(exclude_unset=True),
        current_principal().id,
    )
    return jsonify(success_response(guest)), HTTPStatus.OK


@guests_bp.delete("/guests/<guest_id>")
@require_action(Action.GUESTS_MANAGE)
def delete_guest(guest_id: str):
    services().guests.delete_guest(parse_uuid(guest_id, "guest_id"), current_principal().id)
    return jsonify(success_response({"deleted": True})), HTTPStatus.OK


def _run_desk_action(guest_id: str, check_in: bool):
    principal = current_principal()
    guest_uuid = parse_uuid(guest_id, "guest_id")
    svc = services()

    guest = svc.guests.get_guest(guest_uuid)
    authorize(principal, Action.GUESTS_CHECK_IN, guest)

    if check_in:
        result = svc.workflow.check_in_guest_with_notification(guest_uuid, principal.id)
    else:
        result = svc.workflow.check_out_guest_with_notification(guest_uuid, principal.id)

    if not result.success:
        return jsonify(error_response(result.error or "Operazione non riuscita")), HTTPStatus.BAD_REQUEST
    return jsonify(success_response(result.guest)), HTTPStatus.OK


@guests_bp.post("/guests/<guest_id>/check-in")
@require_action(Action.GUESTS_CHECK_IN)
def check_in_guest(guest_id: str):
    return _run_desk_action(guest_id, check_in=True)


@guests_bp.post("/guests/<guest_id>/check-out")
@require_action(Action.GUESTS_CHECK_IN)
def check_out_guest(guest_id: str):
    return _run_desk_action(guest_id, check_in=False)


@guests_bp.get("/guests/<guest_id>/audit")
@require_action(Action.AUDIT_VIEW)
def guest_audit(guest_id: str):
    rows = services().audit.get_guest_audit_log(parse_uuid(guest_id, "guest_id"))
    return jsonify(success_response(rows)), HTTPStatus.OK
