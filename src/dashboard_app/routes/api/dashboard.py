"""
Dashboard API - landing data for the signed-in profile.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

from dashboard_app.decorators import current_principal, login_required, services
from hospitality.serializers import success_response

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.get("/dashboard")
@login_required
def get_dashboard():
    """
    Profile, visible rooms and guest counters. Admins see every room;
    hostesses see the rooms assigned to them.
    """
    principal = current_principal()
    svc = services()

    profile = svc.profiles.get_profile(principal.id)
    rooms = svc.rooms.get_rooms_overview()
    if not principal.is_admin:
        rooms = [room for room in rooms if room.id in principal.room_ids]

    total = sum(room.total_guests for room in rooms)
    checked_in = sum(room.checked_in for room in rooms)
    return jsonify(
        success_response(
            {
                "profile": profile,
                "rooms": rooms,
                "stats": {
                    "total_guests": total,
                    "checked_in": checked_in,
                    "pending": total - checked_in,
                },
            }
        )
    ), HTTPStatus.OK
