"""
Email API - preferences, delivery history, stats and the admin test panel.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import current_principal, services
from hospitality.constants import NOTIFICATIONS_DEFAULT_LIMIT
from hospitality.logging_config import get_logger
from hospitality.permissions import Action, require_action
from hospitality.schemas import EmailPreferencesRequest, TestEmailRequest
from hospitality.serializers import success_response

email_bp = Blueprint("email", __name__)
logger = get_logger(__name__)


@email_bp.get("/email/preferences")
@require_action(Action.EMAIL_PREFERENCES)
def get_preferences():
    """Saved preferences of the caller, or the defaults."""
    prefs = services().email_preferences.get_effective_preferences(current_principal().id)
    return jsonify(success_response(prefs)), HTTPStatus.OK


@email_bp.put("/email/preferences")
@require_action(Action.EMAIL_PREFERENCES)
def update_preferences():
    data = EmailPreferencesRequest.model_validate(request.get_json(silent=True) or {})
    prefs = services().email_preferences.update_preferences(current_principal().id, data)
    return jsonify(success_response(prefs)), HTTPStatus.OK


@email_bp.get("/email/notifications")
@require_action(Action.EMAIL_ADMIN)
def list_notifications():
    notifications = services().email.get_notifications(
        limit=request.args.get("limit", NOTIFICATIONS_DEFAULT_LIMIT, type=int),
        status=request.args.get("status") or None,
        type=request.args.get("type") or None,
    )
    return jsonify(success_response(notifications)), HTTPStatus.OK


@email_bp.get("/email/stats")
@require_action(Action.EMAIL_ADMIN)
def email_stats():
    days = request.args.get("days", 7, type=int)
    return jsonify(success_response(services().email.get_email_stats(days))), HTTPStatus.OK


@email_bp.post("/email/test")
@require_action(Action.EMAIL_ADMIN)
def send_test_email():
    data = TestEmailRequest.model_validate(request.get_json(silent=True) or {})
    sent = services().email.send_test_notification(
        data.recipient, created_by=str(current_principal().id)
    )
    logger.info(f"Test email to {data.recipient} requested by {current_principal().id}: sent={sent}")
    return jsonify(success_response({"sent": sent})), HTTPStatus.OK


@email_bp.post("/email/daily-report")
@require_action(Action.EMAIL_ADMIN)
def send_daily_report():
    sent = services().scheduled.send_daily_report()
    logger.info(f"Daily report triggered by {current_principal().id}: sent={sent}")
    return jsonify(success_response({"sent": sent})), HTTPStatus.OK


@email_bp.post("/email/process-pending")
@require_action(Action.EMAIL_ADMIN)
def process_pending():
    processed = services().scheduled.process_pending_notifications()
    logger.info(f"Pending sweep triggered by {current_principal().id}: {processed} processed")
    return jsonify(success_response({"processed": processed})), HTTPStatus.OK


@email_bp.get("/email/dead")
@require_action(Action.EMAIL_ADMIN)
def dead_notifications():
    return jsonify(success_response(services().email.get_dead_notifications())), HTTPStatus.OK
