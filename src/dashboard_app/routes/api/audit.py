"""
Audit log API.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from dashboard_app.decorators import services
from hospitality.constants import AUDIT_LOG_DEFAULT_LIMIT
from hospitality.permissions import Action, require_action
from hospitality.serializers import success_response

audit_bp = Blueprint("audit", __name__)


@audit_bp.get("/audit")
@require_action(Action.AUDIT_VIEW)
def list_audit_log():
    limit = request.args.get("limit", AUDIT_LOG_DEFAULT_LIMIT, type=int)
    return jsonify(success_response(services().audit.get_all_audit_logs(limit))), HTTPStatus.OK
