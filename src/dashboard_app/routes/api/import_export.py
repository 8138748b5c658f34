"""
Import/Export API - guest spreadsheets.
"""

from http import HTTPStatus
from io import BytesIO

from flask import Blueprint, jsonify, request, send_file

from dashboard_app.decorators import current_principal, services
from hospitality.constants import IMPORT_HISTORY_DEFAULT_LIMIT
from hospitality.logging_config import get_logger
from hospitality.permissions import Action, require_action
from hospitality.serializers import error_response, success_response
from hospitality.validation import parse_uuid

import_export_bp = Blueprint("import_export", __name__)
logger = get_logger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@import_export_bp.post("/import")
@require_action(Action.IMPORT_EXPORT)
def import_guests():
    """Multipart upload with the spreadsheet in the ``file`` field."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify(error_response("Nessun file caricato")), HTTPStatus.BAD_REQUEST

    result = services().import_export.import_guests(
        upload.read(), upload.filename, current_principal().id
    )
    logger.info(
        f"Import of {upload.filename} by {current_principal().id}: "
        f"{result.success} ok, {result.failed} failed"
    )
    return jsonify(success_response(result)), HTTPStatus.OK


@import_export_bp.get("/export")
@require_action(Action.IMPORT_EXPORT)
def export_guests():
    room_id = request.args.get("room_id")
    content, file_name = services().import_export.export_guests(
        parse_uuid(room_id, "room_id") if room_id else None
    )
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=file_name,
    )


@import_export_bp.get("/import/history")
@require_action(Action.IMPORT_EXPORT)
def import_history():
    limit = request.args.get("limit", IMPORT_HISTORY_DEFAULT_LIMIT, type=int)
    history = services().import_history.get_import_history(limit)
    return jsonify(success_response(history)), HTTPStatus.OK
