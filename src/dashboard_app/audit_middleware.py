"""
Request audit log for the dashboard API.
"""

import time

from flask import Flask, Response, g, request

from hospitality.jwt_middleware import get_current_principal
from hospitality.logging_config import get_logger

logger = get_logger("dashboard_app.audit")


def init_audit_middleware(app: Flask) -> None:
    """
    Register hooks that log one line per request.
    Format: USER|ACTION|CODE|REQUEST_ID|TIME
    """

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def log_request(response: Response):
        principal = get_current_principal()
        user = principal.email if principal else "ANONYMOUS"
        action = f"{request.method} {request.path}"
        request_id = request.headers.get("X-Request-ID", "NO_REQUEST_ID")

        duration = 0
        if hasattr(g, "start_time"):
            duration = int((time.time() - g.start_time) * 1000)

        status_code = response.status_code
        log_line = f"{user}|{action}|{status_code}|{request_id}|{duration}ms"

        # Error for 5xx, warning for 4xx, info otherwise
        if status_code >= 500:
            logger.error(log_line)
        elif status_code >= 400:
            logger.warning(log_line)
        else:
            logger.info(log_line)
        return response
