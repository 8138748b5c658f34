"""
Dashboard API - modular blueprint structure.

Each module handles one resource of the check-in dashboard.
"""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("api", __name__)

# Import and register sub-blueprints
from .audit import audit_bp  # noqa: E402
from .auth import auth_bp  # noqa: E402
from .dashboard import dashboard_bp  # noqa: E402
from .email import email_bp  # noqa: E402
from .guests import guests_bp  # noqa: E402
from .hostesses import hostesses_bp  # noqa: E402
from .import_export import import_export_bp  # noqa: E402
from .realtime import realtime_bp  # noqa: E402
from .rooms import rooms_bp  # noqa: E402
from .statistics import statistics_bp  # noqa: E402

api_bp.register_blueprint(auth_bp)
api_bp.register_blueprint(dashboard_bp)
api_bp.register_blueprint(rooms_bp)
api_bp.register_blueprint(guests_bp)
api_bp.register_blueprint(hostesses_bp)
api_bp.register_blueprint(audit_bp)
api_bp.register_blueprint(import_export_bp)
api_bp.register_blueprint(email_bp)
api_bp.register_blueprint(statistics_bp)
api_bp.register_blueprint(realtime_bp)

__all__ = ["api_bp"]
