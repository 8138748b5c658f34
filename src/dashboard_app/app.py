"""
Factory for the hospitality check-in dashboard API.

Uses JWT for authentication instead of server-side sessions.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Flask, jsonify
from flask_cors import CORS

from dashboard_app.audit_middleware import init_audit_middleware
from hospitality.config import AppConfig, load_config, validate_required_env_vars
from hospitality.db import Store
from hospitality.error_handlers import register_error_handlers
from hospitality.jwt_middleware import init_jwt_middleware
from hospitality.logging_config import configure_logging, get_logger
from hospitality.models import Base
from hospitality.serializers import success_response
from hospitality.services.email_providers import EmailProvider
from hospitality.services.guest_workflow import ImmediateDeferrer, TimerDeferrer
from hospitality.services.registry import build_services

logger = get_logger(__name__)

DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]


def create_app(
    config: AppConfig | None = None,
    store: Store | None = None,
    email_provider: EmailProvider | None = None,
    deferrer: TimerDeferrer | ImmediateDeferrer | None = None,
) -> Flask:
    """
    Build the Flask application that serves the dashboard API.

    Collaborators can be injected (tests pass an in-memory store, a fake email
    provider and an inline deferrer); otherwise they are built from the
    environment.
    """
    if config is None:
        # Validate all required environment variables (fail-fast)
        validate_required_env_vars(skip_in_debug=True)
        config = load_config("hospitality-dashboard")

    configure_logging(config.app_name, config.log_level)

    if store is None:
        store = Store.from_config(config)
        store.create_all(Base.metadata)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["APP_NAME"] = config.app_name
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["JWT_ACCESS_TOKEN_EXPIRES_HOURS"] = config.jwt_access_token_expires_hours
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024

    services = build_services(store, config, email_provider=email_provider, deferrer=deferrer)
    app.extensions["hospitality"] = services

    init_audit_middleware(app)
    init_jwt_middleware(app, services.auth)
    register_error_handlers(app)

    from dashboard_app.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    # Configure CORS with secure defaults
    allowed_origins = config.cors_allowed_origins
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEFAULT_DEV_ORIGINS
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins, "supports_credentials": True}},
        supports_credentials=True,
    )

    @app.get("/health")
    def health():
        return jsonify(success_response({"app": config.app_name})), HTTPStatus.OK

    logger.info(f"{config.app_name} ready (email provider: {config.email_provider})")
    return app
