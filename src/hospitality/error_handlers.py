"""
Centralized error handlers for the dashboard API. Every error is a JSON
envelope.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from hospitality.auth.service import AuthError
from hospitality.logging_config import get_logger
from hospitality.serializers import error_response
from hospitality.validation import NotFoundError, ValidationError

logger = get_logger(__name__)


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(NotFoundError)
    def handle_not_found_error(e: NotFoundError):
        logger.info(f"Not found: {e}")
        return jsonify(error_response(str(e))), HTTPStatus.NOT_FOUND

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        """Handle custom validation errors."""
        logger.warning(f"Validation error: {e}")
        return jsonify(error_response(str(e))), HTTPStatus.BAD_REQUEST

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError):
        logger.warning(f"Auth error {int(e.status)}: {e}")
        return jsonify(error_response(str(e))), e.status

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        """Handle Pydantic validation errors."""
        logger.warning(f"Pydantic validation error: {e}")
        return jsonify(
            error_response("Dati non validi", {"details": e.errors(include_url=False)})
        ), HTTPStatus.BAD_REQUEST

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        logger.warning(f"Integrity error: {e.orig}")
        return jsonify(
            error_response("Operazione in conflitto con i dati esistenti")
        ), HTTPStatus.CONFLICT

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        """Handle database errors."""
        logger.error(f"Database error: {e}", exc_info=True)
        return jsonify(error_response("Errore del database")), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        """Handle HTTP exceptions from Werkzeug."""
        logger.warning(f"HTTP exception {e.code}: {e.description}")
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        """Handle any unhandled exceptions."""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify(error_response("Errore interno del server")), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify(error_response("Risorsa non trovata")), HTTPStatus.NOT_FOUND

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify(error_response("Metodo non consentito")), HTTPStatus.METHOD_NOT_ALLOWED
