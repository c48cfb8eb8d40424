"""Application-wide error handlers returning JSON responses."""

from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .core.types import APIResponse
from .errors import (
    AppError,
    DuplicateResourceError,
    InsufficientParticipantsError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code):
    body: APIResponse = {"success": False, "message": message, "data": None}
    return jsonify(body), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors, including bracket regeneration."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(PermissionDeniedError)
def handle_permission_denied_error(error):
    """Handles actions the signed-in user is not allowed to take."""
    current_app.logger.warning(f"Permission Denied: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(InvalidTransitionError)
def handle_invalid_transition_error(error):
    """Handles rejected match state transitions."""
    current_app.logger.warning(f"Invalid Transition: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(InsufficientParticipantsError)
def handle_insufficient_participants_error(error):
    """Handles bracket generation with too few approved participants."""
    current_app.logger.warning(f"Insufficient Participants: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(PersistenceError)
def handle_persistence_error(error):
    """Handles storage failures without exposing raw database details."""
    current_app.logger.error(f"Persistence Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found.", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("An unexpected error occurred.", 500)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """
    Handles CSRF errors, which usually indicate a session timeout or invalid form submission.
    """
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return _error_response(
        "Your session may have expired. Please try your action again.", 400
    )
