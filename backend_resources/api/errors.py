"""Error handlers for the application.

Every failure leaves the service as a JSON response:
- ValidationError -> 400 with ``{field: reason}``
- ProviderError / NotFoundError -> their status with ``{"message": ...}``
- HTTP errors raised by Flask -> ``{"error": ..., "message": ...}``
- anything else -> 500 with ``{"message": ...}``, logged with traceback
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from backend_resources.core.errors import BackendResourcesError, ValidationError
from backend_resources.core.models import ErrorResponse


def render_error(error: ErrorResponse):
    response = jsonify(error.to_dict())
    response.status_code = error.status
    return response


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ValidationError)
    def validation_failed(error: ValidationError):
        app.logger.info("Rejected invalid payload: %s", error.errors)
        response = jsonify(error.errors)
        response.status_code = 400
        return response

    @app.errorhandler(BackendResourcesError)
    def domain_error(error: BackendResourcesError):
        if error.status >= 500:
            app.logger.error("Request failed: %s", error.message)
        else:
            app.logger.info("Request failed with %s: %s", error.status, error.message)
        return render_error(ErrorResponse(message=error.message, status=error.status))

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        response = jsonify({"error": error.name, "message": error.description})
        response.status_code = error.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        app.logger.error("Unhandled exception: %s", error, exc_info=True)
        return render_error(ErrorResponse(message=str(error) or "An unexpected error occurred", status=500))
