"""Domain errors raised by the service layer.

Routes translate these into the response shape of their channel: bare
``{"message": ...}`` objects for the web API and the
``{success, message, code}`` envelope for the mobile API.
"""

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException


class AcademyError(Exception):
    """Base error carrying a client-safe message, a machine code and an HTTP status."""

    status = 500
    default_code = "ERROR"

    def __init__(self, message, code=None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class ValidationError(AcademyError):
    status = 400
    default_code = "INVALID_INPUT"


class AuthenticationError(AcademyError):
    status = 401
    default_code = "INVALID_CREDENTIALS"


class AccessDeniedError(AcademyError):
    status = 403
    default_code = "ACCESS_DENIED"


class NotFoundError(AcademyError):
    status = 404
    default_code = "NOT_FOUND"


class ConflictError(AcademyError):
    status = 409
    default_code = "CONFLICT"


class DeliveryError(AcademyError):
    status = 500
    default_code = "EMAIL_ERROR"


def is_mobile_request():
    return request.path.startswith("/api/mobile")


def register_error_handlers(app):
    @app.errorhandler(AcademyError)
    def handle_academy_error(error):
        if is_mobile_request():
            return jsonify({"success": False, "message": error.message, "code": error.code}), error.status
        return jsonify({"message": error.message}), error.status

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if is_mobile_request():
            return jsonify({
                "success": False,
                "message": error.description,
                "code": error.name.upper().replace(" ", "_"),
            }), error.code
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception(f"Unhandled error on {request.method} {request.path}: {error}")
        if is_mobile_request():
            return jsonify({"success": False, "message": "Internal server error", "code": "SERVER_ERROR"}), 500
        return jsonify({"message": "Internal server error"}), 500
