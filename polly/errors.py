from flask import jsonify, g
from werkzeug.exceptions import HTTPException

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "UNAUTHENTICATED": 401,
    "FORBIDDEN": 403,
    "CSRF_ERROR": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "RATE_LIMITED": 429,
    "EXTERNAL_SERVICE_ERROR": 502,
}


class ActionError(Exception):
    """Base for failures an action reports back as ``{"error": message}``."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE.get(self.code, 400)


class ValidationError(ActionError):
    code = "VALIDATION_ERROR"


class AuthorizationError(ActionError):
    code = "FORBIDDEN"


class NotFoundError(ActionError):
    code = "NOT_FOUND"


class ConflictError(ActionError):
    code = "CONFLICT"


class RateLimitError(ActionError):
    code = "RATE_LIMITED"


class CsrfError(ActionError):
    code = "CSRF_ERROR"


class ExternalServiceError(ActionError):
    code = "EXTERNAL_SERVICE_ERROR"


def status_for(result: dict, success_status: int = 200) -> int:
    if not result.get("error"):
        return success_status
    return STATUS_BY_CODE.get(result.get("code"), 400)


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": message,
            "code": code,
            "details": details or None,
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # Structured info passed via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def handle_500(_):
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)

    @app.errorhandler(Exception)
    def handle_unexpected(_):
        app.logger.exception(
            "Unhandled exception request_id=%s", getattr(g, "request_id", None)
        )
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
