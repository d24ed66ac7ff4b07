from typing import Any, Dict


class AppError(Exception):
    """Base error for everything the API reports to clients.

    Subclasses pin the HTTP status; the exception handlers in main.py render
    them as ``{"error": message, "details": ...}``.
    """

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(f"[{self.code}] {message}")

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    """Invalid state transition, e.g. validating a persona that is not Draft."""

    status_code = 400
    code = "CONFLICT"


class DuplicateError(ConflictError):
    status_code = 409
    code = "DUPLICATE"


class ParseError(AppError):
    """The LLM answered, but not with the envelope we asked for."""

    status_code = 500
    code = "PARSE_ERROR"


class UpstreamError(AppError):
    status_code = 500
    code = "UPSTREAM_ERROR"
