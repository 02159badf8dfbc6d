"""Application error taxonomy. Each error maps to one HTTP status and a short reason string."""


class AppError(Exception):
    """Base application error rendered as {"error": message} with status_code."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    """Missing or invalid input."""

    status_code = 400
    default_message = "Bad request"


class InvalidStatus(BadRequest):
    """Status value outside the closed grievance status set."""

    default_message = "Invalid status"


class Unauthorized(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class MissingToken(Unauthorized):
    default_message = "Authentication required"


class InvalidSignature(Unauthorized):
    default_message = "Invalid token"


class TokenExpired(Unauthorized):
    default_message = "Token expired"


class UnknownSubject(Unauthorized):
    default_message = "User not found"


class Forbidden(AppError):
    """Authenticated but not permitted."""

    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    """Duplicate unique key."""

    status_code = 409
    default_message = "Conflict"


class Internal(AppError):
    """Unexpected store or I/O failure."""

    status_code = 500
