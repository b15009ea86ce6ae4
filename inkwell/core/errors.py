"""API error taxonomy rendered by the exception handlers in inkwell.main."""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable codes returned in error bodies."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_INACTIVE = "USER_INACTIVE"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_EXISTS = "USER_EXISTS"
    USERNAME_EXISTS = "USERNAME_EXISTS"
    REFRESH_TOKEN_MISSING = "REFRESH_TOKEN_MISSING"
    REFRESH_TOKEN_INVALID = "REFRESH_TOKEN_INVALID"
    REFRESH_TOKEN_MISMATCH = "REFRESH_TOKEN_MISMATCH"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ApiError(Exception):
    """Base class for errors that map to a JSON error response."""

    status_code: int = 500
    default_code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.errors = errors
        super().__init__(message)


class ValidationFailed(ApiError):
    """Raised when request input is missing or malformed (400)."""

    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR


class AuthenticationError(ApiError):
    """
    Raised when a request cannot be authenticated (401).

    clear_session=True tells the error handler to also expire the refresh cookie.
    """

    status_code = 401

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        clear_session: bool = False,
    ) -> None:
        self.clear_session = clear_session
        super().__init__(message, code=code)


class PermissionDenied(ApiError):
    """Raised on role or ownership denial (403)."""

    status_code = 403
    default_code = ErrorCode.FORBIDDEN


class NotFoundError(ApiError):
    """Raised when a requested record does not exist (404)."""

    status_code = 404
    default_code = ErrorCode.NOT_FOUND


class ConflictError(ApiError):
    """Raised on uniqueness violations (409)."""

    status_code = 409
    default_code = ErrorCode.CONFLICT
