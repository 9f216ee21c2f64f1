"""
Application exceptions for the user administration service.

Each exception class fixes its HTTP status and machine-readable code as
class attributes; app_exception_handler renders any of them into the common
error body.

Exception hierarchy:
    AppException (500)
    ├── AuthenticationError (401)
    │   └── InvalidTokenError
    ├── ForbiddenError (403)
    ├── NotFoundError (404)
    ├── AlreadyExistsError (409)
    │   └── DuplicateError
    ├── ConflictError (409)
    │   └── DependentRecordsError
    └── BadRequestError (400)
        ├── IncorrectPasswordError
        └── InvalidInputError
"""

from typing import Any


class AppException(Exception):
    """
    Base class for errors that map to an HTTP response.

    Attributes:
        status_code: HTTP status code for the error
        error_code: Machine-readable error code
        message: Human-readable error message
        details: Structured context returned to the client
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize application exception.

        Args:
            message: Human-readable message (class default when omitted)
            details: Optional structured context
            status_code: Override the class status code
            error_code: Override the class error code
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class AuthenticationError(AppException):
    status_code = 401
    error_code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"


class InvalidTokenError(AuthenticationError):
    """Bearer token missing, expired, malformed or of the wrong type."""

    error_code = "INVALID_TOKEN"
    default_message = "Invalid or malformed token"


class ForbiddenError(AppException):
    """The policy gate refused the operation. details carries the reason."""

    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "This action is forbidden"


class NotFoundError(AppException):
    """Target absent, or soft-deleted."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", message: str | None = None) -> None:
        super().__init__(message or f"{resource} not found")


class AlreadyExistsError(AppException):
    status_code = 409
    error_code = "ALREADY_EXISTS"

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or f"{resource} already exists", details)


class DuplicateError(AlreadyExistsError):
    """A username or email is already taken, including by a deleted account."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(
            message=f"User with {field} '{value}' already exists",
            details={"field": field},
        )
        self.field = field


class ConflictError(AppException):
    status_code = 409
    error_code = "CONFLICT"
    default_message = "Resource conflict"


class DependentRecordsError(ConflictError):
    """Hard delete refused while other rows still reference the user."""

    error_code = "HAS_DEPENDENT_RECORDS"
    default_message = "User has dependent records and cannot be permanently deleted"

    def __init__(self, message_count: int | None = None) -> None:
        details = {} if message_count is None else {"message_count": message_count}
        super().__init__(details=details)


class BadRequestError(AppException):
    status_code = 400
    error_code = "BAD_REQUEST"
    default_message = "Bad request"


class IncorrectPasswordError(BadRequestError):
    error_code = "INCORRECT_PASSWORD"
    default_message = "Current password is incorrect"


class InvalidInputError(BadRequestError):
    """Input passed schema validation but was rejected by a business rule."""

    error_code = "INVALID_INPUT"

    def __init__(self, field: str | None = None, message: str | None = None) -> None:
        if message is None:
            message = f"Invalid input for field: {field}" if field else "Invalid input"
        super().__init__(message, {"field": field} if field else None)
