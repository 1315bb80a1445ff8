"""Custom exception classes and error handling."""

from http import HTTPStatus
from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Error payload in the standard response shape."""
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }


class ValidationError(AppException, ValueError):
    """Data validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        details: dict[str, Any] | None = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            code=code,
            message=message,
            details=details,
        )


class InvalidPeriodError(ValidationError):
    """Period selector or date range is malformed."""

    def __init__(
        self,
        message: str = "Invalid reporting period",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, details=details, code="INVALID_PERIOD")


class CalendarConfigError(ValidationError):
    """Academic calendar configuration could not be loaded."""

    def __init__(
        self,
        message: str = "Invalid calendar configuration",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, details=details, code="INVALID_CALENDAR")


class InternalError(AppException):
    """Internal error."""

    def __init__(
        self,
        message: str = "Internal error",
        details: dict[str, Any] | None = None,
        code: str = "INTERNAL_ERROR",
    ):
        super().__init__(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            code=code,
            message=message,
            details=details,
        )


class GridInvariantError(InternalError):
    """Report grid failed a structural check (merge outside its block, overlap, ragged header)."""

    def __init__(
        self,
        message: str = "Report grid is malformed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, details=details, code="GRID_INVARIANT_VIOLATION")
