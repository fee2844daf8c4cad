"""
Error taxonomy for report operations.

Every business-rule failure is raised as one of the ReportServiceError
subclasses below. Each carries the HTTP status, a machine-checkable status
code and an optional data payload so API clients can react programmatically.
The FastAPI exception handlers in app.main turn them into the error envelope:

    {"data": ..., "message": ..., "status": ..., "options": None}
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure kinds surfaced by the report services."""
    NOT_FOUND = "NotFound"
    VALIDATION_FAILED = "ValidationFailed"
    FORBIDDEN = "Forbidden"
    UNEXPECTED = "Unexpected"


class ResponseStatus(str, Enum):
    """Machine-checkable status codes used in response envelopes."""
    SUCCESS = "SUCCESS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    ACCESS_DENIED = "ACCESS_DENIED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ReportServiceError(Exception):
    """Base class for structured report service errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED
    http_status: int = 500
    status_code: ResponseStatus = ResponseStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "message": self.message,
            "status": self.status_code.value,
            "options": None,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, data={self.data!r})"


class NotFoundError(ReportServiceError):
    """Entity absent, or outside the caller's scope."""
    kind = ErrorKind.NOT_FOUND
    http_status = 404
    status_code = ResponseStatus.NOT_FOUND


class ValidationFailedError(ReportServiceError):
    """A business rule was violated."""
    kind = ErrorKind.VALIDATION_FAILED
    http_status = 400
    status_code = ResponseStatus.VALIDATION_FAILED


class ForbiddenError(ReportServiceError):
    """Cross-municipality access, or a role lacking the capability."""
    kind = ErrorKind.FORBIDDEN
    http_status = 403
    status_code = ResponseStatus.ACCESS_DENIED


class UnauthenticatedError(ForbiddenError):
    """No acting user could be resolved for the request."""
    http_status = 401
    status_code = ResponseStatus.UNAUTHENTICATED


class UnexpectedError(ReportServiceError):
    """Persistence or upload failure."""
    kind = ErrorKind.UNEXPECTED
    http_status = 500
    status_code = ResponseStatus.INTERNAL_SERVER_ERROR
