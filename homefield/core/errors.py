"""
Error Kinds and Portal Exceptions
Shared error vocabulary for the portal, intake and dialer paths
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from fastapi import Request, status
from fastapi.responses import JSONResponse

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Categories of failure a request can run into"""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    DOWNSTREAM_NOTIFICATION_FAILED = "downstream_notification_failed"


class PortalError(Exception):
    """Base class for errors that map onto an HTTP response."""

    kind: ErrorKind = ErrorKind.BACKEND_UNAVAILABLE
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(PortalError):
    kind = ErrorKind.UNAUTHENTICATED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(PortalError):
    kind = ErrorKind.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(PortalError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidInputError(PortalError):
    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class BackendUnavailableError(PortalError):
    kind = ErrorKind.BACKEND_UNAVAILABLE
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Backend unavailable"


class DownstreamNotificationError(PortalError):
    """Raised by outbound clients; always absorbed by callers."""
    kind = ErrorKind.DOWNSTREAM_NOTIFICATION_FAILED
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Downstream notification failed"


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (
        UnauthenticatedError,
        ForbiddenError,
        NotFoundError,
        InvalidInputError,
        BackendUnavailableError,
        DownstreamNotificationError,
    )
}


def error_for(kind: ErrorKind, message: Optional[str] = None) -> PortalError:
    """Build the exception that corresponds to an error kind."""
    return ERRORS_BY_KIND[kind](message)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a single sub-step.

    Orchestrators inspect ``ok`` and decide per step whether a failure is
    surfaced or absorbed.
    """
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(error=kind, message=message)


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """Render a PortalError the same way FastAPI renders HTTPException."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
