"""Domain exceptions for the Roadwell client data layer.

Gateways raise these instead of transport-level errors (httpx, SQLAlchemy),
and services convert them into structured results for the UI layer.
"""

from typing import Any

from roadwell.domain.enums import AuthErrorCode


class RoadwellException(Exception):
    """Base exception for all Roadwell errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(RoadwellException):
    """Raised when input validation fails before any network call."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthException(RoadwellException):
    """Raised when an identity backend rejects a sign-in or sign-up."""

    def __init__(self, code: AuthErrorCode, message: str | None = None) -> None:
        """Initialize with the stable auth error code.

        Args:
            code: Caller-facing auth error code.
            message: Optional override; defaults to the code's user message.
        """
        self.code = code
        super().__init__(message or code.user_message, "AUTH_ERROR", {"code": code.value})


class ResourceNotFoundException(RoadwellException):
    """Raised when a requested document or profile is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'posts', 'profile').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class RemoteUnavailableException(RoadwellException):
    """Raised on network or connection failure talking to a remote service."""

    def __init__(self, service: str, message: str | None = None) -> None:
        super().__init__(
            message or f"{service} is unreachable. Please check your connection.",
            "REMOTE_UNAVAILABLE",
            {"service": service},
        )


class UnconfiguredException(RoadwellException):
    """Raised when an API key, connection string or project setting is missing."""

    def __init__(self, what: str) -> None:
        super().__init__(f"{what} is not configured", "UNCONFIGURED", {"missing": what})


class RemoteApiException(RoadwellException):
    """Raised when a remote HTTP API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str, endpoint: str | None = None) -> None:
        details: dict[str, Any] = {"status_code": status_code}
        if endpoint:
            details["endpoint"] = endpoint
        self.status_code = status_code
        super().__init__(message, "REMOTE_API_ERROR", details)


class QueryIndexMissingException(RoadwellException):
    """Raised when the document store needs a composite index for a query.

    This is a deployment/configuration error, not a data error.
    """

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(message, "QUERY_INDEX_MISSING", {"collection": collection})


class PreconditionFailedException(RoadwellException):
    """Raised when a write's document-existence precondition does not hold."""

    def __init__(self, message: str = "Document precondition failed") -> None:
        super().__init__(message, "PRECONDITION_FAILED")


class UnknownException(RoadwellException):
    """Raised for errors that fit no other category (logged at the boundary)."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message, "UNKNOWN")
