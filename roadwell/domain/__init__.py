"""Domain layer: enums and exceptions.

No dependencies on infrastructure. Used by application and infrastructure layers.
"""

from roadwell.domain.enums import (
    AdvocacyStatus,
    AdvocacyTag,
    AuthBackendKind,
    AuthErrorCode,
    AuthModalMode,
    FatigueLevel,
    LikePhase,
)
from roadwell.domain.exceptions import (
    AuthException,
    PreconditionFailedException,
    QueryIndexMissingException,
    RemoteApiException,
    RemoteUnavailableException,
    ResourceNotFoundException,
    RoadwellException,
    UnconfiguredException,
    UnknownException,
    ValidationException,
)

__all__ = [
    "AdvocacyStatus",
    "AdvocacyTag",
    "AuthBackendKind",
    "AuthErrorCode",
    "AuthException",
    "AuthModalMode",
    "FatigueLevel",
    "LikePhase",
    "PreconditionFailedException",
    "QueryIndexMissingException",
    "RemoteApiException",
    "RemoteUnavailableException",
    "ResourceNotFoundException",
    "RoadwellException",
    "UnconfiguredException",
    "UnknownException",
    "ValidationException",
]
