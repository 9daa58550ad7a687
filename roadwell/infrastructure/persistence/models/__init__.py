"""Persistence models: ORM entities mirroring the hosted auth schema."""

from roadwell.infrastructure.persistence.models.auth import (
    CREDENTIALS_PROVIDER,
    AuthAccount,
    AuthUser,
)
from roadwell.infrastructure.persistence.models.profile import UserProfileRecord

__all__ = [
    "CREDENTIALS_PROVIDER",
    "AuthAccount",
    "AuthUser",
    "UserProfileRecord",
]
