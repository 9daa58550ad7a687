"""Auth backend variants: managed identity provider and direct SQL credentials."""

from roadwell.infrastructure.auth.direct_sql_backend import DirectCredentialBackend
from roadwell.infrastructure.auth.firebase_backend import ManagedIdentityBackend

__all__ = ["DirectCredentialBackend", "ManagedIdentityBackend"]
