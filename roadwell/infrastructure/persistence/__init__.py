"""SQL persistence for the direct-credential auth backend."""

from roadwell.infrastructure.persistence.database import (
    Base,
    DirectDatabase,
    create_engine_for_url,
    normalize_database_url,
)

__all__ = ["Base", "DirectDatabase", "create_engine_for_url", "normalize_database_url"]
