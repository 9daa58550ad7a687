"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

The direct auth backend resolves its connection string at runtime (secure
store first, then DATABASE_URL), so engines are created per connection
string by DirectDatabase rather than at import time. The schema itself is
owned by the hosted database; these models only mirror it.
"""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from roadwell.core.config import Settings

logger = logging.getLogger(__name__)

# libpq sslmode values that require TLS; asyncpg takes ssl=... instead.
_SSL_REQUIRED_MODES = {"require", "verify-ca", "verify-full"}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def normalize_database_url(url: str) -> tuple[str, dict[str, Any]]:
    """Return (async URL, connect_args) for a hosted Postgres or SQLite URL.

    Plain "postgres://" / "postgresql://" URLs (as copied from a Neon console)
    are switched to the asyncpg driver and their sslmode query option is
    moved into connect_args.
    """
    parsed = make_url(url)
    connect_args: dict[str, Any] = {}
    if parsed.drivername in ("postgres", "postgresql"):
        parsed = parsed.set(drivername="postgresql+asyncpg")
    if parsed.drivername.startswith("postgresql"):
        query = dict(parsed.query)
        sslmode = query.pop("sslmode", None)
        query.pop("channel_binding", None)
        if sslmode in _SSL_REQUIRED_MODES:
            connect_args["ssl"] = True
        parsed = parsed.set(query=query)
    return parsed.render_as_string(hide_password=False), connect_args


def create_engine_for_url(url: str, settings: Settings) -> AsyncEngine:
    """Create an async engine with pool settings for Postgres (defaults for SQLite)."""
    async_url, connect_args = normalize_database_url(url)
    kwargs: dict[str, Any] = {"echo": settings.database_echo}
    if async_url.startswith("postgresql"):
        connect_args["command_timeout"] = (
            settings.db_command_timeout if settings.db_command_timeout is not None else 60
        )
        kwargs.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size if settings.db_pool_size is not None else 5,
            pool_recycle=3600,
        )
    return create_async_engine(async_url, connect_args=connect_args, **kwargs)


class DirectDatabase:
    """Lazily created engine + session factory for one connection string."""

    def __init__(
        self,
        url: str,
        settings: Settings,
        *,
        on_engine_created: Callable[[AsyncEngine], None] | None = None,
    ) -> None:
        self._url = url
        self._settings = settings
        self._on_engine_created = on_engine_created
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return self._url

    def _ensure_engine(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            self._engine = create_engine_for_url(self._url, self._settings)
            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            if self._on_engine_created is not None:
                self._on_engine_created(self._engine)
        return self._sessionmaker

    @property
    def engine(self) -> AsyncEngine:
        self._ensure_engine()
        assert self._engine is not None
        return self._engine

    def session(self) -> AsyncSession:
        """New session; use `async with db.session() as s, s.begin():` for writes."""
        return self._ensure_engine()()

    async def dispose(self) -> None:
        """Close pooled connections. The next use creates a fresh engine."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.debug("Disposed direct database engine")
        self._engine = None
        self._sessionmaker = None
