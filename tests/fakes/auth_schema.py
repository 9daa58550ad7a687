"""Hand-written DDL for the hosted direct-auth tables.

The backend never creates these tables; tests build them the way the hosted
database defines them so the ORM mapping is checked against real columns.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

SQLITE_AUTH_SCHEMA = (
    """
    CREATE TABLE auth_users (
        id TEXT PRIMARY KEY DEFAULT (lower(hex(randomblob(12)))),
        name TEXT,
        email TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE auth_accounts (
        "userId" TEXT NOT NULL REFERENCES auth_users(id) ON DELETE CASCADE,
        provider TEXT NOT NULL,
        type TEXT NOT NULL,
        "providerAccountId" TEXT NOT NULL,
        password TEXT,
        UNIQUE ("userId", provider)
    )
    """,
    """
    CREATE TABLE user_profiles (
        user_id TEXT NOT NULL UNIQUE REFERENCES auth_users(id) ON DELETE CASCADE,
        name TEXT,
        quick_dial_number TEXT,
        preferences TEXT,
        streak_count INTEGER NOT NULL DEFAULT 0,
        total_points INTEGER NOT NULL DEFAULT 0
    )
    """,
)

POSTGRES_AUTH_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS auth_users (
        id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
        name TEXT,
        email TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_accounts (
        "userId" TEXT NOT NULL REFERENCES auth_users(id) ON DELETE CASCADE,
        provider TEXT NOT NULL,
        type TEXT NOT NULL,
        "providerAccountId" TEXT NOT NULL,
        password TEXT,
        UNIQUE ("userId", provider)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        user_id TEXT NOT NULL UNIQUE REFERENCES auth_users(id) ON DELETE CASCADE,
        name TEXT,
        quick_dial_number TEXT,
        preferences JSONB,
        streak_count INTEGER NOT NULL DEFAULT 0,
        total_points INTEGER NOT NULL DEFAULT 0
    )
    """,
)


async def create_auth_schema(engine: AsyncEngine) -> None:
    """Create auth_users, auth_accounts and user_profiles from raw DDL."""
    statements = (
        POSTGRES_AUTH_SCHEMA if engine.dialect.name == "postgresql" else SQLITE_AUTH_SCHEMA
    )
    async with engine.begin() as conn:
        for statement in statements:
            await conn.execute(text(statement))
