"""ORM models for the direct-credential auth schema (auth_users, auth_accounts).

Only the columns the backend reads or writes are mapped. auth_users.id is
generated by the database and read back with RETURNING.
"""

from sqlalchemy import FetchedValue, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roadwell.infrastructure.persistence.database import Base

CREDENTIALS_PROVIDER = "credentials"


class AuthUser(Base):
    """Identity row. Table: auth_users. Email is unique."""

    __tablename__ = "auth_users"

    id: Mapped[str] = mapped_column(String, primary_key=True, server_default=FetchedValue())
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)


class AuthAccount(Base):
    """Credential account linked to an auth_users row, one per (userId, provider).

    Column names are camelCase in the hosted schema ("userId", "providerAccountId").
    password holds a bcrypt hash; legacy rows may hold plaintext.
    """

    __tablename__ = "auth_accounts"

    user_id: Mapped[str] = mapped_column(
        "userId",
        String,
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    provider: Mapped[str] = mapped_column(String, primary_key=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    provider_account_id: Mapped[str] = mapped_column(
        "providerAccountId", String, nullable=False
    )
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
