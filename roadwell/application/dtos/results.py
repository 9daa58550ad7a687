"""Structured results returned to UI callers instead of raised exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from roadwell.application.dtos.session import Session
from roadwell.domain.exceptions import RoadwellException

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success value or a structured failure ({success: False, error})."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> OperationResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_code: str | None = None) -> OperationResult[T]:
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: RoadwellException) -> OperationResult[T]:
        return cls(success=False, error=exc.message, error_code=exc.error_code)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of sign-up / sign-in / sign-out."""

    success: bool
    session: Session | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, session: Session | None = None) -> AuthResult:
        return cls(success=True, session=session)

    @classmethod
    def fail(cls, error: str, error_code: str | None = None) -> AuthResult:
        return cls(success=False, error=error, error_code=error_code)


@dataclass(frozen=True)
class LikeToggleResult:
    """Outcome of one optimistic like toggle. liked is the settled local value."""

    post_id: str
    liked: bool
    success: bool
    error: str | None = None
