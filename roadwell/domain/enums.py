"""Domain enumerations (auth, advocacy, wellness)."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class AuthBackendKind(_ValuesMixin, str, Enum):
    """Which auth backend produced a session. Used only for sign-out routing."""

    FIREBASE = "firebase"
    DIRECT = "direct"


class AuthModalMode(_ValuesMixin, str, Enum):
    """Auth modal presentation mode."""

    SIGN_IN = "signin"
    SIGN_UP = "signup"


_AUTH_MESSAGES = {
    "email_in_use": "This email is already registered",
    "invalid_email": "Invalid email address",
    "weak_password": "Password should be at least 6 characters",
    "user_disabled": "This account has been disabled",
    "user_not_found": "No account found with this email",
    "wrong_password": "Incorrect password",
    "invalid_credential": "Invalid email or password",
    "rate_limited": "Too many failed attempts. Please try again later",
    "network_error": "Network error. Please check your connection",
    "operation_not_allowed": "Email/password accounts are not enabled",
    "unconfigured": "Authentication is not configured",
    "unknown": "Authentication failed. Please try again",
}


class AuthErrorCode(_ValuesMixin, str, Enum):
    """Stable, caller-facing auth error codes."""

    EMAIL_IN_USE = "email_in_use"
    INVALID_EMAIL = "invalid_email"
    WEAK_PASSWORD = "weak_password"
    USER_DISABLED = "user_disabled"
    USER_NOT_FOUND = "user_not_found"
    WRONG_PASSWORD = "wrong_password"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    OPERATION_NOT_ALLOWED = "operation_not_allowed"
    UNCONFIGURED = "unconfigured"
    UNKNOWN = "unknown"

    @property
    def user_message(self) -> str:
        """Message shown to the user for this code."""
        return _AUTH_MESSAGES[self.value]


class AdvocacyStatus(_ValuesMixin, str, Enum):
    """Advocacy message review status (transitions are admin-driven)."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"


class AdvocacyTag(_ValuesMixin, str, Enum):
    """Tags a driver can attach to an advocacy message."""

    WELLNESS = "wellness"
    SAFETY = "safety"
    EMPLOYER = "employer"
    ROADSIDE = "roadside"
    PARKING = "parking"
    REGULATION = "regulation"
    SUGGESTION = "suggestion"
    EMERGENCY = "emergency"


class FatigueLevel(_ValuesMixin, str, Enum):
    """Result of a fatigue self-assessment."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LikePhase(_ValuesMixin, str, Enum):
    """Phase of a single like toggle."""

    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
