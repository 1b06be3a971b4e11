"""Pydantic models for Fitsoul."""

from fitsoul.models.user import (
    User,
    UserBuilder,
    UserProfile,
)
from fitsoul.models.result import Result
from fitsoul.models.auth import (
    AuthUiState,
    AuthState,
    AuthStatus,
    EmailPasswordRequest,
    PasswordResetRequest,
    GoogleAuthRequest,
    SessionSnapshot,
    EmailVerifiedResponse,
    AuthConfigResponse,
)

__all__ = [
    # User models
    "User",
    "UserBuilder",
    "UserProfile",
    # Result carrier
    "Result",
    # Auth models
    "AuthUiState",
    "AuthState",
    "AuthStatus",
    "EmailPasswordRequest",
    "PasswordResetRequest",
    "GoogleAuthRequest",
    "SessionSnapshot",
    "EmailVerifiedResponse",
    "AuthConfigResponse",
]
