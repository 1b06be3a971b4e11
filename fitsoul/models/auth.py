"""Authentication state and request models."""

from enum import Enum
from pydantic import BaseModel, ConfigDict, model_validator

from fitsoul.models.user import User


class AuthUiState(BaseModel):
    """Loading flag plus at most one of an error or a success message."""
    is_loading: bool = False
    error_message: str | None = None
    success_message: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _single_message(self) -> "AuthUiState":
        if self.error_message is not None and self.success_message is not None:
            raise ValueError("error_message and success_message are mutually exclusive")
        return self

    def with_loading(self, loading: bool) -> "AuthUiState":
        return self.model_copy(update={"is_loading": loading})

    def with_error(self, error: str | None) -> "AuthUiState":
        return AuthUiState(is_loading=self.is_loading, error_message=error)

    def with_success_message(self, message: str | None) -> "AuthUiState":
        return AuthUiState(is_loading=self.is_loading, success_message=message)


class AuthStatus(str, Enum):
    """Which authentication variant is current."""
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AuthState(BaseModel):
    """Session state; ``user`` is set exactly when authenticated."""
    status: AuthStatus
    user: User | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _user_matches_status(self) -> "AuthState":
        if self.status == AuthStatus.AUTHENTICATED:
            if self.user is None or not self.user.uid:
                raise ValueError("Authenticated state requires a user with a uid")
        elif self.user is not None:
            raise ValueError(f"{self.status.value} state cannot carry a user")
        return self

    @classmethod
    def loading(cls) -> "AuthState":
        return cls(status=AuthStatus.LOADING)

    @classmethod
    def authenticated(cls, user: User) -> "AuthState":
        return cls(status=AuthStatus.AUTHENTICATED, user=user)

    @classmethod
    def unauthenticated(cls) -> "AuthState":
        return cls(status=AuthStatus.UNAUTHENTICATED)

    @property
    def is_loading(self) -> bool:
        return self.status == AuthStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    @property
    def is_unauthenticated(self) -> bool:
        return self.status == AuthStatus.UNAUTHENTICATED


class EmailPasswordRequest(BaseModel):
    """Request payload for email sign-in and sign-up."""
    email: str = ""
    password: str = ""


class PasswordResetRequest(BaseModel):
    """Request payload for a password reset email."""
    email: str = ""


class GoogleAuthRequest(BaseModel):
    """Request payload carrying a Google ID token."""
    id_token: str = ""


class SessionSnapshot(BaseModel):
    """Current values of the coordinator's observables."""
    ui_state: AuthUiState
    auth_state: AuthState
    validation_errors: dict[str, str]


class EmailVerifiedResponse(BaseModel):
    """Whether the signed-in user's email is verified."""
    email_verified: bool


class AuthConfigResponse(BaseModel):
    """Client-side auth configuration."""
    google_web_client_id: str | None = None
