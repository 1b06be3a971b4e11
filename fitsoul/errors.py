"""Error types shared by the authentication layers."""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of an authentication failure."""
    VALIDATION = "validation"
    NO_SESSION = "no_session"
    PROVIDER = "provider"
    NULL_RESULT = "null_result"
    MIRROR_FAILURE = "mirror_failure"
    FEDERATED_CANCELLED = "federated_cancelled"
    FEDERATED_TOKEN_MISSING = "federated_token_missing"
    FEDERATED_ERROR = "federated_error"


class AuthError(Exception):
    """Failure cause carried by a failed Result."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"AuthError({self.kind.value!r}, {self.message!r})"


class IdentityProviderError(Exception):
    """Raised by the identity provider client when Firebase rejects a call."""

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code
        self.message = message or ""


class FederatedSignInError(Exception):
    """Raised by a consent host when the Google account picker fails."""
