"""Google Sign-In flow that yields an ID token for Firebase."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from fitsoul.errors import AuthError, ErrorKind, FederatedSignInError

logger = logging.getLogger(__name__)

SIGN_IN_CANCELLED = "Google Sign-In cancelled"
MISSING_ID_TOKEN = "Failed to get ID token"
SIGN_IN_FAILED_PREFIX = "Google Sign-In failed: "


@dataclass(frozen=True)
class GoogleSignInOptions:
    """What to request from Google: an ID token for our web client, plus email."""
    web_client_id: str
    request_email: bool = True

    @property
    def scopes(self) -> tuple[str, ...]:
        return ("openid", "email") if self.request_email else ("openid",)


@dataclass(frozen=True)
class GoogleAccount:
    """Account returned by the consent screen."""
    email: str | None = None
    display_name: str | None = None
    id_token: str | None = None


class ConsentStatus(str, Enum):
    OK = "ok"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ConsentResult:
    """Result delivered by the host once the account picker closes."""
    status: ConsentStatus
    account: GoogleAccount | None = None

    @classmethod
    def ok(cls, account: GoogleAccount) -> "ConsentResult":
        return cls(status=ConsentStatus.OK, account=account)

    @classmethod
    def cancelled(cls) -> "ConsentResult":
        return cls(status=ConsentStatus.CANCELLED)


class ConsentHost(Protocol):
    """Shell that can show Google's account picker.

    ``launch_consent`` raises FederatedSignInError when Google reports an error.
    """

    async def launch_consent(self, options: GoogleSignInOptions) -> ConsentResult: ...

    def sign_out(self) -> None: ...


class SignInListener(Protocol):
    def on_success(self, id_token: str) -> None: ...

    def on_failure(self, error: str) -> None: ...


class GoogleSignInHelper:
    """Runs the interactive Google flow and reports exactly one outcome per sign-in."""

    def __init__(self):
        self._host: ConsentHost | None = None
        self._options: GoogleSignInOptions | None = None

    @property
    def is_initialized(self) -> bool:
        return self._host is not None

    def initialize(self, host: ConsentHost, web_client_id: str) -> None:
        if not web_client_id:
            raise ValueError("Google web client ID is not configured")
        self._host = host
        self._options = GoogleSignInOptions(web_client_id=web_client_id)
        logger.info("Google Sign-In initialized")

    def sign_in(self, listener: SignInListener) -> asyncio.Task:
        """Launch the consent flow; ``listener`` receives the outcome."""
        if self._host is None or self._options is None:
            raise RuntimeError("Google Sign-In not initialized. Call initialize() first.")
        return asyncio.get_running_loop().create_task(self._sign_in(listener))

    async def request_id_token(self) -> str:
        """Run the consent flow and return the ID token.

        Raises AuthError with one of the federated error kinds.
        """
        if self._host is None or self._options is None:
            raise RuntimeError("Google Sign-In not initialized. Call initialize() first.")

        try:
            result = await self._host.launch_consent(self._options)
        except FederatedSignInError as e:
            raise AuthError(ErrorKind.FEDERATED_ERROR, f"{SIGN_IN_FAILED_PREFIX}{e}") from e

        if result.status == ConsentStatus.CANCELLED:
            raise AuthError(ErrorKind.FEDERATED_CANCELLED, SIGN_IN_CANCELLED)
        if result.account is None or not result.account.id_token:
            raise AuthError(ErrorKind.FEDERATED_TOKEN_MISSING, MISSING_ID_TOKEN)
        return result.account.id_token

    def sign_out(self) -> None:
        if self._host is not None:
            self._host.sign_out()

    async def _sign_in(self, listener: SignInListener) -> None:
        try:
            id_token = await self.request_id_token()
        except AuthError as e:
            logger.info(f"Google Sign-In did not complete: {e.message}")
            listener.on_failure(e.message)
            return
        listener.on_success(id_token)
