"""Firebase Authentication client over the Identity Toolkit REST API."""

from dataclasses import dataclass, field
from typing import Any, Callable
import httpx
import logging

from fitsoul.config import get_settings
from fitsoul.errors import IdentityProviderError

logger = logging.getLogger(__name__)

# Human-readable messages matching what the Firebase SDKs report.
ERROR_MESSAGES: dict[str, str] = {
    "EMAIL_EXISTS": "The email address is already in use by another account.",
    "EMAIL_NOT_FOUND": (
        "There is no user record corresponding to this identifier. "
        "The user may have been deleted."
    ),
    "INVALID_PASSWORD": "The password is invalid or the user does not have a password.",
    "INVALID_LOGIN_CREDENTIALS": "The supplied auth credential is incorrect, malformed or has expired.",
    "INVALID_EMAIL": "The email address is badly formatted.",
    "INVALID_IDP_RESPONSE": "The supplied auth credential is malformed or has expired.",
    "INVALID_ID_TOKEN": "The user's credential is no longer valid. The user must sign in again.",
    "USER_DISABLED": "The user account has been disabled by an administrator.",
    "USER_NOT_FOUND": (
        "There is no user record corresponding to this identifier. "
        "The user may have been deleted."
    ),
    "OPERATION_NOT_ALLOWED": "The given sign-in provider is disabled for this Firebase project.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": (
        "We have blocked all requests from this device due to unusual activity. "
        "Try again later."
    ),
    "WEAK_PASSWORD": "The given password is invalid. [ Password should be at least 6 characters ]",
    "NETWORK_ERROR": (
        "A network error (such as timeout, interrupted connection or unreachable host) "
        "has occurred."
    ),
    "INVALID_RESPONSE": "An internal error has occurred. [ Unexpected response from the server ]",
}


@dataclass
class FirebaseUser:
    """Signed-in Firebase account as cached by the client."""
    uid: str
    email: str | None
    display_name: str | None
    email_verified: bool
    id_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)


@dataclass
class AuthResult:
    """Outcome of a sign-in call; ``user`` is None when Firebase sent no account."""
    user: FirebaseUser | None
    is_new_user: bool = False


@dataclass(frozen=True)
class GoogleAuthCredential:
    """Google ID token to exchange for a Firebase session."""
    id_token: str
    provider_id: str = "google.com"


AuthStateListener = Callable[[FirebaseUser | None], None]


class FirebaseAuthClient:
    """Client for Firebase Authentication.

    Keeps the current session in memory and notifies registered listeners
    whenever it changes. Listeners are called on whatever thread resolved the
    request, so they must hand off to their own loop.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.firebase_api_key
        self.base_url = base_url or settings.identity_toolkit_url
        self.timeout = timeout or settings.identity_timeout_seconds
        self._client: httpx.AsyncClient | None = None
        self._current_user: FirebaseUser | None = None
        self._listeners: list[AuthStateListener] = []

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                params={"key": self.api_key},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def current_user(self) -> FirebaseUser | None:
        return self._current_user

    def add_auth_state_listener(self, listener: AuthStateListener) -> None:
        """Register a listener; it is called right away with the current user."""
        self._listeners.append(listener)
        listener(self._current_user)

    def remove_auth_state_listener(self, listener: AuthStateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def sign_in_with_email_and_password(self, email: str, password: str) -> AuthResult:
        payload = await self._post(
            "/accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._establish_session(payload)

    async def create_user_with_email_and_password(self, email: str, password: str) -> AuthResult:
        payload = await self._post(
            "/accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return await self._establish_session(payload, is_new_user=True)

    async def sign_in_with_credential(self, credential: GoogleAuthCredential) -> AuthResult:
        payload = await self._post(
            "/accounts:signInWithIdp",
            {
                "postBody": f"id_token={credential.id_token}&providerId={credential.provider_id}",
                "requestUri": "http://localhost",
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return await self._establish_session(payload, is_new_user=bool(payload.get("isNewUser")))

    async def send_password_reset_email(self, email: str) -> None:
        await self._post(
            "/accounts:sendOobCode",
            {"requestType": "PASSWORD_RESET", "email": email},
        )

    async def send_email_verification(self, user: FirebaseUser) -> None:
        await self._post(
            "/accounts:sendOobCode",
            {"requestType": "VERIFY_EMAIL", "idToken": user.id_token},
        )

    def sign_out(self) -> None:
        """Drop the cached session."""
        if self._current_user is None:
            return
        logger.info(f"Signing out Firebase user '{self._current_user.uid}'")
        self._current_user = None
        self._notify_listeners()

    async def _establish_session(self, payload: dict[str, Any], is_new_user: bool = False) -> AuthResult:
        """Turn a sign-in response into the cached current user."""
        uid = payload.get("localId")
        id_token = payload.get("idToken")
        if not uid or not id_token:
            logger.warning("Firebase sign-in response did not include an account")
            return AuthResult(user=None)

        try:
            account = await self._lookup(id_token)
        except IdentityProviderError as e:
            # The account exists at this point; fall back to the sign-in payload.
            logger.warning(f"Account lookup for '{uid}' failed, using sign-in response: {e.code}")
            account = {}
        user = FirebaseUser(
            uid=uid,
            email=account.get("email", payload.get("email")),
            display_name=account.get("displayName", payload.get("displayName")),
            email_verified=bool(account.get("emailVerified", payload.get("emailVerified", False))),
            id_token=id_token,
            refresh_token=payload.get("refreshToken"),
        )
        self._current_user = user
        self._notify_listeners()
        return AuthResult(user=user, is_new_user=is_new_user)

    async def _lookup(self, id_token: str) -> dict[str, Any]:
        """Fetch account details (verification flag, display name) for a token."""
        payload = await self._post("/accounts:lookup", {"idToken": id_token})
        users = payload.get("users") or []
        return users[0] if users else {}

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            client = await self._get_client()
            response = await client.post(path, json=body)
            response.raise_for_status()
            payload = response.json()

        except httpx.HTTPStatusError as e:
            code = _error_code(e.response)
            logger.warning(f"Firebase call {path} rejected: {code}")
            raise IdentityProviderError(code, ERROR_MESSAGES.get(code, code)) from e

        except httpx.HTTPError as e:
            logger.error(f"Firebase call {path} failed: {e}")
            raise IdentityProviderError("NETWORK_ERROR", ERROR_MESSAGES["NETWORK_ERROR"]) from e

        except ValueError as e:
            logger.error(f"Firebase call {path} returned a non-JSON body")
            raise IdentityProviderError("INVALID_RESPONSE", ERROR_MESSAGES["INVALID_RESPONSE"]) from e

        if not isinstance(payload, dict):
            raise IdentityProviderError("INVALID_RESPONSE", ERROR_MESSAGES["INVALID_RESPONSE"])
        return payload

    def _notify_listeners(self) -> None:
        for listener in list(self._listeners):
            listener(self._current_user)


def _error_code(response: httpx.Response) -> str:
    """Extract the Identity Toolkit error code, e.g. ``WEAK_PASSWORD``.

    Messages look like ``"WEAK_PASSWORD : Password should be at least 6 characters"``.
    """
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP_{response.status_code}"
    if not isinstance(message, str) or not message.strip():
        return f"HTTP_{response.status_code}"
    return message.split(" : ", 1)[0].strip()
