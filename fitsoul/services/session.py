"""Session coordinator bridging the auth gateway to UI observables."""

import asyncio
import logging
import threading
from typing import Awaitable, Callable

from fitsoul.models.auth import AuthState, AuthUiState, SessionSnapshot
from fitsoul.models.result import Result
from fitsoul.services.auth import AuthService
from fitsoul.services.firebase_auth import FirebaseAuthClient, FirebaseUser
from fitsoul.services.google_sign_in import SIGN_IN_FAILED_PREFIX, GoogleSignInHelper
from fitsoul.utils.observable import Observable
from fitsoul.utils.validation import EMAIL_PATTERN

logger = logging.getLogger(__name__)

ACCOUNT_CREATED = "Account created successfully!"
PASSWORD_RESET_SENT = "Password reset email sent"
INVALID_GOOGLE_TOKEN = "Google Sign-In failed: Invalid token"


class _GoogleSignInListener:
    """Forwards Google Sign-In outcomes back onto the coordinator's loop."""

    def __init__(self, coordinator: "SessionCoordinator"):
        self.coordinator = coordinator

    def on_success(self, id_token: str) -> None:
        self.coordinator._post(self.coordinator.sign_in_with_google, id_token)

    def on_failure(self, error: str) -> None:
        self.coordinator._post(self.coordinator._publish_error, error)


class SessionCoordinator:
    """UI-facing authentication state machine.

    Owns three observables (``ui_state``, ``auth_state``,
    ``validation_errors``) that are only mutated on the owning event loop.
    The Firebase session listener is the sole source of
    ``AuthState.authenticated``; operation completions only update
    ``ui_state``.

    Each UI operation takes a new epoch and its completion is dropped if a
    later operation (or sign-out) started in the meantime. Session refreshes
    are versioned the same way so a slow user fetch cannot overwrite a newer
    session change.
    """

    def __init__(
        self,
        auth_service: AuthService,
        firebase_auth: FirebaseAuthClient,
        google_sign_in: GoogleSignInHelper | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.auth_service = auth_service
        self.firebase_auth = firebase_auth
        self.google_sign_in = google_sign_in
        self._loop = loop or asyncio.get_running_loop()

        self.ui_state: Observable[AuthUiState] = Observable(AuthUiState())
        self.auth_state: Observable[AuthState] = Observable(AuthState.loading())
        self.validation_errors: Observable[dict[str, str]] = Observable({})

        self._tasks: set[asyncio.Task] = set()
        self._posted = 0
        self._posted_lock = threading.Lock()
        self._operation_epoch = 0
        self._session_epoch = 0
        self._disposed = False

        self._session_listener = self._on_auth_state_changed
        self.firebase_auth.add_auth_state_listener(self._session_listener)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            ui_state=self.ui_state.value,
            auth_state=self.auth_state.value,
            validation_errors=dict(self.validation_errors.value),
        )

    # UI operations

    def sign_in_with_email(self, email: str, password: str) -> asyncio.Task | None:
        if self._disposed or not self._validate_email_password(email, password):
            return None

        self._clear_validation_errors()
        return self._launch(
            lambda: self.auth_service.sign_in_with_email(email.strip(), password),
            default_error="Sign in failed",
        )

    def sign_up_with_email(self, email: str, password: str) -> asyncio.Task | None:
        if self._disposed or not self._validate_email_password(email, password):
            return None

        self._clear_validation_errors()
        return self._launch(
            lambda: self.auth_service.sign_up_with_email(email.strip(), password),
            default_error="Sign up failed",
            success_message=ACCOUNT_CREATED,
        )

    def send_password_reset_email(self, email: str) -> asyncio.Task | None:
        if self._disposed:
            return None
        if email is None or not email.strip():
            self._update_validation_error("email", "Email is required")
            return None

        return self._launch(
            lambda: self.auth_service.send_password_reset_email(email.strip()),
            default_error="Failed to send password reset email",
            success_message=PASSWORD_RESET_SENT,
        )

    def reset_password(self, email: str) -> asyncio.Task | None:
        return self.send_password_reset_email(email)

    def sign_in_with_google(self, id_token: str) -> asyncio.Task | None:
        if self._disposed:
            return None
        if id_token is None or not id_token.strip():
            self.ui_state.set(self.ui_state.value.with_error(INVALID_GOOGLE_TOKEN))
            return None

        return self._launch(
            lambda: self.auth_service.sign_in_with_google(id_token),
            default_error="Google sign in failed",
        )

    def start_google_sign_in(self) -> asyncio.Task | None:
        """Run the Google account picker and sign in with the resulting token."""
        if self._disposed:
            return None
        if self.google_sign_in is None or not self.google_sign_in.is_initialized:
            self._publish_error(f"{SIGN_IN_FAILED_PREFIX}not initialized")
            return None

        task = self.google_sign_in.sign_in(_GoogleSignInListener(self))
        self._track(task)
        return task

    def sign_out(self) -> None:
        if self._disposed:
            return

        # Anything still in flight belongs to the old session.
        self._operation_epoch += 1
        self._session_epoch += 1

        self.auth_service.sign_out()
        if self.google_sign_in is not None:
            self.google_sign_in.sign_out()

        self.auth_state.set(AuthState.unauthenticated())
        self._clear_validation_errors()
        self.ui_state.set(AuthUiState())
        logger.info("Signed out")

    def clear_errors(self) -> None:
        self.ui_state.set(self.ui_state.value.with_error(None))
        self._clear_validation_errors()

    # Lifecycle

    def dispose(self) -> None:
        """Detach from Firebase and ignore every pending continuation."""
        if self._disposed:
            return
        self._disposed = True
        self.firebase_auth.remove_auth_state_listener(self._session_listener)
        logger.info("Session coordinator disposed")

    async def wait_until_idle(self) -> None:
        """Wait until no operation, session refresh or posted callback is in flight."""
        while True:
            await asyncio.sleep(0)
            pending = [task for task in self._tasks if not task.done()]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            elif self._posted == 0:
                return

    # Session listener

    def _on_auth_state_changed(self, user: FirebaseUser | None) -> None:
        # May be called from any thread.
        if self._disposed:
            return
        self._post(self._handle_session_change, user is not None)

    def _handle_session_change(self, has_session: bool) -> None:
        if self._disposed:
            return

        self._session_epoch += 1
        if has_session:
            self._track(self._loop.create_task(self._refresh_user(self._session_epoch)))
        else:
            self.auth_state.set(AuthState.unauthenticated())
            self._clear_validation_errors()

    async def _refresh_user(self, epoch: int) -> None:
        result = await self.auth_service.get_current_user()
        if self._disposed or epoch != self._session_epoch:
            logger.debug("Discarding stale session refresh")
            return

        user = result.value_or_none()
        if result.is_success and user is not None and user.uid:
            self.auth_state.set(AuthState.authenticated(user))
            logger.info(f"Session established for user '{user.uid}'")
            return

        self.auth_state.set(AuthState.unauthenticated())
        if result.is_failure:
            self.ui_state.set(
                self.ui_state.value.with_error(result.error_message or "Failed to load user profile")
            )

    # Helpers

    def _launch(
        self,
        call: Callable[[], Awaitable[Result]],
        default_error: str,
        success_message: str | None = None,
    ) -> asyncio.Task:
        self._operation_epoch += 1
        epoch = self._operation_epoch
        self.ui_state.set(self.ui_state.value.with_loading(True).with_error(None))

        task = self._loop.create_task(self._complete(epoch, call, default_error, success_message))
        self._track(task)
        return task

    async def _complete(
        self,
        epoch: int,
        call: Callable[[], Awaitable[Result]],
        default_error: str,
        success_message: str | None,
    ) -> None:
        try:
            result = await call()
        except Exception:
            logger.exception("Auth operation raised unexpectedly")
            result = None

        if self._disposed or epoch != self._operation_epoch:
            logger.debug("Discarding superseded operation result")
            return

        state = self.ui_state.value.with_loading(False)
        if result is not None and result.is_success:
            if success_message:
                state = state.with_success_message(success_message)
            else:
                state = state.with_error(None)
        else:
            message = result.error_message if result is not None else None
            logger.warning(f"Auth operation failed: {message or default_error}")
            state = state.with_error(message or default_error)
        self.ui_state.set(state)

    def _validate_email_password(self, email: str | None, password: str | None) -> bool:
        errors: dict[str, str] = {}

        if email is None or not email.strip():
            errors["email"] = "Email is required"
        elif not EMAIL_PATTERN.match(email.strip()):
            errors["email"] = "Please enter a valid email address"

        if password is None or not password.strip():
            errors["password"] = "Password is required"
        elif len(password) < 6:
            errors["password"] = "Password must be at least 6 characters"

        self.validation_errors.set(errors)
        return not errors

    def _update_validation_error(self, field: str, error: str) -> None:
        errors = dict(self.validation_errors.value)
        errors[field] = error
        self.validation_errors.set(errors)

    def _clear_validation_errors(self) -> None:
        self.validation_errors.set({})

    def _publish_error(self, message: str) -> None:
        if self._disposed:
            return
        self.ui_state.set(self.ui_state.value.with_error(message))

    def _post(self, callback: Callable[..., object], *args) -> None:
        """Run ``callback`` on the coordinator's loop."""
        with self._posted_lock:
            self._posted += 1
        self._loop.call_soon_threadsafe(self._run_posted, callback, args)

    def _run_posted(self, callback: Callable[..., object], args: tuple) -> None:
        with self._posted_lock:
            self._posted -= 1
        callback(*args)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
