"""Tests for the session coordinator state machine."""

import asyncio
from pymongo.errors import PyMongoError

from fitsoul.errors import ErrorKind, IdentityProviderError
from fitsoul.models.auth import AuthState, AuthUiState
from fitsoul.models.result import Result
from fitsoul.services.auth import AuthService
from fitsoul.services.google_sign_in import ConsentResult, GoogleAccount, GoogleSignInHelper
from fitsoul.services.session import SessionCoordinator
from tests.fakes import FakeConsentHost, FakeFirebaseAuth


async def wait_for_held(firebase_auth: FakeFirebaseAuth, count: int) -> None:
    while len(firebase_auth.held) < count:
        await asyncio.sleep(0)


class TestSessionListener:
    """Tests for session-driven auth state."""

    async def test_initial_values(self, auth_service: AuthService, firebase_auth: FakeFirebaseAuth):
        session = SessionCoordinator(auth_service, firebase_auth)
        try:
            assert session.auth_state.value == AuthState.loading()
            assert session.ui_state.value == AuthUiState()
            assert session.validation_errors.value == {}

            await session.wait_until_idle()

            assert session.auth_state.value.is_unauthenticated
        finally:
            session.dispose()

    async def test_restored_session_is_authenticated(self, auth_service, firebase_auth):
        firebase_auth.sign_in_as("uid-restored", email="back@example.com", display_name="Back")

        session = SessionCoordinator(auth_service, firebase_auth)
        await session.wait_until_idle()

        state = session.auth_state.value
        assert state.is_authenticated
        assert state.user.uid == "uid-restored"
        assert state.user.display_name == "Back"
        session.dispose()

    async def test_failed_user_fetch(self, coordinator, auth_service, firebase_auth, monkeypatch):
        async def failing_fetch():
            return Result.fail(ErrorKind.NO_SESSION, "No authenticated user")

        monkeypatch.setattr(auth_service, "get_current_user", failing_fetch)

        firebase_auth.sign_in_as("uid-1")
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.is_unauthenticated
        assert coordinator.ui_state.value.error_message == "No authenticated user"

    async def test_stale_session_refresh_is_dropped(self, coordinator, firebase_auth):
        """A session that disappears before its user fetch runs stays signed out."""
        firebase_auth.sign_in_as("uid-1")
        firebase_auth.sign_out()
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.is_unauthenticated
        assert coordinator.ui_state.value.error_message is None

    async def test_session_cleared_wipes_field_errors(self, coordinator, firebase_auth):
        firebase_auth.sign_in_as("uid-1")
        await coordinator.wait_until_idle()
        coordinator.sign_in_with_email("", "")

        firebase_auth.sign_out()
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.is_unauthenticated
        assert coordinator.validation_errors.value == {}

    async def test_listener_from_worker_thread(self, coordinator, firebase_auth):
        await asyncio.to_thread(firebase_auth.sign_in_as, "uid-thread")
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.user.uid == "uid-thread"


class TestEmailOperations:
    """Tests for email sign-in and sign-up."""

    async def test_sign_in_success(self, coordinator: SessionCoordinator, firebase_auth):
        loading = []
        coordinator.ui_state.subscribe(lambda state: loading.append(state.is_loading))

        task = coordinator.sign_in_with_email("  runner@example.com ", "secret1")
        assert coordinator.ui_state.value.is_loading
        await coordinator.wait_until_idle()

        assert task.done()
        assert loading == [False, True, False]
        assert coordinator.ui_state.value == AuthUiState()
        assert coordinator.auth_state.value.user.uid == "uid-runner"
        assert firebase_auth.calls == [("sign_in", "runner@example.com", "secret1")]

    async def test_empty_credentials_never_reach_provider(self, coordinator, firebase_auth):
        task = coordinator.sign_in_with_email("", "")

        assert task is None
        assert coordinator.validation_errors.value == {
            "email": "Email is required",
            "password": "Password is required",
        }
        assert firebase_auth.calls == []
        assert not coordinator.ui_state.value.is_loading

    async def test_invalid_credentials_messages(self, coordinator, firebase_auth):
        coordinator.sign_up_with_email("a@b", "123")

        assert coordinator.validation_errors.value == {
            "email": "Please enter a valid email address",
            "password": "Password must be at least 6 characters",
        }
        assert firebase_auth.calls == []

    async def test_blank_password_is_required(self, coordinator):
        coordinator.sign_in_with_email("runner@example.com", "      ")

        assert coordinator.validation_errors.value == {"password": "Password is required"}

    async def test_valid_submit_clears_field_errors(self, coordinator):
        coordinator.sign_in_with_email("", "")
        coordinator.sign_in_with_email("runner@example.com", "secret1")

        assert coordinator.validation_errors.value == {}
        await coordinator.wait_until_idle()

    async def test_provider_error_is_surfaced(self, coordinator, firebase_auth):
        firebase_auth.error = IdentityProviderError(
            "INVALID_PASSWORD",
            "The password is invalid or the user does not have a password.",
        )

        coordinator.sign_in_with_email("runner@example.com", "wrong12")
        await coordinator.wait_until_idle()

        ui_state = coordinator.ui_state.value
        assert ui_state.error_message == "The password is invalid or the user does not have a password."
        assert not ui_state.is_loading
        assert coordinator.auth_state.value.is_unauthenticated

    async def test_sign_up_success_with_mirror_failure(self, coordinator, users_collection):
        users_collection.update_one.side_effect = PyMongoError("write failed")

        coordinator.sign_up_with_email("new@example.com", "secret1")
        await coordinator.wait_until_idle()

        ui_state = coordinator.ui_state.value
        assert ui_state.success_message == "Account created successfully!"
        assert ui_state.error_message is None
        assert coordinator.auth_state.value.user.uid == "uid-new"
        assert users_collection.update_one.await_count == 1

    async def test_new_operation_clears_previous_messages(self, coordinator, firebase_auth):
        coordinator.sign_up_with_email("new@example.com", "secret1")
        await coordinator.wait_until_idle()
        firebase_auth.error = IdentityProviderError("EMAIL_EXISTS", "The email address is already in use by another account.")

        coordinator.sign_up_with_email("new@example.com", "secret1")
        assert coordinator.ui_state.value.success_message is None
        await coordinator.wait_until_idle()

        assert coordinator.ui_state.value.error_message == "The email address is already in use by another account."
        assert coordinator.ui_state.value.success_message is None

    async def test_superseded_completion_is_discarded(self, coordinator, firebase_auth):
        firebase_auth.hold_calls = True
        first = coordinator.sign_in_with_email("first@example.com", "secret1")
        second = coordinator.sign_in_with_email("second@example.com", "secret2")
        await wait_for_held(firebase_auth, 2)

        firebase_auth.held[1].set()
        await second
        assert coordinator.ui_state.value == AuthUiState()

        firebase_auth.error = IdentityProviderError("INVALID_PASSWORD", "bad password")
        firebase_auth.held[0].set()
        await first
        await coordinator.wait_until_idle()

        assert coordinator.ui_state.value.error_message is None
        assert coordinator.auth_state.value.user.uid == "uid-second"


class TestPasswordReset:
    """Tests for password reset."""

    async def test_empty_email(self, coordinator, firebase_auth):
        assert coordinator.send_password_reset_email("") is None

        assert coordinator.validation_errors.value == {"email": "Email is required"}
        assert firebase_auth.calls == []

    async def test_empty_email_keeps_other_field_errors(self, coordinator):
        coordinator.sign_in_with_email("runner@example.com", "1")

        coordinator.reset_password("   ")

        assert coordinator.validation_errors.value == {
            "password": "Password must be at least 6 characters",
            "email": "Email is required",
        }

    async def test_success(self, coordinator, firebase_auth):
        coordinator.reset_password("runner@example.com")
        await coordinator.wait_until_idle()

        assert coordinator.ui_state.value.success_message == "Password reset email sent"
        assert firebase_auth.calls == [("password_reset", "runner@example.com")]

    async def test_failure(self, coordinator, firebase_auth):
        firebase_auth.error = IdentityProviderError("EMAIL_NOT_FOUND", "There is no user record.")

        coordinator.send_password_reset_email("ghost@example.com")
        await coordinator.wait_until_idle()

        assert coordinator.ui_state.value.error_message == "There is no user record."
        assert not coordinator.ui_state.value.is_loading


class TestGoogleSignIn:
    """Tests for Google sign-in through the coordinator."""

    async def test_empty_token(self, coordinator, firebase_auth):
        for token in ("", "   "):
            assert coordinator.sign_in_with_google(token) is None

        assert coordinator.ui_state.value.error_message == "Google Sign-In failed: Invalid token"
        assert firebase_auth.calls == []

    async def test_token_sign_in(self, coordinator, firebase_auth, users_collection):
        coordinator.sign_in_with_google("google-jwt")
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.user.email == "google.user@example.com"
        assert coordinator.ui_state.value == AuthUiState()
        users_collection.update_one.assert_awaited_once()

    async def test_account_picker_flow(self, coordinator, firebase_auth, google_sign_in: GoogleSignInHelper):
        host = FakeConsentHost(ConsentResult.ok(GoogleAccount(id_token="jwt-1")))
        google_sign_in.initialize(host, "web-client")

        coordinator.start_google_sign_in()
        await coordinator.wait_until_idle()

        assert firebase_auth.calls == [("google", "jwt-1")]
        assert coordinator.auth_state.value.is_authenticated

    async def test_idle_covers_posted_sign_in_and_refresh(self, coordinator, firebase_auth, google_sign_in):
        """The picker posts a sign-in, which posts a session change, which spawns a refresh."""
        host = FakeConsentHost(ConsentResult.ok(GoogleAccount(id_token="jwt-slow")), turns=5)
        google_sign_in.initialize(host, "web-client")

        coordinator.start_google_sign_in()
        await coordinator.wait_until_idle()

        assert firebase_auth.current_user is not None
        assert coordinator.auth_state.value.is_authenticated
        assert coordinator.auth_state.value.user.email == "google.user@example.com"
        assert coordinator.ui_state.value == AuthUiState()

    async def test_idle_covers_change_posted_from_worker_thread(self, coordinator, firebase_auth):
        await asyncio.to_thread(firebase_auth.sign_in_as, "uid-thread")
        await asyncio.to_thread(firebase_auth.sign_out)
        await asyncio.to_thread(firebase_auth.sign_in_as, "uid-again")
        await coordinator.wait_until_idle()

        assert coordinator.auth_state.value.user.uid == "uid-again"

    async def test_account_picker_cancelled(self, coordinator, firebase_auth, google_sign_in):
        google_sign_in.initialize(FakeConsentHost(ConsentResult.cancelled()), "web-client")

        coordinator.start_google_sign_in()
        await coordinator.wait_until_idle()

        assert coordinator.ui_state.value.error_message == "Google Sign-In cancelled"
        assert firebase_auth.calls == []

    async def test_account_picker_not_initialized(self, coordinator):
        assert coordinator.start_google_sign_in() is None

        assert coordinator.ui_state.value.error_message == "Google Sign-In failed: not initialized"


class TestSignOutAndErrors:
    """Tests for sign-out, clear_errors and disposal."""

    async def test_sign_out_resets_everything(self, coordinator, firebase_auth, google_sign_in):
        host = FakeConsentHost()
        google_sign_in.initialize(host, "web-client")
        coordinator.sign_in_with_email("runner@example.com", "secret1")
        await coordinator.wait_until_idle()
        coordinator.sign_in_with_google("")
        coordinator.reset_password("")

        coordinator.sign_out()

        assert coordinator.auth_state.value.is_unauthenticated
        assert coordinator.validation_errors.value == {}
        assert coordinator.ui_state.value.error_message is None
        assert coordinator.ui_state.value.success_message is None
        assert host.signed_out
        assert "sign_out" in firebase_auth.call_names()

        await coordinator.wait_until_idle()
        assert coordinator.auth_state.value.is_unauthenticated

    async def test_sign_out_drops_in_flight_result(self, coordinator, firebase_auth):
        firebase_auth.hold_calls = True
        task = coordinator.sign_in_with_email("runner@example.com", "secret1")
        await wait_for_held(firebase_auth, 1)

        coordinator.sign_out()
        firebase_auth.error = IdentityProviderError("USER_DISABLED", "disabled")
        firebase_auth.held[0].set()
        await task

        assert coordinator.ui_state.value == AuthUiState()

    async def test_clear_errors_is_idempotent(self, coordinator):
        coordinator.sign_in_with_google("")
        coordinator.sign_in_with_email("", "")

        coordinator.clear_errors()
        once = coordinator.snapshot()
        coordinator.clear_errors()

        assert coordinator.snapshot() == once
        assert once.ui_state.error_message is None
        assert once.ui_state.success_message is None
        assert once.validation_errors == {}

    async def test_dispose_detaches_and_ignores_pending(self, coordinator, firebase_auth):
        firebase_auth.hold_calls = True
        task = coordinator.sign_in_with_email("runner@example.com", "secret1")
        await wait_for_held(firebase_auth, 1)
        before = coordinator.snapshot()

        coordinator.dispose()
        firebase_auth.held[0].set()
        await task
        await coordinator.wait_until_idle()

        assert firebase_auth.listeners == []
        assert coordinator.snapshot() == before
        assert coordinator.sign_in_with_email("runner@example.com", "secret1") is None
