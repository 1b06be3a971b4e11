"""Authentication service for email and Google sign-in."""

import logging

from fitsoul.errors import ErrorKind, IdentityProviderError
from fitsoul.models.result import Result
from fitsoul.models.user import User, UserBuilder
from fitsoul.services.firebase_auth import (
    AuthResult,
    FirebaseAuthClient,
    FirebaseUser,
    GoogleAuthCredential,
)
from fitsoul.services.users import UserStore

logger = logging.getLogger(__name__)

NO_AUTHENTICATED_USER = "No authenticated user"


def _to_user(firebase_user: FirebaseUser) -> User:
    return (
        UserBuilder()
        .set_uid(firebase_user.uid)
        .set_email(firebase_user.email)
        .set_display_name(firebase_user.display_name)
        .build()
    )


def _provider_failure(error: IdentityProviderError, default_message: str) -> Result:
    return Result.fail(ErrorKind.PROVIDER, error.message or default_message)


class AuthService:
    """Gateway between the session coordinator and Firebase.

    Every call resolves to a Result; provider errors never escape. Newly
    signed-up and Google-authenticated users are mirrored into the users
    collection, and a failed mirror does not fail the sign-in.
    """

    def __init__(self, firebase_auth: FirebaseAuthClient, user_store: UserStore):
        self.firebase_auth = firebase_auth
        self.user_store = user_store

    def is_signed_in(self) -> bool:
        return self.firebase_auth.current_user is not None

    async def get_current_user(self) -> Result[User]:
        firebase_user = self.firebase_auth.current_user
        if firebase_user is None:
            return Result.fail(ErrorKind.NO_SESSION, NO_AUTHENTICATED_USER)
        return Result.success(_to_user(firebase_user))

    async def sign_in_with_email(self, email: str, password: str) -> Result[User]:
        try:
            auth_result = await self.firebase_auth.sign_in_with_email_and_password(email, password)
        except IdentityProviderError as e:
            return _provider_failure(e, "Sign in failed")
        return self._user_from(auth_result, "Authentication result is null")

    async def sign_up_with_email(self, email: str, password: str) -> Result[User]:
        try:
            auth_result = await self.firebase_auth.create_user_with_email_and_password(email, password)
        except IdentityProviderError as e:
            return _provider_failure(e, "Sign up failed")

        result = self._user_from(auth_result, "Authentication result is null")
        if result.is_success:
            await self._mirror_user(result.value_or_none())
        return result

    async def sign_in_with_google(self, id_token: str) -> Result[User]:
        credential = GoogleAuthCredential(id_token=id_token)
        try:
            auth_result = await self.firebase_auth.sign_in_with_credential(credential)
        except IdentityProviderError as e:
            return _provider_failure(e, "Google sign in failed")

        result = self._user_from(auth_result, "Google sign in result is null")
        if result.is_success:
            await self._mirror_user(result.value_or_none())
        return result

    async def send_password_reset_email(self, email: str) -> Result[None]:
        try:
            await self.firebase_auth.send_password_reset_email(email)
        except IdentityProviderError as e:
            return _provider_failure(e, "Password reset failed")
        return Result.success(None)

    async def send_email_verification(self) -> Result[None]:
        firebase_user = self.firebase_auth.current_user
        if firebase_user is None:
            return Result.fail(ErrorKind.NO_SESSION, NO_AUTHENTICATED_USER)

        try:
            await self.firebase_auth.send_email_verification(firebase_user)
        except IdentityProviderError as e:
            return _provider_failure(e, "Email verification failed")
        return Result.success(None)

    def is_email_verified(self) -> bool:
        firebase_user = self.firebase_auth.current_user
        return firebase_user is not None and firebase_user.email_verified

    def sign_out(self) -> None:
        self.firebase_auth.sign_out()

    def _user_from(self, auth_result: AuthResult | None, null_message: str) -> Result[User]:
        if auth_result is None or auth_result.user is None:
            return Result.fail(ErrorKind.NULL_RESULT, null_message)
        return Result.success(_to_user(auth_result.user))

    async def _mirror_user(self, user: User) -> None:
        """Write the user document; failures are logged, never raised."""
        try:
            await self.user_store.mirror_user(user)
        except Exception:
            logger.exception(f"Failed to mirror user '{user.uid}' to the users collection")
            return
        logger.info(f"Mirrored user '{user.uid}' to the users collection")
