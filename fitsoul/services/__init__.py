"""Services for Fitsoul."""

from fitsoul.services.firebase_auth import FirebaseAuthClient
from fitsoul.services.users import UserStore
from fitsoul.services.auth import AuthService
from fitsoul.services.google_sign_in import GoogleSignInHelper
from fitsoul.services.session import SessionCoordinator

__all__ = [
    "FirebaseAuthClient",
    "UserStore",
    "AuthService",
    "GoogleSignInHelper",
    "SessionCoordinator",
]
