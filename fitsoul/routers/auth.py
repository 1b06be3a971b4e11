"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from fitsoul.config import get_settings
from fitsoul.models.auth import (
    AuthConfigResponse,
    EmailPasswordRequest,
    EmailVerifiedResponse,
    GoogleAuthRequest,
    PasswordResetRequest,
    SessionSnapshot,
)
from fitsoul.services.auth import AuthService
from fitsoul.services.session import SessionCoordinator

router = APIRouter(prefix="/auth", tags=["auth"])


def get_coordinator(request: Request) -> SessionCoordinator:
    """Dependency for the session coordinator built at startup."""
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not ready",
        )
    return coordinator


def get_auth_service(
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> AuthService:
    """Dependency for the auth gateway."""
    return coordinator.auth_service


@router.get("/config", response_model=AuthConfigResponse)
async def get_auth_config() -> AuthConfigResponse:
    """Return client-side auth config."""
    settings = get_settings()
    return AuthConfigResponse(
        google_web_client_id=settings.google_web_client_id or None,
    )


@router.get("/state", response_model=SessionSnapshot)
async def get_state(
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Current UI state, auth state and field errors."""
    return coordinator.snapshot()


@router.post("/sign-in", response_model=SessionSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def sign_in(
    payload: EmailPasswordRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Start an email/password sign-in."""
    coordinator.sign_in_with_email(payload.email, payload.password)
    return coordinator.snapshot()


@router.post("/sign-up", response_model=SessionSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def sign_up(
    payload: EmailPasswordRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Start creating an email/password account."""
    coordinator.sign_up_with_email(payload.email, payload.password)
    return coordinator.snapshot()


@router.post("/password-reset", response_model=SessionSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def password_reset(
    payload: PasswordResetRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Request a password reset email."""
    coordinator.send_password_reset_email(payload.email)
    return coordinator.snapshot()


@router.post("/google", response_model=SessionSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def sign_in_with_google(
    payload: GoogleAuthRequest,
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Sign in with a Google ID token obtained by the client."""
    coordinator.sign_in_with_google(payload.id_token)
    return coordinator.snapshot()


@router.post("/email-verification", status_code=status.HTTP_204_NO_CONTENT)
async def send_email_verification(
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    """Send a verification email to the signed-in user."""
    result = await auth_service.send_email_verification()
    if result.is_failure:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error_message,
        )


@router.get("/email-verified", response_model=EmailVerifiedResponse)
async def email_verified(
    auth_service: AuthService = Depends(get_auth_service),
) -> EmailVerifiedResponse:
    """Whether the signed-in user's email is verified."""
    return EmailVerifiedResponse(email_verified=auth_service.is_email_verified())


@router.post("/sign-out", response_model=SessionSnapshot)
async def sign_out(
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Sign out of Firebase and Google."""
    coordinator.sign_out()
    return coordinator.snapshot()


@router.post("/clear-errors", response_model=SessionSnapshot)
async def clear_errors(
    coordinator: SessionCoordinator = Depends(get_coordinator),
) -> SessionSnapshot:
    """Dismiss error and success messages."""
    coordinator.clear_errors()
    return coordinator.snapshot()
