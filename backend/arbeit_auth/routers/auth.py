"""
User authentication endpoints: register, login, logout, change password,
email verification.

The access token is delivered only as an HTTP-only cookie; response bodies
carry the principal's id, email and role but never the token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from arbeit_auth.auth import get_app_settings, get_current_principal
from arbeit_auth.auth_utils import TokenClaims, create_access_token
from arbeit_auth.config import Settings
from arbeit_auth.cookies import clear_session_cookie, set_session_cookie
from arbeit_auth.db.connection import get_db_session
from arbeit_auth.errors import AuthError, InvalidCredentials, ServerError, ValidationFailure
from arbeit_auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    UserRegistrationRequest,
    VerificationCodeRequest,
    VerificationCodeSubmission,
)
from arbeit_auth.services.accounts import (
    authenticate_user,
    change_password as change_account_password,
    register_user,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    """Authenticate with email/password and set the session cookie."""
    try:
        user = authenticate_user(db, body.email, body.password)
        if user is None:
            logger.warning("Failed login for %s", body.email)
            raise InvalidCredentials("Login failed: Invalid email or password")

        token = create_access_token(user.id, user.email_lower, user.role, settings)
    except AuthError:
        raise
    except Exception as exc:
        logger.exception("Login error for %s", body.email)
        raise ServerError("Internal server error") from exc

    set_session_cookie(response, token, settings)
    logger.info("User %s logged in", user.email_lower)

    return AuthResponse(
        message="Login successful",
        user_id=user.id,
        email=user.email_lower,
        role=user.role,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: UserRegistrationRequest,
    db: Session = Depends(get_db_session),
) -> AuthResponse:
    """Create a new user account."""
    try:
        user = register_user(db, body)
    except AuthError as exc:
        logger.warning("Registration rejected for %s: %s", body.email, exc.message)
        raise type(exc)(f"Registration failed: {exc.message}") from exc
    except Exception as exc:
        logger.exception("Registration error for %s", body.email)
        raise ServerError("Internal server error") from exc

    logger.info("Registered user %s", user.email_lower)

    return AuthResponse(
        message="User registered successfully",
        user_id=user.id,
        email=user.email_lower,
        role=user.role,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    """
    Expire the session cookie.

    The token itself stays valid until its own expiry; nothing is revoked
    server-side.
    """
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    claims: TokenClaims = Depends(get_current_principal),
    db: Session = Depends(get_db_session),
) -> MessageResponse:
    """Change the current principal's password."""
    try:
        change_account_password(
            db,
            role=claims.role,
            principal_id=claims.id,
            current_password=body.current_password,
            new_password=body.new_password,
        )
    except AuthError as exc:
        logger.warning("Password change rejected for %s: %s", claims.sub, exc.message)
        raise
    except Exception as exc:
        logger.exception("Password change error for %s", claims.sub)
        raise ServerError("Failed to update password") from exc

    return MessageResponse(message="Password updated")


# ── Email verification ───────────────────────────────────────────────────────
# TODO: issue, store and expire real codes once an email provider is wired in;
# until then both steps only validate their input.

@router.post("/verify-email", response_model=MessageResponse)
def send_verification(body: VerificationCodeRequest) -> MessageResponse:
    """Pretend to send a verification code to ``email``."""
    if not body.email or not body.email.strip():
        raise ValidationFailure("Email is required")
    logger.info("Verification code requested for %s (no delivery configured)", body.email.strip().lower())
    return MessageResponse(message="Verification code sent")


@router.put("/verify-email", response_model=MessageResponse)
def verify_code(body: VerificationCodeSubmission) -> MessageResponse:
    """Accept any non-blank code for ``email``."""
    if not body.email or not body.email.strip() or not body.code or not body.code.strip():
        raise ValidationFailure("Invalid request")
    return MessageResponse(message="Email verified")
