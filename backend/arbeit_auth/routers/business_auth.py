"""
Business authentication endpoints: register and login.

Same contract as the user endpoints; responses identify the account by
``bid`` instead of ``userId``. Logout and password change are shared with
users under ``/auth``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from arbeit_auth.auth import get_app_settings
from arbeit_auth.auth_utils import create_access_token
from arbeit_auth.config import Settings
from arbeit_auth.cookies import set_session_cookie
from arbeit_auth.db.connection import get_db_session
from arbeit_auth.errors import AuthError, InvalidCredentials, ServerError
from arbeit_auth.schemas import (
    BusinessAuthResponse,
    BusinessRegistrationRequest,
    LoginRequest,
)
from arbeit_auth.services.accounts import authenticate_business, register_business

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth/business", tags=["business-auth"])


@router.post("/login", response_model=BusinessAuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> BusinessAuthResponse:
    """Authenticate a business and set the session cookie."""
    try:
        business = authenticate_business(db, body.email, body.password)
        if business is None:
            logger.warning("Failed business login for %s", body.email)
            raise InvalidCredentials("Business login failed: Invalid email or password")

        token = create_access_token(business.bid, business.email_lower, business.role, settings)
    except AuthError:
        raise
    except Exception as exc:
        logger.exception("Business login error for %s", body.email)
        raise ServerError("Internal server error") from exc

    set_session_cookie(response, token, settings)
    logger.info("Business %s logged in", business.email_lower)

    return BusinessAuthResponse(
        message="Login successful",
        bid=business.bid,
        email=business.email_lower,
        role=business.role,
    )


@router.post("/register", response_model=BusinessAuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: BusinessRegistrationRequest,
    db: Session = Depends(get_db_session),
) -> BusinessAuthResponse:
    """Create a new business account."""
    try:
        business = register_business(db, body)
    except AuthError as exc:
        logger.warning("Business registration rejected for %s: %s", body.email, exc.message)
        raise type(exc)(f"Business registration failed: {exc.message}") from exc
    except Exception as exc:
        logger.exception("Business registration error for %s", body.email)
        raise ServerError("Internal server error") from exc

    logger.info("Registered business %s", business.email_lower)

    return BusinessAuthResponse(
        message="Business registered successfully",
        bid=business.bid,
        email=business.email_lower,
        role=business.role,
    )
