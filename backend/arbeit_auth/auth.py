"""
FastAPI authentication dependencies.

The session token is read from the ``accessToken`` cookie only; the
Authorization header is not consulted. ``RouteAuthorizerASGI`` decodes the
cookie once per request and leaves the claims on ``request.state.principal``.
"""

from typing import Optional

from fastapi import Request

from arbeit_auth.auth_utils import TokenClaims
from arbeit_auth.config import Settings
from arbeit_auth.errors import Unauthorized


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_current_principal(request: Request) -> TokenClaims:
    """
    Return the claims of the verified session cookie.

    Raises:
        Unauthorized if the cookie is missing, expired, or invalid.
    """
    claims: Optional[TokenClaims] = getattr(request.state, "principal", None)
    if claims is None:
        raise Unauthorized("Unauthorized")

    return claims
