"""
Session cookie helpers.

The access token travels only in an HTTP-only cookie; it is never placed
in a response body. Domain and Secure flag come from settings so the same
code runs behind TLS in production and on plain localhost in development.
"""

from starlette.responses import Response


def set_session_cookie(response: Response, token: str, settings) -> None:
    """Attach *token* as the session cookie, valid for the token lifetime."""
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRY_SECS,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )


def clear_session_cookie(response: Response, settings) -> None:
    """Expire the session cookie with the same attributes it was set with."""
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )
