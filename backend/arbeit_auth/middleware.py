"""
Route authorization middleware.

Raw ASGI middleware that runs before routing: it reads the session cookie,
verifies the token, records the claims on ``request.state.principal`` and
applies the route policy. Rejections are produced by pluggable callables so
the 401/403 bodies can be swapped without touching the policy.

Also holds the catch-all error middleware, which sits inside CORS so that
generic 500 responses still carry the CORS headers.
"""

import logging
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request, cookie_parser
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from arbeit_auth.auth_utils import TokenClaims, decode_access_token
from arbeit_auth.policy import Decision, Policy

logger = logging.getLogger(__name__)

# (scope, reason) -> response sent to the client
EntryPoint = Callable[[Scope, str], Awaitable[Response]]


async def json_entry_point(scope: Scope, reason: str) -> Response:
    """Default 401 body for requests without a usable token."""
    return JSONResponse({"message": "Unauthorized"}, status_code=401)


async def json_access_denied(scope: Scope, reason: str) -> Response:
    """Default 403 body for authenticated principals with the wrong role."""
    return JSONResponse({"message": "Forbidden"}, status_code=403)


def _get_cookie_from_scope(scope: Scope, name: str) -> Optional[str]:
    """Extract the named cookie from the raw ASGI headers."""
    for key, value in scope.get("headers") or []:
        if key.lower() != b"cookie":
            continue
        cookies = cookie_parser(value.decode("latin-1"))
        if cookies.get(name):
            return cookies[name]
    return None


def _relative_path(scope: Scope) -> str:
    path = scope.get("path") or "/"
    root_path = scope.get("root_path") or ""
    if root_path and path.startswith(root_path):
        path = path[len(root_path):] or "/"
    return path


class RouteAuthorizerASGI:
    """Applies the route policy to every HTTP request before routing."""

    def __init__(
        self,
        app: ASGIApp,
        settings,
        policy: Optional[Policy] = None,
        entry_point: EntryPoint = json_entry_point,
        access_denied_handler: EntryPoint = json_access_denied,
    ) -> None:
        self.app = app
        self.settings = settings
        self.policy = policy or Policy()
        self.entry_point = entry_point
        self.access_denied_handler = access_denied_handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = _relative_path(scope)

        claims: Optional[TokenClaims] = None
        token = _get_cookie_from_scope(scope, self.settings.COOKIE_NAME)
        if token:
            claims = decode_access_token(token, self.settings)
        scope.setdefault("state", {})["principal"] = claims

        decision = self.policy.evaluate(method, path, claims.role if claims else None)

        if decision is Decision.UNAUTHENTICATED:
            reason = "invalid_token" if token else "missing_token"
            logger.info("Rejected %s %s: %s", method, path, reason)
            response = await self.entry_point(scope, reason)
            await response(scope, receive, send)
            return

        if decision is Decision.FORBIDDEN:
            logger.info("Rejected %s %s: role %s not permitted", method, path, claims.role.value)
            response = await self.access_denied_handler(scope, "insufficient_role")
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a generic 500 without leaking detail."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            return JSONResponse({"message": "Internal server error"}, status_code=500)
