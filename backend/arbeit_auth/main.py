"""
FastAPI application assembly for the Arbeit auth service.
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arbeit_auth.config import SERVICE_NAME, SERVICE_VERSION, Settings, get_settings
from arbeit_auth.errors import AuthError
from arbeit_auth.middleware import (
    EntryPoint,
    ErrorHandlerMiddleware,
    RouteAuthorizerASGI,
    json_access_denied,
    json_entry_point,
)
from arbeit_auth.policy import Policy

# Import routers
from arbeit_auth.routers import auth, business_auth, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    settings = app.state.settings

    logger.info("Arbeit auth service starting up")
    logger.info("  TOKEN_TTL        = %d s", settings.JWT_EXPIRY_SECS)
    logger.info("  COOKIE_DOMAIN    = %s", settings.COOKIE_DOMAIN or "(host-only)")
    logger.info("  COOKIE_SECURE    = %s", settings.COOKIE_SECURE)
    logger.info("  ALLOWED_ORIGINS  = %s", settings.cors_origins)
    if not settings.COOKIE_SECURE:
        logger.warning("COOKIE_SECURE is off; enable it for any deployment behind TLS")

    yield  # Application is running

    logger.info("Arbeit auth service shutting down")


# ── Exception handlers ───────────────────────────────────────────────────────

async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": "Invalid request"})


def create_app(
    settings: Optional[Settings] = None,
    policy: Optional[Policy] = None,
    entry_point: EntryPoint = json_entry_point,
    access_denied_handler: EntryPoint = json_access_denied,
) -> FastAPI:
    """
    Build and return the FastAPI application.

    *entry_point* and *access_denied_handler* produce the 401 and 403
    responses of the route authorizer.
    """
    settings = settings or get_settings()
    if not settings.JWT_SECRET_KEY:
        # Tokens will not survive a restart or validate across workers
        logger.warning("JWT_SECRET_KEY is not set; using a random per-process key")
        settings = settings.model_copy(update={"JWT_SECRET_KEY": secrets.token_urlsafe(32)})

    app = FastAPI(
        title=SERVICE_NAME,
        description="Login, registration and route authorization for users and businesses",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # ---- Route authorization ----
    app.add_middleware(
        RouteAuthorizerASGI,
        settings=settings,
        policy=policy,
        entry_point=entry_point,
        access_denied_handler=access_denied_handler,
    )

    # ---- Unhandled errors ----
    # Inside CORS so generic 500s still carry the CORS headers.
    app.add_middleware(ErrorHandlerMiddleware)

    # ---- CORS ----
    # Added last so it wraps the authorizer and answers preflights itself.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Authorization"],
    )

    # ---- Routers ----
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(business_auth.router)

    return app


# Module-level app instance for uvicorn
app = create_app()
