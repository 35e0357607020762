"""
Info and health-check endpoints; no authentication required.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from arbeit_auth.config import SERVICE_NAME, SERVICE_VERSION
from arbeit_auth.db.connection import get_db_session
from arbeit_auth.schemas import HealthResponse, InfoResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/", response_model=InfoResponse)
@router.get("/api/", response_model=InfoResponse)
def info() -> InfoResponse:
    """Return service name and version."""
    return InfoResponse(name=SERVICE_NAME, version=SERVICE_VERSION, status="running")


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db_session)) -> HealthResponse:
    """
    Return service health, including whether the database answers.
    """
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        db.rollback()
        database_ok = False

    return HealthResponse(status="ok", database=database_ok)
