"""
Arbeit Database Connection Factory

Provides engine creation, session factory, and both a context-managed
``get_db()`` for scripts and a FastAPI-compatible ``get_db_session()``
dependency. Engines are cached per database URL.
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import Session, sessionmaker


@lru_cache()
def get_engine(database_url: str) -> Engine:
    """
    Create and cache a SQLAlchemy Engine for *database_url*.

    SQLite URLs get a plain engine; everything else gets a bounded pool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
    )


@lru_cache()
def get_session_factory(database_url: str) -> sessionmaker[Session]:
    """Return a cached ``sessionmaker`` bound to the engine for *database_url*."""
    return sessionmaker(bind=get_engine(database_url), expire_on_commit=False)


@contextmanager
def get_db(database_url: str) -> Generator[Session, None, None]:
    """
    Context manager that yields a SQLAlchemy ``Session``.

    Automatically commits on clean exit or rolls back on exception.

    Usage::

        with get_db(settings.database_url) as db:
            db.add(some_model)
    """
    session: Session = get_session_factory(database_url)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLAlchemy ``Session``.

    The database URL comes from the settings attached to the application.

    Usage in a route::

        @router.get("/foo")
        def foo(db: Session = Depends(get_db_session)):
            ...
    """
    with get_db(request.app.state.settings.database_url) as session:
        yield session
