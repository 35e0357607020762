"""
Shared pytest fixtures for the Arbeit auth test suite.

Uses an in-memory SQLite database shared across threads (``StaticPool``)
so the FastAPI ``TestClient`` worker threads see the same data as the
fixtures.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from arbeit_auth.auth_utils import create_access_token, hash_password
from arbeit_auth.config import Settings
from arbeit_auth.db.connection import get_db_session
from arbeit_auth.db.models import Base, Business, User
from arbeit_auth.main import create_app

USER_PASSWORD = "UserPass123!"
BUSINESS_PASSWORD = "BizPass123!"


def _create_sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session():
    """In-memory SQLite session for unit tests."""
    engine = _create_sqlite_engine()
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def settings():
    """Explicit settings, isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY="test-secret-key-for-tests-only-0123456789",
        JWT_ALGORITHM="HS256",
        JWT_EXPIRY_SECS=1800,
        ALLOWED_ORIGINS="",
        DATABASE_URL="sqlite://",
    )


@pytest.fixture()
def app(settings, db_session):
    application = create_app(settings)

    def _override_db():
        yield db_session
        db_session.flush()

    application.dependency_overrides[get_db_session] = _override_db
    return application


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def test_user(db_session):
    """Create and return a registered user."""
    user = User(
        email="ada@example.com",
        password_hash=hash_password(USER_PASSWORD),
        first_name="Ada",
        last_name="Lovelace",
    )
    db_session.add(user)
    db_session.flush()
    return user


@pytest.fixture()
def test_business(db_session):
    """Create and return a registered business."""
    business = Business(
        email="hiring@acme.example.com",
        password_hash=hash_password(BUSINESS_PASSWORD),
        business_name="Acme",
    )
    db_session.add(business)
    db_session.flush()
    return business


@pytest.fixture()
def user_token(test_user, settings):
    return create_access_token(test_user.id, test_user.email_lower, test_user.role, settings)


@pytest.fixture()
def business_token(test_business, settings):
    return create_access_token(
        test_business.bid, test_business.email_lower, test_business.role, settings
    )
