"""
Arbeit Authentication Utilities

Core functions for password hashing (bcrypt) and access token management
(PyJWT). Tokens are stateless: validity is decided by signature and expiry
alone, there is no server-side session store.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from pydantic import BaseModel

from arbeit_auth.roles import Role


# ── Password helpers ─────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt with 12 rounds."""
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plain-text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(
            password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False


# ── Access tokens ────────────────────────────────────────────────────────────

class TokenClaims(BaseModel):
    """Decoded access token payload."""

    sub: str                # principal email
    id: uuid.UUID           # user id or business bid
    role: Role
    iat: datetime
    exp: datetime


def create_access_token(
    principal_id: uuid.UUID,
    email: str,
    role: Role,
    settings,
    issued_at: Optional[datetime] = None,
) -> str:
    """Create a signed JWT valid for ``settings.JWT_EXPIRY_SECS`` seconds."""
    now = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "id": str(principal_id),
        "role": Role(role).value,
        "iat": now,
        "exp": now + timedelta(seconds=settings.JWT_EXPIRY_SECS),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings) -> Optional[TokenClaims]:
    """Decode and validate a JWT. Returns the claims or None."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
        return TokenClaims(
            sub=payload["sub"],
            id=payload["id"],
            role=payload["role"],
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (jwt.InvalidTokenError, KeyError, ValueError):
        # ValueError covers pydantic validation of id/role claims
        return None
