"""
Account persistence: registration, credential checks and password changes
for both principal types.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Type, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arbeit_auth.auth_utils import hash_password, verify_password
from arbeit_auth.db.models import Business, User
from arbeit_auth.errors import DomainError, RegistrationConflict
from arbeit_auth.roles import Role
from arbeit_auth.schemas import (
    BusinessRegistrationRequest,
    UserRegistrationRequest,
    normalize_email,
)

logger = logging.getLogger(__name__)

Principal = Union[User, Business]

_MODEL_FOR_ROLE = {
    Role.USER: User,
    Role.BUSINESS: Business,
}


def _find_by_email(db: Session, model: Type[Principal], email: str) -> Optional[Principal]:
    email_lower = normalize_email(email)
    return db.query(model).filter(model.email_lower == email_lower).first()


def _create(db: Session, principal: Principal) -> Principal:
    existing = _find_by_email(db, type(principal), principal.email_lower)
    if existing is not None:
        raise RegistrationConflict(
            f"An account with email '{principal.email_lower}' already exists."
        )

    db.add(principal)
    try:
        db.flush()
    except IntegrityError as exc:
        # Lost a race against a concurrent registration for the same email
        db.rollback()
        raise RegistrationConflict(
            f"An account with email '{principal.email_lower}' already exists."
        ) from exc
    return principal


# ── Registration ─────────────────────────────────────────────────────────────

def register_user(db: Session, body: UserRegistrationRequest) -> User:
    """Register a new user account. Raises RegistrationConflict if email is taken."""
    user = User(
        email=body.email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return _create(db, user)


def register_business(db: Session, body: BusinessRegistrationRequest) -> Business:
    """Register a new business account. Raises RegistrationConflict if email is taken."""
    business = Business(
        email=body.email,
        password_hash=hash_password(body.password),
        business_name=body.business_name,
        contact_name=body.contact_name,
        phone=body.phone,
        website=body.website,
    )
    return _create(db, business)


# ── Authentication ───────────────────────────────────────────────────────────

def _authenticate(db: Session, model: Type[Principal], email: str, password: str) -> Optional[Principal]:
    principal = _find_by_email(db, model, email)
    if principal is None:
        return None

    if not verify_password(password, principal.password_hash):
        return None

    principal.last_login_at = datetime.now(timezone.utc)
    db.flush()
    return principal


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Validate email/password pair. Returns User or None."""
    return _authenticate(db, User, email, password)


def authenticate_business(db: Session, email: str, password: str) -> Optional[Business]:
    """Validate email/password pair. Returns Business or None."""
    return _authenticate(db, Business, email, password)


# ── Password change ──────────────────────────────────────────────────────────

def get_principal(db: Session, role: Role, principal_id: uuid.UUID) -> Optional[Principal]:
    """Load the user or business a token refers to."""
    model = _MODEL_FOR_ROLE[role]
    return db.get(model, principal_id)


def change_password(
    db: Session,
    role: Role,
    principal_id: uuid.UUID,
    current_password: str,
    new_password: str,
) -> Principal:
    """
    Replace a principal's password after checking the current one.

    Raises:
        DomainError if the account is gone or *current_password* is wrong.
    """
    principal = get_principal(db, role, principal_id)
    if principal is None:
        raise DomainError("Account not found")

    if not verify_password(current_password, principal.password_hash):
        raise DomainError("Current password is incorrect")

    principal.password_hash = hash_password(new_password)
    db.flush()
    logger.info("Password changed for %s %s", role.value, principal.email_lower)
    return principal
