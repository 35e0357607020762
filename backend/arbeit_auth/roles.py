"""
Principal roles and the capability check used by the route policy.
"""

from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    """Access class of a principal. Fixed at registration."""

    USER = "USER"
    BUSINESS = "BUSINESS"


ALL_ROLES = frozenset(Role)


def has_any_role(role: Optional[Role], allowed: Iterable[Role]) -> bool:
    """Return True if *role* is one of *allowed*."""
    if role is None:
        return False
    return role in frozenset(allowed)
