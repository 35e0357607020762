"""
Route access policy.

A static, ordered table binding URL patterns and HTTP methods to the access
they require. The first matching rule wins; requests matching no rule need
an authenticated principal of any role.

Pattern syntax: ``/prefix/**`` matches ``/prefix`` and everything below it,
any other pattern must match the path exactly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Sequence

from arbeit_auth.roles import ALL_ROLES, Role, has_any_role


class Access(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ROLES = "roles"


class Decision(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Rule:
    pattern: str
    access: Access
    methods: FrozenSet[str] = frozenset()
    roles: FrozenSet[Role] = frozenset()

    def matches(self, method: str, path: str) -> bool:
        if self.methods and method.upper() not in self.methods:
            return False
        if self.pattern.endswith("/**"):
            prefix = self.pattern[:-3]
            return path == prefix or path.startswith(prefix + "/")
        return path == self.pattern


def public(pattern: str, *methods: str) -> Rule:
    return Rule(pattern, Access.PUBLIC, frozenset(methods))


def roles(pattern: str, allowed: Sequence[Role], *methods: str) -> Rule:
    return Rule(pattern, Access.ROLES, frozenset(methods), frozenset(allowed))


DEFAULT_RULE = Rule("/**", Access.AUTHENTICATED)

DEFAULT_POLICY: tuple[Rule, ...] = (
    # Info and health
    public("/"),
    public("/api/"),
    public("/health"),
    # Login, registration, logout, password change, email verification
    public("/auth/**"),
    public("/jobs", "GET"),
    # Clients POST a job id to fetch a single posting
    public("/jobs", "POST"),
    public("/applications", "POST"),
    public("/mentorship/**"),
    public("/project/**"),
    public("/scanner/**"),
    roles("/business/**", [Role.BUSINESS]),
    roles("/profile", [Role.USER, Role.BUSINESS], "GET", "PUT"),
)


@dataclass(frozen=True)
class Policy:
    """Ordered rule table with an authenticated-by-default fallback."""

    rules: Sequence[Rule] = field(default=DEFAULT_POLICY)

    def rule_for(self, method: str, path: str) -> Rule:
        for rule in self.rules:
            if rule.matches(method, path):
                return rule
        return DEFAULT_RULE

    def is_public(self, method: str, path: str) -> bool:
        return self.rule_for(method, path).access is Access.PUBLIC

    def evaluate(self, method: str, path: str, role: Optional[Role]) -> Decision:
        """
        Decide whether a request may proceed.

        *role* is the role of the verified principal, or None when the
        request carries no valid token.
        """
        rule = self.rule_for(method, path)
        if rule.access is Access.PUBLIC:
            return Decision.ALLOW
        if role is None:
            return Decision.UNAUTHENTICATED
        allowed = rule.roles if rule.access is Access.ROLES else ALL_ROLES
        if not has_any_role(role, allowed):
            return Decision.FORBIDDEN
        return Decision.ALLOW
