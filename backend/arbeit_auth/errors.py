"""
Error taxonomy for the auth surface.

Every ``AuthError`` is rendered by the application as ``{"message": ...}``
with its ``status_code``. Messages are safe to show to callers; anything
that is not an ``AuthError`` is reported as a generic 500.
"""


class AuthError(Exception):
    """Base class for errors surfaced to the client with a safe message."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailure(AuthError):
    """Malformed or missing request fields."""


class InvalidCredentials(AuthError):
    """Email/password pair does not match a principal."""


class RegistrationConflict(AuthError):
    """An account with the same email already exists."""


class DomainError(AuthError):
    """A business rule rejected the operation."""


class Unauthorized(AuthError):
    status_code = 401


class Forbidden(AuthError):
    status_code = 403


class ServerError(AuthError):
    """Unexpected failure, reported with a generic message."""

    status_code = 500
