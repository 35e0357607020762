"""
Pydantic models for request / response validation.

JSON keys are camelCase on the wire (``firstName``, ``userId``); Python
attributes are snake_case.
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from arbeit_auth.roles import Role

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lower-case an email address."""
    return email.strip().lower()


def _check_password_bytes(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Login / registration ----

class LoginRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_email(v)


class _RegistrationBase(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize(cls, v):
        return normalize_email(v) if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def _password_bytes(cls, v: str) -> str:
        return _check_password_bytes(v)


class UserRegistrationRequest(_RegistrationBase):
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class BusinessRegistrationRequest(_RegistrationBase):
    business_name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    website: Optional[str] = Field(default=None, max_length=512)

    @field_validator("business_name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


# ---- Password change ----

class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_BYTES)
    new_password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator("new_password")
    @classmethod
    def _password_bytes(cls, v: str) -> str:
        return _check_password_bytes(v)


# ---- Email verification ----

class VerificationCodeRequest(CamelModel):
    email: Optional[str] = None


class VerificationCodeSubmission(CamelModel):
    email: Optional[str] = None
    code: Optional[str] = None


# ---- Responses ----

class MessageResponse(CamelModel):
    message: str


class AuthResponse(CamelModel):
    message: str
    user_id: uuid.UUID
    email: str
    role: Role


class BusinessAuthResponse(CamelModel):
    message: str
    bid: uuid.UUID
    email: str
    role: Role


class InfoResponse(BaseModel):
    name: str
    version: str
    status: str


class HealthResponse(BaseModel):
    status: str
    database: bool
