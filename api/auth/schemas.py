"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

MAX_NAME_CHARS = 50
MAX_BIO_CHARS = 300


def _check_email(value: str) -> str:
    value = (value or "").strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValueError("Please provide a valid email.")
    return value


def check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required.")
    if len(value) > MAX_NAME_CHARS:
        raise ValueError(f"Name cannot exceed {MAX_NAME_CHARS} characters.")
    return value


def check_bio(value: str) -> str:
    value = value.strip()
    if len(value) > MAX_BIO_CHARS:
        raise ValueError(f"Bio cannot exceed {MAX_BIO_CHARS} characters.")
    return value


class RegisterRequest(BaseModel):
    name: str
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=72)
    bio: str = ""

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return check_name(value)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("bio")
    @classmethod
    def _strip_bio(cls, value: str) -> str:
        return check_bio(value)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(BaseModel):
    # If omitted, all of the caller's refresh tokens are revoked.
    refresh_token: str | None = Field(default=None, min_length=20)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    bio: str = ""
    profile_picture: str | None = None
    created_at: datetime


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse
