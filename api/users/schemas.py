"""
Pydantic schemas for profile endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from auth.schemas import check_bio, check_name


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    bio: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str | None:
        return check_name(value) if value is not None else None

    @field_validator("bio")
    @classmethod
    def _strip_bio(cls, value: str | None) -> str | None:
        return check_bio(value) if value is not None else None
