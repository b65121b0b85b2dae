"""
Pydantic schemas for comment endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

MAX_COMMENT_CHARS = 1000


class CreateCommentRequest(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment text is required.")
        if len(value) > MAX_COMMENT_CHARS:
            raise ValueError(f"Comment cannot exceed {MAX_COMMENT_CHARS} characters.")
        return value


class CommentAuthor(BaseModel):
    id: int
    name: str
    profile_picture: str | None = None


class CommentResponse(BaseModel):
    id: int
    post_id: int
    text: str
    author: CommentAuthor
    created_at: datetime
