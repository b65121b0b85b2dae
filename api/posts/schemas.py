"""
Pydantic schemas for post and like endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

MAX_POST_TEXT_CHARS = 500


class AuthorSummary(BaseModel):
    id: int
    name: str
    email: str | None = None
    profile_picture: str | None = None


class PostResponse(BaseModel):
    id: int
    text: str
    images: list[str] = Field(default_factory=list)
    author: AuthorSummary
    likes: list[int] = Field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False
    created_at: datetime
    updated_at: datetime


class LikeState(BaseModel):
    """
    Authoritative like state, returned after every like mutation.
    """

    post_id: int
    liked: bool
    likes: list[int]
    like_count: int
