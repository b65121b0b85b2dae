"""
Comment API endpoints (nested under posts).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies
from core.responses import ok

from . import schemas, service

router = APIRouter(prefix="/posts/{post_id}/comments")


@router.get("")
async def list_comments(
    post_id: int,
    limit: int = Query(200, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> dict:
    comments = await service.list_comments(post_id, limit=limit, offset=offset)
    return ok(comments=comments, count=len(comments))


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: int,
    payload: schemas.CreateCommentRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    comment = await service.add_comment(post_id, author_id=int(current_user["id"]), text=payload.text)
    return ok(comment=comment)


@router.delete("/{comment_id}")
async def delete_comment(
    post_id: int,
    comment_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_comment(post_id, comment_id, user_id=int(current_user["id"]))
    return ok(comment_id=deleted_id)
