"""
Comment business rules.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from posts import service as post_service

from . import repository, schemas

logger = logging.getLogger(__name__)


def to_comment_response(row: dict) -> schemas.CommentResponse:
    return schemas.CommentResponse(
        id=int(row["id"]),
        post_id=int(row["post_id"]),
        text=str(row["text"]),
        author=schemas.CommentAuthor(
            id=int(row["author_id"]),
            name=str(row["author_name"]),
            profile_picture=row.get("author_profile_picture"),
        ),
        created_at=row["created_at"],
    )


async def list_comments(post_id: int, *, limit: int, offset: int) -> list[schemas.CommentResponse]:
    await post_service.get_post_row(post_id)
    rows = await repository.list_comments(post_id, limit=limit, offset=offset)
    return [to_comment_response(r) for r in rows]


async def add_comment(post_id: int, *, author_id: int, text: str) -> schemas.CommentResponse:
    await post_service.get_post_row(post_id)
    comment_id = await repository.create_comment(post_id=post_id, author_id=author_id, text=text)
    logger.info("comment_created comment_id=%s post_id=%s author_id=%s", comment_id, post_id, author_id)

    row = await repository.get_comment(comment_id)
    if row is None:
        raise RuntimeError("Comment disappeared after insert.")
    return to_comment_response(row)


async def delete_comment(post_id: int, comment_id: int, *, user_id: int) -> int:
    """
    The comment author and the post author may both remove a comment.
    """
    post_row = await post_service.get_post_row(post_id)
    row = await repository.get_comment(comment_id)
    if row is None or int(row["post_id"]) != post_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found.")

    if user_id not in {int(row["author_id"]), int(post_row["author_id"])}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments or comments on your posts.",
        )

    await repository.delete_comment(comment_id)
    logger.info("comment_deleted comment_id=%s post_id=%s user_id=%s", comment_id, post_id, user_id)
    return comment_id
