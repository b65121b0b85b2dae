"""
Post business rules.

- a post needs text (<= 500 chars) or at least one image
- images are uploaded as files and stored as base64 data URLs
- only the author may edit or delete a post
- likes are set membership; every mutation returns the full like state
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile, status

from core import uploads

from . import repository, schemas

logger = logging.getLogger(__name__)


def to_post_response(row: dict, *, viewer_id: int | None = None) -> schemas.PostResponse:
    likes = [int(x) for x in (row.get("likes") or [])]
    return schemas.PostResponse(
        id=int(row["id"]),
        text=str(row.get("text") or ""),
        images=list(row.get("images") or []),
        author=schemas.AuthorSummary(
            id=int(row["author_id"]),
            name=str(row["author_name"]),
            email=row.get("author_email"),
            profile_picture=row.get("author_profile_picture"),
        ),
        likes=likes,
        like_count=len(likes),
        comment_count=int(row.get("comment_count") or 0),
        liked_by_me=viewer_id is not None and viewer_id in likes,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _clean_text(text: str | None) -> str:
    cleaned = (text or "").strip()
    if len(cleaned) > schemas.MAX_POST_TEXT_CHARS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Post cannot exceed {schemas.MAX_POST_TEXT_CHARS} characters.",
        )
    return cleaned


def _require_content(text: str, images: list[str]) -> None:
    if not text and not images:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Post must have text or at least one image.",
        )


async def get_post_row(post_id: int) -> dict:
    row = await repository.get_post(post_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found.")
    return row


async def _get_owned_post_row(post_id: int, *, user_id: int) -> dict:
    row = await get_post_row(post_id)
    if int(row["author_id"]) != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own posts.",
        )
    return row


async def list_posts(*, limit: int, offset: int, viewer_id: int | None = None) -> list[schemas.PostResponse]:
    rows = await repository.list_posts(limit=limit, offset=offset)
    return [to_post_response(r, viewer_id=viewer_id) for r in rows]


async def list_user_posts(
    author_id: int,
    *,
    limit: int,
    offset: int,
    viewer_id: int | None = None,
) -> list[schemas.PostResponse]:
    rows = await repository.list_posts_by_author(author_id, limit=limit, offset=offset)
    return [to_post_response(r, viewer_id=viewer_id) for r in rows]


async def get_post(post_id: int, *, viewer_id: int | None = None) -> schemas.PostResponse:
    return to_post_response(await get_post_row(post_id), viewer_id=viewer_id)


async def create_post(
    *,
    author_id: int,
    text: str | None,
    images: list[UploadFile] | None,
) -> schemas.PostResponse:
    cleaned = _clean_text(text)
    image_urls = await uploads.read_images(images)
    _require_content(cleaned, image_urls)

    post_id = await repository.create_post(author_id=author_id, text=cleaned, images=image_urls)
    logger.info("post_created post_id=%s author_id=%s images=%s", post_id, author_id, len(image_urls))
    return await get_post(post_id, viewer_id=author_id)


async def update_post(
    post_id: int,
    *,
    user_id: int,
    text: str | None,
    existing_images: list[int] | None,
    images: list[UploadFile] | None,
) -> schemas.PostResponse:
    """
    `existing_images` lists indexes into the post's current images, in the
    order they should be kept. An index may appear at most once.
    """
    row = await _get_owned_post_row(post_id, user_id=user_id)
    cleaned = _clean_text(text)

    current = list(row.get("images") or [])
    indexes = list(existing_images or [])
    if any(i < 0 or i >= len(current) for i in indexes):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="existing_images must reference images already on the post.",
        )
    if len(set(indexes)) != len(indexes):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Each existing image can only be kept once.",
        )
    kept = [current[i] for i in indexes]

    room = uploads.max_post_images() - len(kept)
    new_urls = await uploads.read_images(images, max_count=max(room, 0))
    merged = kept + new_urls
    _require_content(cleaned, merged)

    updated = await repository.update_post(post_id, text=cleaned, images=merged)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found.")
    logger.info(
        "post_updated post_id=%s kept_images=%s new_images=%s",
        post_id,
        len(kept),
        len(new_urls),
    )
    return await get_post(post_id, viewer_id=user_id)


async def delete_post(post_id: int, *, user_id: int) -> int:
    await _get_owned_post_row(post_id, user_id=user_id)
    deleted = await repository.delete_post(post_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found.")
    logger.info("post_deleted post_id=%s user_id=%s", post_id, user_id)
    return post_id


async def post_image(post_id: int, index: int) -> tuple[str, bytes]:
    row = await get_post_row(post_id)
    images = list(row.get("images") or [])
    if index < 0 or index >= len(images):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found.")
    try:
        return uploads.decode_data_url(images[index])
    except uploads.InvalidDataURL as exc:
        logger.warning("post_image_corrupt post_id=%s index=%s", post_id, index)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found.") from exc


async def _like_state(post_id: int, *, user_id: int) -> schemas.LikeState:
    likes = await repository.list_likes(post_id)
    return schemas.LikeState(
        post_id=post_id,
        liked=user_id in likes,
        likes=likes,
        like_count=len(likes),
    )


async def toggle_like(post_id: int, *, user_id: int) -> schemas.LikeState:
    await get_post_row(post_id)
    liked = await repository.toggle_like(post_id, user_id=user_id)
    logger.info("like_toggled post_id=%s user_id=%s liked=%s", post_id, user_id, liked)
    return await _like_state(post_id, user_id=user_id)


async def set_like(post_id: int, *, user_id: int, liked: bool) -> schemas.LikeState:
    await get_post_row(post_id)
    await repository.set_like(post_id, user_id=user_id, liked=liked)
    return await _like_state(post_id, user_id=user_id)
