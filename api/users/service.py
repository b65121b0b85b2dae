"""
Profile business logic: public user records, bio edits, profile pictures.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile, status

from auth import repository as auth_repository
from auth import schemas as auth_schemas
from auth import service as auth_service
from core import uploads
from posts import repository as post_repository
from posts import service as post_service

from . import repository, schemas

logger = logging.getLogger(__name__)


async def get_user(user_id: int) -> auth_schemas.UserResponse:
    row = await auth_repository.get_user_by_id(user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return auth_service.to_user_response(row)


async def get_profile(
    user_id: int,
    *,
    limit: int,
    offset: int,
    viewer_id: int | None = None,
) -> dict:
    user = await get_user(user_id)
    posts = await post_service.list_user_posts(user_id, limit=limit, offset=offset, viewer_id=viewer_id)
    post_count = await post_repository.count_posts_by_author(user_id)
    return {"user": user, "posts": posts, "post_count": post_count}


async def update_profile(user_id: int, payload: schemas.UpdateProfileRequest) -> auth_schemas.UserResponse:
    if payload.name is None and payload.bio is None:
        return await get_user(user_id)

    row = await repository.update_profile(user_id, name=payload.name, bio=payload.bio)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    logger.info("profile_updated user_id=%s", user_id)
    return auth_service.to_user_response(row)


async def set_profile_picture(user_id: int, image: UploadFile | None) -> auth_schemas.UserResponse:
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image file provided.")

    data_url = await uploads.read_image(image)
    row = await repository.set_profile_picture(user_id, data_url)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    logger.info("profile_picture_updated user_id=%s bytes=%s", user_id, len(data_url))
    return auth_service.to_user_response(row)


async def profile_picture(user_id: int) -> tuple[str, bytes]:
    user = await get_user(user_id)
    if not user.profile_picture:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User has no profile picture.")
    try:
        return uploads.decode_data_url(user.profile_picture)
    except uploads.InvalidDataURL as exc:
        logger.warning("profile_picture_corrupt user_id=%s", user_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User has no profile picture.") from exc
