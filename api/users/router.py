"""
Profile API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from auth import dependencies as auth_dependencies
from core.responses import ok

from . import schemas, service

router = APIRouter(prefix="/users")


@router.put("/me")
async def update_me(
    payload: schemas.UpdateProfileRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    user = await service.update_profile(int(current_user["id"]), payload)
    return ok(user=user)


@router.put("/pfp")
async def update_profile_picture(
    image: UploadFile | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    user = await service.set_profile_picture(int(current_user["id"]), image)
    return ok(user=user)


@router.get("/{user_id}")
async def get_user(user_id: int) -> dict:
    return ok(user=await service.get_user(user_id))


@router.get("/{user_id}/profile")
async def get_profile(
    user_id: int,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    profile = await service.get_profile(
        user_id,
        limit=limit,
        offset=offset,
        viewer_id=int(viewer["id"]) if viewer is not None else None,
    )
    return ok(**profile)


@router.get("/{user_id}/picture")
async def get_profile_picture(user_id: int) -> Response:
    media_type, data = await service.profile_picture(user_id)
    return Response(content=data, media_type=media_type)
