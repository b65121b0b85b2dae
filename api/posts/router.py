"""
Post and like API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from auth import dependencies as auth_dependencies
from core.responses import ok

from . import service

router = APIRouter(prefix="/posts")


def _viewer_id(user: dict | None) -> int | None:
    return int(user["id"]) if user is not None else None


@router.get("")
async def list_posts(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    posts = await service.list_posts(limit=limit, offset=offset, viewer_id=_viewer_id(viewer))
    return ok(posts=posts, limit=limit, offset=offset, count=len(posts))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    text: str = Form(default=""),
    images: list[UploadFile] | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    post = await service.create_post(author_id=int(current_user["id"]), text=text, images=images)
    return ok(post=post)


@router.get("/user/{user_id}")
async def list_user_posts(
    user_id: int,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    posts = await service.list_user_posts(
        user_id,
        limit=limit,
        offset=offset,
        viewer_id=_viewer_id(viewer),
    )
    return ok(posts=posts, limit=limit, offset=offset, count=len(posts))


@router.get("/{post_id}")
async def get_post(
    post_id: int,
    viewer: dict | None = Depends(auth_dependencies.get_optional_user),
) -> dict:
    post = await service.get_post(post_id, viewer_id=_viewer_id(viewer))
    return ok(post=post)


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    text: str = Form(default=""),
    existing_images: list[int] | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    post = await service.update_post(
        post_id,
        user_id=int(current_user["id"]),
        text=text,
        existing_images=existing_images,
        images=images,
    )
    return ok(post=post)


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    deleted_id = await service.delete_post(post_id, user_id=int(current_user["id"]))
    return ok(post_id=deleted_id)


@router.get("/{post_id}/images/{index}")
async def get_post_image(post_id: int, index: int) -> Response:
    media_type, data = await service.post_image(post_id, index)
    return Response(content=data, media_type=media_type)


@router.post("/{post_id}/like")
async def toggle_like(
    post_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    state = await service.toggle_like(post_id, user_id=int(current_user["id"]))
    return ok(**state.model_dump())


@router.put("/{post_id}/like")
async def like(
    post_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    state = await service.set_like(post_id, user_id=int(current_user["id"]), liked=True)
    return ok(**state.model_dump())


@router.delete("/{post_id}/like")
async def unlike(
    post_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    state = await service.set_like(post_id, user_id=int(current_user["id"]), liked=False)
    return ok(**state.model_dump())
