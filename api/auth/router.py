"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from core.responses import ok

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


def _client_meta(request: Request) -> dict[str, str | None]:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: schemas.RegisterRequest, request: Request) -> dict:
    result = await service.register(payload, **_client_meta(request))
    return ok(user=result.user, tokens=result.tokens)


@router.post("/login")
async def login(payload: schemas.LoginRequest, request: Request) -> dict:
    result = await service.login(payload, **_client_meta(request))
    return ok(user=result.user, tokens=result.tokens)


@router.post("/refresh")
async def refresh(payload: schemas.RefreshRequest, request: Request) -> dict:
    tokens = await service.refresh_tokens(payload, **_client_meta(request))
    return ok(tokens=tokens)


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest | None = None,
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    result = await service.logout(payload or schemas.LogoutRequest(), current_user_id=int(current_user["id"]))
    return ok(**result)


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> dict:
    return ok(user=service.to_user_response(current_user))
