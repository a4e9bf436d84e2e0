"""Registration, login and token endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status

from ....application.services.user_service import UserService
from ....core.config import Settings
from ....core.dependencies import get_settings, get_user_service
from ....domain.errors import ConflictError
from ....domain.models import User
from ...api.dependencies import get_current_user, get_optional_user
from ...api.responses import isoformat
from ...api.schemas.auth import LoginRequest, ProfileUpdateRequest, RefreshRequest, RegisterRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

REFRESH_COOKIE = "refreshToken"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    response: Response,
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    try:
        user = user_service.register(payload.full_name, payload.email, payload.password)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    tokens = user_service.create_tokens(user)
    _set_refresh_cookie(response, tokens["refresh_token"], settings)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {
            "user": _serialize_user(user),
            "accessToken": tokens["access_token"],
            "expiresIn": tokens["expires_in"],
        },
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    response: Response,
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    user = user_service.authenticate(payload.email, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email or password is incorrect",
        )
    tokens = user_service.create_tokens(user)
    _set_refresh_cookie(response, tokens["refresh_token"], settings)
    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "user": _serialize_user(user),
            "accessToken": tokens["access_token"],
            "expiresIn": tokens["expires_in"],
        },
    }


@router.post("/logout")
def logout(response: Response, user: User = Depends(get_current_user)) -> Dict[str, Any]:
    response.delete_cookie(REFRESH_COOKIE)
    logger.info("User %s logged out", user.id)
    return {"success": True, "message": "Logout successful"}


@router.post("/refresh")
def refresh(
    response: Response,
    payload: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    token = refresh_cookie or (payload.refresh_token if payload else None)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token not provided")
    tokens = user_service.refresh(token)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is invalid or expired",
        )
    _set_refresh_cookie(response, tokens["refresh_token"], settings)
    return {
        "success": True,
        "message": "Token refreshed successfully",
        "data": {"accessToken": tokens["access_token"], "expiresIn": tokens["expires_in"]},
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return {"success": True, "data": {"user": _serialize_user(user)}}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    try:
        updated = user_service.update_profile(user.id, full_name=payload.full_name, email=payload.email)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {"user": _serialize_user(updated)},
    }


@router.get("/verify")
def verify(user: Optional[User] = Depends(get_optional_user)) -> Dict[str, Any]:
    if user is None:
        return {"success": True, "valid": False, "message": "No valid token provided"}
    return {
        "success": True,
        "valid": True,
        "data": {
            "user": {
                "id": user.id,
                "fullName": user.full_name,
                "email": user.email,
                "role": user.role,
            }
        },
    }


def _set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=settings.jwt_refresh_exp_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "role": user.role,
        "isActive": user.is_active,
        "lastLogin": isoformat(user.last_login),
        "createdAt": isoformat(user.created_at),
        "updatedAt": isoformat(user.updated_at),
    }
