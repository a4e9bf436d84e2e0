from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....application.services.admin_service import AdminService
from ....core.dependencies import get_admin_service
from ....domain.errors import ConflictError
from ....domain.models import User
from ...api.dependencies import require_admin_user
from ...api.responses import isoformat, pagination_meta
from ...api.schemas.admin import AdminUserCreateRequest, UserRoleRequest, UserStatusRequest

router = APIRouter(prefix="/api/admin", tags=["Administration"])


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    users, total = service.list_users(
        role=role,
        is_active=is_active,
        search=search,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [_serialize_user(user) for user in users],
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    user, subscription_count = service.get_user(user_id)
    return {
        "success": True,
        "data": {**_serialize_user(user), "subscriptionCount": subscription_count},
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreateRequest,
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    try:
        user = service.create_user(payload.full_name, payload.email, payload.password, payload.role)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "User created successfully", "data": _serialize_user(user)}


@router.patch("/users/{user_id}/status")
def set_user_status(
    user_id: int,
    payload: UserStatusRequest,
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    user = service.set_user_active(user_id, payload.is_active)
    return {
        "success": True,
        "message": f"User {'activated' if user.is_active else 'deactivated'} successfully",
        "data": _serialize_user(user),
    }


@router.patch("/users/{user_id}/role")
def set_user_role(
    user_id: int,
    payload: UserRoleRequest,
    admin: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    try:
        user = service.set_user_role(admin, user_id, payload.role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {
        "success": True,
        "message": f"User role updated to {user.role} successfully",
        "data": _serialize_user(user),
    }


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    try:
        deleted = service.delete_user(admin, user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"success": True, "message": "User deleted successfully", "data": {"id": deleted.id}}


@router.get("/stats")
def statistics(
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.statistics()}


@router.get("/analytics/overview")
def analytics_overview(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.analytics_overview(start_date, end_date)}


@router.get("/analytics/revenue")
def revenue_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    group_by: str = Query("month", alias="groupBy"),
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.revenue_analytics(start_date, end_date, group_by)}


@router.get("/analytics/subscriptions")
def subscription_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    _: User = Depends(require_admin_user),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.subscription_analytics(start_date, end_date)}


def _serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "role": user.role,
        "isActive": user.is_active,
        "lastLogin": isoformat(user.last_login),
        "loginAttempts": user.login_attempts,
        "lockUntil": isoformat(user.lock_until),
        "createdAt": isoformat(user.created_at),
        "updatedAt": isoformat(user.updated_at),
    }
