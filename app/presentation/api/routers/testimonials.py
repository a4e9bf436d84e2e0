from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....application.services.testimonial_service import TestimonialService
from ....core.config import Settings
from ....core.dependencies import get_settings, get_testimonial_service
from ....domain.models import Testimonial, User
from ...api.dependencies import require_admin_user
from ...api.responses import isoformat, pagination_meta
from ...api.schemas.testimonial import TestimonialAdminUpdate, TestimonialPayload

router = APIRouter(prefix="/api/testimonials", tags=["Testimonials"])

_SORT_COLUMNS = {"createdAt": "created_at", "approvedAt": "approved_at"}


@router.get("/approved")
def list_approved(
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    plan: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    items = service.list_approved(
        rating=rating,
        plan=plan,
        sort_by=_SORT_COLUMNS.get(sort_by, sort_by),
        descending=sort_order.lower() != "asc",
        limit=limit,
    )
    return {"success": True, "count": len(items), "data": [_serialize_testimonial(item) for item in items]}


@router.get("/stats/overview")
def statistics(service: TestimonialService = Depends(get_testimonial_service)) -> Dict[str, Any]:
    return {"success": True, "data": service.statistics()}


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_testimonial(
    payload: TestimonialPayload,
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    testimonial = service.submit(payload.model_dump())
    return {
        "success": True,
        "message": "Testimonial submitted successfully and is pending approval",
        "data": _serialize_testimonial(testimonial),
    }


@router.post("/seed", status_code=status.HTTP_201_CREATED)
def seed_testimonials(
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if settings.is_production:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Seeding is not allowed in production",
        )
    items = service.seed_defaults()
    return {
        "success": True,
        "message": "Default testimonials seeded successfully",
        "count": len(items),
        "data": [_serialize_testimonial(item) for item in items],
    }

@router.get("")
def list_testimonials(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    plan: Optional[str] = None,
    approved: Optional[bool] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    items, total = service.list_testimonials(
        approved=approved,
        rating=rating,
        plan=plan,
        sort_by=_SORT_COLUMNS.get(sort_by, sort_by),
        descending=sort_order.lower() != "asc",
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [_serialize_testimonial(item) for item in items],
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("/{testimonial_id}")
def get_testimonial(
    testimonial_id: int,
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    return {"success": True, "data": _serialize_testimonial(service.get_testimonial(testimonial_id))}


@router.patch("/{testimonial_id}/approve")
def approve_testimonial(
    testimonial_id: int,
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    testimonial = service.approve(testimonial_id)
    return {
        "success": True,
        "message": "Testimonial approved successfully",
        "data": _serialize_testimonial(testimonial),
    }


@router.patch("/{testimonial_id}/reject")
def reject_testimonial(
    testimonial_id: int,
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    testimonial = service.reject(testimonial_id)
    return {
        "success": True,
        "message": "Testimonial rejected successfully",
        "data": _serialize_testimonial(testimonial),
    }


@router.put("/{testimonial_id}")
def update_testimonial(
    testimonial_id: int,
    payload: TestimonialAdminUpdate,
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    testimonial = service.update(testimonial_id, payload.model_dump())
    return {
        "success": True,
        "message": "Testimonial updated successfully",
        "data": _serialize_testimonial(testimonial),
    }


@router.delete("/{testimonial_id}")
def delete_testimonial(
    testimonial_id: int,
    _: User = Depends(require_admin_user),
    service: TestimonialService = Depends(get_testimonial_service),
) -> Dict[str, Any]:
    deleted = service.delete(testimonial_id)
    return {"success": True, "message": "Testimonial deleted successfully", "data": {"id": deleted.id}}


def _serialize_testimonial(testimonial: Testimonial) -> Dict[str, Any]:
    return {
        "id": testimonial.id,
        "name": testimonial.name,
        "message": testimonial.message,
        "rating": testimonial.rating,
        "starDisplay": testimonial.star_display(),
        "email": testimonial.email,
        "plan": testimonial.plan,
        "location": testimonial.location,
        "isApproved": testimonial.is_approved,
        "isFeatured": testimonial.is_featured,
        "approvedAt": isoformat(testimonial.approved_at),
        "adminNotes": testimonial.admin_notes,
        "createdAt": isoformat(testimonial.created_at),
        "updatedAt": isoformat(testimonial.updated_at),
    }
