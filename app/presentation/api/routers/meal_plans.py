from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....application.services.meal_plan_service import MealPlanService
from ....core.config import Settings
from ....core.dependencies import get_meal_plan_service, get_settings
from ....domain.models import MealPlan, User
from ....domain.pricing import format_price
from ...api.dependencies import require_admin_user
from ...api.responses import isoformat
from ...api.schemas.meal_plan import MealPlanPayload, MealPlanStatusRequest

router = APIRouter(prefix="/api/meal-plans", tags=["Meal Plans"])

_SORT_COLUMNS = {"planType": "plan_type", "createdAt": "created_at"}


@router.get("")
def list_meal_plans(
    plan_type: Optional[str] = Query(None, alias="planType"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    active: Optional[bool] = None,
    sort_by: str = Query("planType", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    plans = service.list_meal_plans(
        plan_type=plan_type,
        active=active,
        min_price=min_price,
        max_price=max_price,
        sort_by=_SORT_COLUMNS.get(sort_by, sort_by),
        descending=sort_order.lower() == "desc",
    )
    return {
        "success": True,
        "count": len(plans),
        "data": [_serialize_meal_plan(plan, settings) for plan in plans],
    }


@router.get("/type/{plan_type}")
def list_by_type(
    plan_type: str,
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    plans = service.get_by_type(plan_type)
    return {
        "success": True,
        "count": len(plans),
        "data": [_serialize_meal_plan(plan, settings) for plan in plans],
    }


@router.get("/{meal_plan_id}")
def get_meal_plan(
    meal_plan_id: int,
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    return {"success": True, "data": _serialize_meal_plan(service.get_meal_plan(meal_plan_id), settings)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_meal_plan(
    payload: MealPlanPayload,
    _: User = Depends(require_admin_user),
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    plan = service.create_meal_plan(payload.model_dump())
    return {
        "success": True,
        "message": "Meal plan created successfully",
        "data": _serialize_meal_plan(plan, settings),
    }


@router.put("/{meal_plan_id}")
def update_meal_plan(
    meal_plan_id: int,
    payload: MealPlanPayload,
    _: User = Depends(require_admin_user),
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    plan = service.update_meal_plan(meal_plan_id, payload.model_dump())
    return {
        "success": True,
        "message": "Meal plan updated successfully",
        "data": _serialize_meal_plan(plan, settings),
    }


@router.patch("/{meal_plan_id}/status")
def set_meal_plan_status(
    meal_plan_id: int,
    payload: MealPlanStatusRequest,
    _: User = Depends(require_admin_user),
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    plan = service.set_active(meal_plan_id, payload.is_active)
    return {
        "success": True,
        "message": f"Meal plan {'activated' if plan.is_active else 'deactivated'} successfully",
        "data": _serialize_meal_plan(plan, settings),
    }


@router.delete("/{meal_plan_id}")
def delete_meal_plan(
    meal_plan_id: int,
    _: User = Depends(require_admin_user),
    service: MealPlanService = Depends(get_meal_plan_service),
) -> Dict[str, Any]:
    deleted = service.delete_meal_plan(meal_plan_id)
    return {"success": True, "message": "Meal plan deleted successfully", "data": {"id": deleted.id}}


@router.post("/seed", status_code=status.HTTP_201_CREATED)
def seed_meal_plans(
    _: User = Depends(require_admin_user),
    service: MealPlanService = Depends(get_meal_plan_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if settings.is_production:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Seeding is not allowed in production",
        )
    plans = service.seed_defaults()
    return {
        "success": True,
        "message": "Meal plans seeded successfully",
        "count": len(plans),
        "data": [_serialize_meal_plan(plan, settings) for plan in plans],
    }


def _serialize_meal_plan(plan: MealPlan, settings: Settings) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "price": plan.price,
        "formattedPrice": format_price(plan.price, settings.price_locale, settings.price_currency),
        "planType": plan.plan_type,
        "description": plan.description,
        "detailedDescription": plan.detailed_description,
        "features": plan.features,
        "nutritionInfo": plan.nutrition_info,
        "sampleMeals": plan.sample_meals,
        "dietaryInfo": plan.dietary_info,
        "image": plan.image,
        "isActive": plan.is_active,
        "popularity": plan.popularity,
        "createdAt": isoformat(plan.created_at),
        "updatedAt": isoformat(plan.updated_at),
    }
