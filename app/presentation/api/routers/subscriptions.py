from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from ....application.services.subscription_service import SubscriptionService
from ....core.config import Settings
from ....core.dependencies import get_settings, get_subscription_service
from ....domain.models import PausePeriod, Subscription, User
from ....domain.pricing import format_price
from ...api.dependencies import get_current_user, require_admin_user
from ...api.responses import isoformat, pagination_meta
from ...api.schemas.subscription import (
    CancelRequest,
    PauseRequest,
    StatusUpdateRequest,
    SubscriptionPayload,
)

router = APIRouter(prefix="/api/subscriptions", tags=["Subscriptions"])


@router.get("")
def list_subscriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    plan: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    items, total = service.list_subscriptions(
        user,
        plan=plan,
        status=status_filter,
        sort_by=_column(sort_by),
        descending=sort_order.lower() != "asc",
        page=page,
        limit=limit,
    )
    now = service.now()
    return {
        "success": True,
        "data": [_serialize_subscription(item, settings, now) for item in items],
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("/stats/overview")
def stats_overview(
    _: User = Depends(require_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    return {"success": True, "data": service.stats_overview()}


@router.get("/{subscription_id}")
def get_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.get_subscription(user, subscription_id)
    return {"success": True, "data": _serialize_subscription(subscription, settings, service.now())}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionPayload,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.create_subscription(
        user,
        name=payload.name,
        phone=payload.phone,
        plan=payload.plan,
        meal_types=payload.meal_types,
        delivery_days=payload.delivery_days,
        allergies=payload.allergies,
    )
    return {
        "success": True,
        "message": "Subscription created successfully",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.put("/{subscription_id}")
def update_subscription(
    subscription_id: int,
    payload: SubscriptionPayload,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.update_subscription(
        user,
        subscription_id,
        name=payload.name,
        phone=payload.phone,
        plan=payload.plan,
        meal_types=payload.meal_types,
        delivery_days=payload.delivery_days,
        allergies=payload.allergies,
    )
    return {
        "success": True,
        "message": "Subscription updated successfully",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.patch("/{subscription_id}/status")
def update_status(
    subscription_id: int,
    payload: StatusUpdateRequest,
    user: User = Depends(require_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.set_status(user, subscription_id, payload.status, reason=payload.reason)
    return {
        "success": True,
        "message": f"Subscription status updated to {subscription.status}",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.patch("/{subscription_id}/pause")
def pause_subscription(
    subscription_id: int,
    payload: PauseRequest,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.pause_subscription(
        user,
        subscription_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    return {
        "success": True,
        "message": "Subscription paused successfully",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.patch("/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: int,
    payload: Optional[CancelRequest] = None,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.cancel_subscription(
        user,
        subscription_id,
        reason=payload.reason if payload else None,
    )
    return {
        "success": True,
        "message": "Subscription cancelled successfully",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.patch("/{subscription_id}/reactivate")
def reactivate_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    subscription = service.reactivate_subscription(user, subscription_id)
    return {
        "success": True,
        "message": "Subscription reactivated successfully",
        "data": _serialize_subscription(subscription, settings, service.now()),
    }


@router.delete("/{subscription_id}")
def delete_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> Dict[str, Any]:
    deleted = service.delete_subscription(user, subscription_id)
    return {
        "success": True,
        "message": "Subscription deleted successfully",
        "data": {"id": deleted.id},
    }


_SORT_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "totalPrice": "total_price",
    "startDate": "start_date",
}


def _column(sort_by: str) -> str:
    return _SORT_COLUMNS.get(sort_by, sort_by)


def _serialize_pause(period: PausePeriod) -> Dict[str, Any]:
    return {
        "startDate": isoformat(period.start_date),
        "endDate": isoformat(period.end_date),
        "reason": period.reason,
        "createdAt": isoformat(period.created_at),
    }


def _serialize_subscription(subscription: Subscription, settings: Settings, now: datetime) -> Dict[str, Any]:
    current_pause = subscription.current_pause_period(now)
    return {
        "id": subscription.id,
        "userId": subscription.user_id,
        "name": subscription.name,
        "phone": subscription.phone,
        "plan": subscription.plan,
        "mealTypes": list(subscription.meal_types),
        "deliveryDays": list(subscription.delivery_days),
        "allergies": subscription.allergies,
        "totalPrice": subscription.total_price,
        "formattedPrice": format_price(
            subscription.total_price, settings.price_locale, settings.price_currency
        ),
        "status": subscription.status,
        "pausePeriods": [_serialize_pause(period) for period in subscription.pause_periods],
        "isCurrentlyPaused": current_pause is not None,
        "currentPausePeriod": _serialize_pause(current_pause) if current_pause else None,
        "nextBillingDate": isoformat(subscription.next_billing_date(now)),
        "cancellationDate": isoformat(subscription.cancellation_date),
        "cancellationReason": subscription.cancellation_reason,
        "startDate": isoformat(subscription.start_date),
        "endDate": isoformat(subscription.end_date),
        "createdAt": isoformat(subscription.created_at),
        "updatedAt": isoformat(subscription.updated_at),
    }
