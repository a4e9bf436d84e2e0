"""Subscription lifecycle rules.

Every operation here is a pure function: it validates against the given
subscription and ``now`` and returns a new :class:`Subscription`, or raises a
:class:`~app.domain.errors.SubscriptionError` without touching the input.
``total_price`` is recomputed on every selection change.

A pause whose start date lies in the future is recorded but leaves the status
``active``; nothing flips it to ``paused`` later on its own. Callers that need
that behaviour have to re-evaluate scheduled pauses themselves
(see :func:`activate_due_pause`).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Tuple

from .errors import InvalidConfiguration, InvalidDateRange, InvalidStateTransition, OverlappingPause
from .models.subscription import (
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_PAUSED,
    PausePeriod,
    Subscription,
)
from .pricing import DELIVERY_DAYS, MEAL_TYPES, PLAN_PRICES, compute_total_price

MAX_PAUSE_SPAN = timedelta(days=90)


def normalize_choices(values: Iterable[str], allowed: Sequence[str], label: str) -> Tuple[str, ...]:
    """Lower-case, de-duplicate and order ``values`` by ``allowed``."""
    chosen = {value.strip().lower() for value in values or ()}
    unknown = sorted(chosen.difference(allowed))
    if unknown:
        raise InvalidConfiguration(f"Invalid {label} selected: {', '.join(unknown)}")
    return tuple(item for item in allowed if item in chosen)


def _validated_selection(
    plan: str,
    meal_types: Iterable[str],
    delivery_days: Iterable[str],
) -> Tuple[str, Tuple[str, ...], Tuple[str, ...]]:
    if plan not in PLAN_PRICES:
        raise InvalidConfiguration(f"Plan must be one of: {', '.join(PLAN_PRICES)}")
    meals = normalize_choices(meal_types, MEAL_TYPES, "meal type")
    days = normalize_choices(delivery_days, DELIVERY_DAYS, "delivery day")
    if not meals:
        raise InvalidConfiguration("At least one meal type must be selected")
    if not days:
        raise InvalidConfiguration("At least one delivery day must be selected")
    return plan, meals, days


def create_subscription(
    *,
    user_id: Optional[int],
    name: str,
    phone: str,
    plan: str,
    meal_types: Iterable[str],
    delivery_days: Iterable[str],
    allergies: str = "",
    now: datetime,
) -> Subscription:
    plan, meals, days = _validated_selection(plan, meal_types, delivery_days)
    return Subscription(
        id=None,
        user_id=user_id,
        name=name.strip(),
        phone=phone.strip(),
        plan=plan,
        meal_types=meals,
        delivery_days=days,
        allergies=(allergies or "").strip(),
        total_price=compute_total_price(plan, meals, days),
        status=STATUS_ACTIVE,
        start_date=now,
        created_at=now,
        updated_at=now,
    )


def update_selection(
    subscription: Subscription,
    *,
    plan: str,
    meal_types: Iterable[str],
    delivery_days: Iterable[str],
    now: datetime,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    allergies: Optional[str] = None,
) -> Subscription:
    if subscription.is_cancelled():
        raise InvalidStateTransition("Cancelled subscriptions cannot be modified")
    plan, meals, days = _validated_selection(plan, meal_types, delivery_days)
    return replace(
        subscription,
        plan=plan,
        meal_types=meals,
        delivery_days=days,
        total_price=compute_total_price(plan, meals, days),
        name=name.strip() if name is not None else subscription.name,
        phone=phone.strip() if phone is not None else subscription.phone,
        allergies=allergies.strip() if allergies is not None else subscription.allergies,
        updated_at=now,
    )


def find_overlap(
    periods: Iterable[PausePeriod],
    start: datetime,
    end: datetime,
) -> Optional[PausePeriod]:
    for period in periods:
        if period.overlaps(start, end):
            return period
    return None


def pause(
    subscription: Subscription,
    *,
    start_date: datetime,
    end_date: datetime,
    reason: Optional[str] = None,
    now: datetime,
) -> Subscription:
    """Record a pause period; the status flips to paused only if it starts now or earlier."""
    if subscription.is_cancelled():
        raise InvalidStateTransition("Cannot pause a cancelled subscription")
    if subscription.status == STATUS_PAUSED:
        raise InvalidStateTransition("Subscription is already paused")
    if end_date <= start_date:
        raise InvalidDateRange("End date must be after start date")
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if start_date < start_of_today:
        raise InvalidDateRange("Start date cannot be in the past")
    if end_date - start_date > MAX_PAUSE_SPAN:
        raise InvalidDateRange("Pause period cannot exceed 90 days")
    clash = find_overlap(subscription.pause_periods, start_date, end_date)
    if clash is not None:
        raise OverlappingPause(
            "Pause period overlaps an existing pause from "
            f"{clash.start_date.date().isoformat()} to {clash.end_date.date().isoformat()}"
        )

    period = PausePeriod(
        start_date=start_date,
        end_date=end_date,
        reason=(reason or "").strip() or None,
        created_at=now,
    )
    status = STATUS_PAUSED if start_date <= now else subscription.status
    return replace(
        subscription,
        pause_periods=subscription.pause_periods + (period,),
        status=status,
        updated_at=now,
    )


def activate_due_pause(subscription: Subscription, now: datetime) -> Subscription:
    """Flip an active subscription to paused if one of its scheduled pauses covers ``now``.

    Intended for a periodic job; nothing in the request path calls it implicitly.
    """
    if subscription.status != STATUS_ACTIVE:
        return subscription
    if not any(period.contains(now) for period in subscription.pause_periods):
        return subscription
    return replace(subscription, status=STATUS_PAUSED, updated_at=now)


def cancel(
    subscription: Subscription,
    *,
    reason: Optional[str] = None,
    now: datetime,
) -> Subscription:
    if subscription.is_cancelled():
        raise InvalidStateTransition("Subscription is already cancelled")
    return replace(
        subscription,
        status=STATUS_CANCELLED,
        cancellation_date=now,
        cancellation_reason=(reason or "").strip() or None,
        updated_at=now,
    )


def reactivate(subscription: Subscription, *, now: datetime) -> Subscription:
    """Return to active, dropping any pause period that covers ``now``.

    Past and future pause periods stay in the history untouched.
    """
    if subscription.is_cancelled():
        raise InvalidStateTransition("Cannot reactivate a cancelled subscription")
    if subscription.is_active():
        raise InvalidStateTransition("Subscription is already active")
    remaining = tuple(period for period in subscription.pause_periods if not period.contains(now))
    return replace(
        subscription,
        pause_periods=remaining,
        status=STATUS_ACTIVE,
        updated_at=now,
    )


def apply_status(
    subscription: Subscription,
    status: str,
    *,
    now: datetime,
    reason: Optional[str] = None,
) -> Subscription:
    """Route a raw status change through the matching lifecycle event."""
    if status == STATUS_CANCELLED:
        return cancel(subscription, reason=reason, now=now)
    if status == STATUS_ACTIVE:
        return reactivate(subscription, now=now)
    if status == STATUS_PAUSED:
        raise InvalidStateTransition("Pausing requires a pause period; use the pause operation")
    raise InvalidStateTransition("Status must be active, paused, or cancelled")
