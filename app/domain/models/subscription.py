"""Subscription domain model: plan selection, pricing and pause history."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_ACTIVE, STATUS_PAUSED, STATUS_CANCELLED)


@dataclass(frozen=True, slots=True)
class PausePeriod:
    """Closed interval ``[start_date, end_date]`` during which deliveries stop."""

    start_date: datetime
    end_date: datetime
    reason: Optional[str]
    created_at: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start_date <= moment <= self.end_date

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return (
            self.contains(start)
            or self.contains(end)
            or (start <= self.start_date and end >= self.end_date)
        )

    @property
    def duration(self) -> timedelta:
        return self.end_date - self.start_date


@dataclass(slots=True)
class Subscription:
    """
    Subscription entity for a customer's recurring meal-kit order.

    Attributes:
        id: Unique identifier (``None`` until persisted)
        user_id: Owner of the subscription
        name: Recipient full name
        phone: Recipient phone number
        plan: Plan tier (diet, protein or royal)
        meal_types: Selected meal types in canonical order
        delivery_days: Selected delivery days in canonical order
        allergies: Free-text allergy notes
        total_price: Monthly price derived from plan, meal types and days
        status: active, paused or cancelled
        pause_periods: Every pause ever requested, oldest first
        cancellation_date: When the subscription was cancelled
        cancellation_reason: Why the subscription was cancelled
        start_date: When the subscription started
        end_date: Optional scheduled end
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: Optional[int]
    user_id: Optional[int]
    name: str
    phone: str
    plan: str
    meal_types: Tuple[str, ...]
    delivery_days: Tuple[str, ...]
    allergies: str = ""
    total_price: int = 0
    status: str = STATUS_ACTIVE
    pause_periods: Tuple[PausePeriod, ...] = field(default_factory=tuple)
    cancellation_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def is_cancelled(self) -> bool:
        return self.status == STATUS_CANCELLED

    def current_pause_period(self, now: datetime) -> Optional[PausePeriod]:
        """First pause period covering ``now`` while the subscription is paused."""
        if self.status != STATUS_PAUSED:
            return None
        for period in self.pause_periods:
            if period.contains(now):
                return period
        return None

    def is_currently_paused(self, now: datetime) -> bool:
        return self.current_pause_period(now) is not None

    def next_billing_date(self, now: datetime) -> Optional[datetime]:
        """One calendar month from ``now``, pushed back by an ongoing pause."""
        if self.is_cancelled():
            return None
        next_date = add_months(now, 1)
        current = self.current_pause_period(now)
        if current is not None:
            next_date += current.duration
        return next_date

    def pause_history(self) -> List[PausePeriod]:
        return list(self.pause_periods)

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} user_id={self.user_id} plan={self.plan} status={self.status}>"


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of the target month."""
    month = moment.month - 1 + months
    year = moment.year + month // 12
    month = month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
