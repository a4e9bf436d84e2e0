"""Use cases for subscription management.

Each mutating call loads the record, applies a pure lifecycle function and
persists the result while holding a lock dedicated to that subscription, so
concurrent pause/cancel requests on the same record cannot lose updates.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ...domain import lifecycle
from ...domain.access import ensure_access
from ...domain.errors import NotFoundError
from ...domain.models import Subscription, User
from ...domain.models.subscription import STATUS_ACTIVE, STATUS_CANCELLED, STATUS_PAUSED
from ...domain.ports.persistence import SubscriptionRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SubscriptionService:
    """Coordinates subscription persistence, ownership checks and lifecycle rules."""

    def __init__(self, repository: SubscriptionRepository, clock: Optional[Clock] = None) -> None:
        self._repository = repository
        self._clock = clock or _utcnow
        self._record_locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    # Queries ----------------------------------------------------------
    def list_subscriptions(
        self,
        actor: User,
        *,
        plan: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Subscription], int]:
        user_id = None if actor.is_admin else actor.id
        return self._repository.list_subscriptions(
            user_id=user_id,
            plan=plan,
            status=status,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=(page - 1) * limit,
        )

    def get_subscription(self, actor: User, subscription_id: int) -> Subscription:
        subscription = self._require(subscription_id)
        ensure_access(actor.role, actor.id, subscription.user_id)
        return subscription

    def stats_overview(self) -> Dict[str, Any]:
        subscriptions, total = self._repository.list_subscriptions()
        active = [item for item in subscriptions if item.status == STATUS_ACTIVE]
        return {
            "totalSubscriptions": total,
            "activeSubscriptions": len(active),
            "totalRevenue": sum(item.total_price for item in active),
            "planStatistics": plan_statistics(subscriptions),
            "lastUpdated": self.now().isoformat(),
        }

    # Commands ---------------------------------------------------------
    def create_subscription(
        self,
        actor: User,
        *,
        name: str,
        phone: str,
        plan: str,
        meal_types: Iterable[str],
        delivery_days: Iterable[str],
        allergies: str = "",
    ) -> Subscription:
        subscription = lifecycle.create_subscription(
            user_id=actor.id,
            name=name,
            phone=phone,
            plan=plan,
            meal_types=meal_types,
            delivery_days=delivery_days,
            allergies=allergies,
            now=self.now(),
        )
        saved = self._repository.save_subscription(subscription)
        logger.info(
            "Subscription %s created for user %s (%s, price %s)",
            saved.id,
            actor.id,
            saved.plan,
            saved.total_price,
        )
        return saved

    def update_subscription(
        self,
        actor: User,
        subscription_id: int,
        *,
        name: str,
        phone: str,
        plan: str,
        meal_types: Iterable[str],
        delivery_days: Iterable[str],
        allergies: str = "",
    ) -> Subscription:
        return self._mutate(
            actor,
            subscription_id,
            lambda sub, now: lifecycle.update_selection(
                sub,
                plan=plan,
                meal_types=meal_types,
                delivery_days=delivery_days,
                name=name,
                phone=phone,
                allergies=allergies,
                now=now,
            ),
            "updated",
        )

    def pause_subscription(
        self,
        actor: User,
        subscription_id: int,
        *,
        start_date: datetime,
        end_date: datetime,
        reason: Optional[str] = None,
    ) -> Subscription:
        start, end = as_utc(start_date), as_utc(end_date)
        return self._mutate(
            actor,
            subscription_id,
            lambda sub, now: lifecycle.pause(sub, start_date=start, end_date=end, reason=reason, now=now),
            "paused",
        )

    def cancel_subscription(
        self,
        actor: User,
        subscription_id: int,
        *,
        reason: Optional[str] = None,
    ) -> Subscription:
        return self._mutate(
            actor,
            subscription_id,
            lambda sub, now: lifecycle.cancel(sub, reason=reason, now=now),
            "cancelled",
        )

    def reactivate_subscription(self, actor: User, subscription_id: int) -> Subscription:
        return self._mutate(
            actor,
            subscription_id,
            lambda sub, now: lifecycle.reactivate(sub, now=now),
            "reactivated",
        )

    def set_status(
        self,
        actor: User,
        subscription_id: int,
        status: str,
        *,
        reason: Optional[str] = None,
    ) -> Subscription:
        return self._mutate(
            actor,
            subscription_id,
            lambda sub, now: lifecycle.apply_status(sub, status, now=now, reason=reason),
            f"set to {status}",
        )

    def delete_subscription(self, actor: User, subscription_id: int) -> Subscription:
        with self._lock_for(subscription_id):
            subscription = self._require(subscription_id)
            ensure_access(actor.role, actor.id, subscription.user_id)
            self._repository.delete_subscription(subscription_id)
        with self._registry_lock:
            self._record_locks.pop(subscription_id, None)
        logger.info("Subscription %s deleted by user %s", subscription_id, actor.id)
        return subscription

    def activate_due_pauses(self) -> List[Subscription]:
        """Flip active subscriptions whose scheduled pause has started; meant for a periodic job."""
        changed: List[Subscription] = []
        candidates, _ = self._repository.list_subscriptions(status=STATUS_ACTIVE)
        for candidate in candidates:
            if not candidate.pause_periods:
                continue
            with self._lock_for(candidate.id):
                current = self._repository.get_subscription(candidate.id)
                if current is None:
                    continue
                updated = lifecycle.activate_due_pause(current, self.now())
                if updated is not current:
                    changed.append(self._repository.save_subscription(updated))
                    logger.info("Scheduled pause took effect for subscription %s", current.id)
        return changed

    # Helpers ----------------------------------------------------------
    def _mutate(
        self,
        actor: User,
        subscription_id: int,
        operation: Callable[[Subscription, datetime], Subscription],
        action: str,
    ) -> Subscription:
        with self._lock_for(subscription_id):
            subscription = self._require(subscription_id)
            ensure_access(actor.role, actor.id, subscription.user_id)
            updated = operation(subscription, self.now())
            saved = self._repository.save_subscription(updated)
        logger.info("Subscription %s %s by user %s (status=%s)", saved.id, action, actor.id, saved.status)
        return saved

    def _lock_for(self, subscription_id: int) -> threading.Lock:
        with self._registry_lock:
            return self._record_locks[subscription_id]

    def _require(self, subscription_id: int) -> Subscription:
        subscription = self._repository.get_subscription(subscription_id)
        if subscription is None:
            raise NotFoundError(f"No subscription found with ID: {subscription_id}")
        return subscription


def plan_statistics(subscriptions: Iterable[Subscription]) -> List[Dict[str, Any]]:
    grouped: Dict[str, List[int]] = defaultdict(list)
    for item in subscriptions:
        grouped[item.plan].append(item.total_price)
    return [
        {
            "plan": plan,
            "count": len(prices),
            "averagePrice": round(sum(prices) / len(prices), 2),
        }
        for plan, prices in sorted(grouped.items())
    ]


def status_counts(subscriptions: Iterable[Subscription]) -> Dict[str, int]:
    counts = {STATUS_ACTIVE: 0, STATUS_PAUSED: 0, STATUS_CANCELLED: 0}
    for item in subscriptions:
        counts[item.status] = counts.get(item.status, 0) + 1
    return counts
