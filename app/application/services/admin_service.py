"""Administrative use cases: account moderation, statistics and analytics."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...domain.models import Subscription, User
from ...domain.models.subscription import STATUS_ACTIVE, STATUS_CANCELLED
from ...domain.models.user import ROLE_ADMIN, ROLE_USER, ROLES
from ...domain.ports.persistence import PersistenceGateway
from .subscription_service import as_utc, plan_statistics, status_counts
from .user_service import UserService

logger = logging.getLogger(__name__)

GROUP_BY_OPTIONS = ("day", "week", "month")


class AdminService:
    """Operations reserved for administrators."""

    RECENT_WINDOW = timedelta(days=30)

    def __init__(self, persistence: PersistenceGateway, user_service: UserService) -> None:
        self._persistence = persistence
        self._users = user_service

    # Users --------------------------------------------------------------
    def list_users(
        self,
        *,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        return self._persistence.list_users(
            role=role,
            is_active=is_active,
            search=search,
            limit=limit,
            offset=(page - 1) * limit,
        )

    def get_user(self, user_id: int) -> Tuple[User, int]:
        user = self._users.get_by_id(user_id)
        return user, self._persistence.count_subscriptions(user_id=user.id)

    def create_user(self, full_name: str, email: str, password: str, role: str = ROLE_USER) -> User:
        return self._users.register(full_name, email, password, role=role)

    def set_user_active(self, user_id: int, is_active: bool) -> User:
        self._users.get_by_id(user_id)
        user = self._persistence.update_user(user_id, is_active=is_active)
        logger.info("User %s %s", user_id, "activated" if is_active else "deactivated")
        return user

    def set_user_role(self, actor: User, user_id: int, role: str) -> User:
        if role not in ROLES:
            raise ValueError("Role must be either user or admin")
        if actor.id == user_id and role != ROLE_ADMIN:
            raise ValueError("You cannot change your own role from admin to user")
        self._users.get_by_id(user_id)
        user = self._persistence.update_user(user_id, role=role)
        logger.info("User %s role changed to %s by %s", user_id, role, actor.id)
        return user

    def delete_user(self, actor: User, user_id: int) -> User:
        if actor.id == user_id:
            raise ValueError("You cannot delete your own account")
        user = self._users.get_by_id(user_id)
        removed = self._persistence.delete_subscriptions_for_user(user_id)
        self._persistence.delete_user(user_id)
        logger.info("User %s deleted by %s together with %s subscriptions", user_id, actor.id, removed)
        return user

    # Statistics -----------------------------------------------------------
    def statistics(self) -> Dict[str, Any]:
        now = self._now()
        since = now - self.RECENT_WINDOW
        users, total_users = self._persistence.list_users()
        subscriptions = self._all_subscriptions()

        active_users = sum(1 for user in users if user.is_active)
        recent_users = sum(1 for user in users if user.created_at >= since)
        recent_subscriptions = sum(1 for sub in subscriptions if _created_between(sub, since, now))
        return {
            "users": {
                "totalUsers": total_users,
                "activeUsers": active_users,
                "adminUsers": sum(1 for user in users if user.is_admin),
                "recentUsers": recent_users,
                "inactiveUsers": total_users - active_users,
            },
            "subscriptions": {
                "planStatistics": plan_statistics(subscriptions),
                "totalRevenue": _revenue(sub for sub in subscriptions if sub.status == STATUS_ACTIVE),
                "recentSubscriptions": recent_subscriptions,
            },
            "activity": {
                "recentUsers": recent_users,
                "recentSubscriptions": recent_subscriptions,
                "period": "Last 30 days",
            },
            "lastUpdated": now.isoformat(),
        }

    def analytics_overview(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = self._now()
        start, end = self._date_range(start_date, end_date, default_days=30)
        subscriptions = self._all_subscriptions()
        in_range = [sub for sub in subscriptions if _created_between(sub, start, end)]
        active_in_range = [sub for sub in in_range if sub.status == STATUS_ACTIVE]

        # Approximation: active records touched in range that were once cancelled or paused.
        reactivations = sum(
            1
            for sub in subscriptions
            if sub.status == STATUS_ACTIVE
            and sub.updated_at is not None
            and start <= sub.updated_at <= end
            and (sub.cancellation_date is not None or sub.pause_periods)
        )
        counts = status_counts(subscriptions)
        chart_start = now - timedelta(days=7)
        trend_items = [sub for sub in subscriptions if _created_between(sub, chart_start, end)]

        return {
            "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "metrics": {
                "newSubscriptions": len(in_range),
                "monthlyRecurringRevenue": _revenue(active_in_range),
                "reactivations": reactivations,
                "activeSubscriptions": counts[STATUS_ACTIVE],
            },
            "additionalMetrics": {
                "totalSubscriptions": len(subscriptions),
                "pausedSubscriptions": counts["paused"],
                "cancelledSubscriptions": counts[STATUS_CANCELLED],
                "planDistribution": _plan_distribution(in_range),
                "dailyTrends": _grouped_revenue(trend_items, "day", lambda sub: sub.created_at),
            },
            "lastUpdated": now.isoformat(),
        }

    def revenue_analytics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        group_by: str = "month",
    ) -> Dict[str, Any]:
        if group_by not in GROUP_BY_OPTIONS:
            group_by = "month"
        start, end = self._date_range(start_date, end_date, default_days=90)
        in_range = [sub for sub in self._all_subscriptions() if _created_between(sub, start, end)]

        buckets: Dict[Tuple[Tuple[str, int], ...], Dict[str, int]] = {}
        for sub in in_range:
            key = _group_key(sub.created_at, group_by)
            bucket = buckets.setdefault(
                key,
                {"totalRevenue": 0, "subscriptionCount": 0, "activeRevenue": 0, "activeCount": 0},
            )
            bucket["totalRevenue"] += sub.total_price
            bucket["subscriptionCount"] += 1
            if sub.status == STATUS_ACTIVE:
                bucket["activeRevenue"] += sub.total_price
                bucket["activeCount"] += 1

        revenue_data = [{"period": dict(key), **values} for key, values in sorted(buckets.items())]
        return {
            "revenueData": revenue_data,
            "groupBy": group_by,
            "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        }

    def subscription_analytics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        start, end = self._date_range(start_date, end_date, default_days=30)
        subscriptions = self._all_subscriptions()

        by_status: Dict[str, List[int]] = defaultdict(list)
        for sub in subscriptions:
            by_status[sub.status].append(sub.total_price)
        status_distribution = [
            {"status": status, "count": len(prices), "totalRevenue": sum(prices)}
            for status, prices in sorted(by_status.items())
        ]

        in_range = [sub for sub in subscriptions if _created_between(sub, start, end)]
        plan_popularity = [
            {**entry, "avgPrice": round(entry["revenue"] / entry["count"], 2)}
            for entry in _plan_distribution(in_range)
        ]

        churned = [
            sub
            for sub in subscriptions
            if sub.status == STATUS_CANCELLED
            and sub.cancellation_date is not None
            and start <= sub.cancellation_date <= end
        ]
        churn: Dict[Tuple[Tuple[str, int], ...], Dict[str, int]] = {}
        for sub in churned:
            key = _group_key(sub.cancellation_date, "month")
            entry = churn.setdefault(key, {"churnCount": 0, "lostRevenue": 0})
            entry["churnCount"] += 1
            entry["lostRevenue"] += sub.total_price

        return {
            "statusDistribution": status_distribution,
            "planPopularity": plan_popularity,
            "churnData": [{"period": dict(key), **values} for key, values in sorted(churn.items())],
            "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        }

    # Helpers --------------------------------------------------------------
    def _all_subscriptions(self) -> List[Subscription]:
        items, _ = self._persistence.list_subscriptions()
        return items

    def _date_range(
        self,
        start_date: Optional[datetime],
        end_date: Optional[datetime],
        *,
        default_days: int,
    ) -> Tuple[datetime, datetime]:
        now = self._now()
        start = as_utc(start_date) if start_date else now - timedelta(days=default_days)
        end = as_utc(end_date) if end_date else now
        end = end.replace(hour=23, minute=59, second=59, microsecond=999999)
        return start, end

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)


def _created_between(sub: Subscription, start: datetime, end: datetime) -> bool:
    return sub.created_at is not None and start <= sub.created_at <= end


def _revenue(subscriptions: Iterable[Subscription]) -> int:
    return sum(sub.total_price for sub in subscriptions)


def _plan_distribution(subscriptions: Iterable[Subscription]) -> List[Dict[str, Any]]:
    grouped: Dict[str, Dict[str, int]] = {}
    for sub in subscriptions:
        entry = grouped.setdefault(sub.plan, {"count": 0, "revenue": 0})
        entry["count"] += 1
        entry["revenue"] += sub.total_price
    ordered = sorted(grouped.items(), key=lambda item: (-item[1]["count"], item[0]))
    return [{"plan": plan, **values} for plan, values in ordered]


def _group_key(moment: datetime, group_by: str) -> Tuple[Tuple[str, int], ...]:
    if group_by == "day":
        return (("year", moment.year), ("month", moment.month), ("day", moment.day))
    if group_by == "week":
        # Sunday-based week number, 0-53
        return (("year", moment.year), ("week", int(moment.strftime("%U"))))
    return (("year", moment.year), ("month", moment.month))


def _grouped_revenue(subscriptions, group_by, moment_of) -> List[Dict[str, Any]]:
    buckets: Dict[Tuple[Tuple[str, int], ...], Dict[str, int]] = {}
    for sub in subscriptions:
        key = _group_key(moment_of(sub), group_by)
        entry = buckets.setdefault(key, {"count": 0, "revenue": 0})
        entry["count"] += 1
        entry["revenue"] += sub.total_price
    return [{"period": dict(key), **values} for key, values in sorted(buckets.items())]
