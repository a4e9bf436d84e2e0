from __future__ import annotations

from typing import Any, List, Optional, Protocol, Tuple

from ..models import MealPlan, Subscription, Testimonial, User


class UserRepository(Protocol):
    """Persistence functions related to customer and admin accounts."""

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    def create_user(self, full_name: str, email: str, password_hash: str, role: str) -> User:
        ...

    def update_user(self, user_id: int, **fields: Any) -> User:
        ...

    def delete_user(self, user_id: int) -> bool:
        ...

    def list_users(
        self,
        *,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[User], int]:
        ...


class SubscriptionRepository(Protocol):
    """Persistence functions for subscription documents."""

    def save_subscription(self, subscription: Subscription) -> Subscription:
        ...

    def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        ...

    def list_subscriptions(
        self,
        *,
        user_id: Optional[int] = None,
        plan: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Subscription], int]:
        ...

    def delete_subscription(self, subscription_id: int) -> bool:
        ...

    def delete_subscriptions_for_user(self, user_id: int) -> int:
        ...

    def count_subscriptions(self, **filters: Any) -> int:
        ...


class MealPlanRepository(Protocol):
    def save_meal_plan(self, meal_plan: MealPlan) -> MealPlan:
        ...

    def get_meal_plan(self, meal_plan_id: int) -> Optional[MealPlan]:
        ...

    def list_meal_plans(
        self,
        *,
        plan_type: Optional[str] = None,
        is_active: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "plan_type",
        descending: bool = False,
    ) -> List[MealPlan]:
        ...

    def delete_meal_plan(self, meal_plan_id: int) -> bool:
        ...

    def clear_meal_plans(self) -> None:
        ...


class TestimonialRepository(Protocol):
    def save_testimonial(self, testimonial: Testimonial) -> Testimonial:
        ...

    def get_testimonial(self, testimonial_id: int) -> Optional[Testimonial]:
        ...

    def list_testimonials(
        self,
        *,
        is_approved: Optional[bool] = None,
        rating: Optional[int] = None,
        plan: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Testimonial], int]:
        ...

    def delete_testimonial(self, testimonial_id: int) -> bool:
        ...

    def clear_testimonials(self) -> None:
        ...


class PersistenceGateway(
    UserRepository,
    SubscriptionRepository,
    MealPlanRepository,
    TestimonialRepository,
    Protocol,
):
    """Composite gateway combining every persistence concern used by the app."""

    def close(self) -> None:
        ...
