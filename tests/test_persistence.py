"""Tests for the SQLite persistence gateway."""

from datetime import datetime, timezone

import pytest

from app.domain.models import MealPlan, Subscription, Testimonial


def _subscription(user_id, plan="diet", status="active"):
    return Subscription(
        id=None,
        user_id=user_id,
        name="Jane Doe",
        phone="081234567890",
        plan=plan,
        meal_types=("lunch",),
        delivery_days=("monday",),
        total_price=129000,
        status=status,
    )


class TestUsers:
    def test_create_and_lookup(self, persistence):
        user = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        assert persistence.get_user_by_email("jane@example.com").id == user.id
        assert persistence.get_user_by_id(user.id).role == "user"
        assert user.is_active is True
        assert user.login_attempts == 0

    def test_update_fields(self, persistence):
        user = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        lock = datetime(2030, 1, 1, tzinfo=timezone.utc)
        updated = persistence.update_user(user.id, login_attempts=5, lock_until=lock, is_active=False)
        assert updated.login_attempts == 5
        assert updated.lock_until == lock
        assert updated.is_active is False

    def test_update_rejects_unknown_column(self, persistence):
        user = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        with pytest.raises(ValueError):
            persistence.update_user(user.id, password="plain")

    def test_list_filters_and_pagination(self, persistence):
        for index in range(5):
            persistence.create_user(f"User {index}", f"user{index}@example.com", "hash", "user")
        persistence.create_user("Boss", "boss@example.com", "hash", "admin")

        admins, total_admins = persistence.list_users(role="admin")
        assert [user.email for user in admins] == ["boss@example.com"]
        assert total_admins == 1

        page, total = persistence.list_users(limit=2, offset=0)
        assert len(page) == 2 and total == 6

        found, _ = persistence.list_users(search="user3")
        assert [user.email for user in found] == ["user3@example.com"]


class TestSubscriptions:
    def test_filters_and_counts(self, persistence):
        owner = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        persistence.save_subscription(_subscription(owner.id))
        persistence.save_subscription(_subscription(owner.id, plan="royal", status="cancelled"))

        royal, total = persistence.list_subscriptions(plan="royal")
        assert total == 1 and royal[0].status == "cancelled"
        assert persistence.count_subscriptions(user_id=owner.id) == 2
        assert persistence.count_subscriptions(status="active") == 1

    def test_delete_for_user(self, persistence):
        owner = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        persistence.save_subscription(_subscription(owner.id))
        persistence.save_subscription(_subscription(owner.id))
        assert persistence.delete_subscriptions_for_user(owner.id) == 2
        assert persistence.count_subscriptions() == 0


class TestCatalogue:
    def test_meal_plan_json_fields(self, persistence):
        saved = persistence.save_meal_plan(
            MealPlan(
                id=None,
                name="Diet Plan",
                price=30000,
                plan_type="diet",
                description="Healthy meals",
                detailed_description="Balanced meals for weight management",
                features=["Low fat"],
                nutrition_info={"calories": "400", "protein": "25g", "carbs": "40g", "fats": "15g"},
            )
        )
        loaded = persistence.get_meal_plan(saved.id)
        assert loaded.features == ["Low fat"]
        assert loaded.nutrition_info["protein"] == "25g"
        assert persistence.list_meal_plans(min_price=40000) == []

    def test_testimonial_approval_filter(self, persistence):
        persistence.save_testimonial(Testimonial(id=None, name="Ana", message="Lovely food!!", rating=5))
        persistence.save_testimonial(
            Testimonial(id=None, name="Budi", message="Great service", rating=4, is_approved=True)
        )
        approved, total = persistence.list_testimonials(is_approved=True)
        assert total == 1 and approved[0].name == "Budi"
