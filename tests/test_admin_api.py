"""Tests for the /api/admin endpoints and AdminService analytics."""

from datetime import datetime, timedelta, timezone

import pytest

from app.application.services.admin_service import AdminService, _group_key
from app.application.services.user_service import UserService
from app.domain.models import Subscription

SUBSCRIPTION = {
    "name": "Jane Doe",
    "phone": "+6281234567890",
    "plan": "protein",
    "mealTypes": ["lunch"],
    "deliveryDays": ["monday", "tuesday"],
}


def _me(client, headers):
    return client.get("/api/auth/me", headers=headers).json()["data"]["user"]


class TestUserManagement:
    def test_requires_admin(self, client, user_headers):
        assert client.get("/api/admin/users", headers=user_headers).status_code == 403
        assert client.get("/api/admin/stats", headers=user_headers).status_code == 403

    def test_list_with_filters(self, client, admin_headers, user_headers, other_user_headers):
        everyone = client.get("/api/admin/users", headers=admin_headers).json()
        assert everyone["pagination"]["totalItems"] == 3
        admins = client.get("/api/admin/users", params={"role": "admin"}, headers=admin_headers).json()
        assert [user["role"] for user in admins["data"]] == ["admin"]
        found = client.get("/api/admin/users", params={"search": "john"}, headers=admin_headers).json()
        assert [user["email"] for user in found["data"]] == ["john@example.com"]

    def test_get_user_includes_subscription_count(self, client, admin_headers, user_headers):
        client.post("/api/subscriptions", json=SUBSCRIPTION, headers=user_headers)
        user_id = _me(client, user_headers)["id"]
        data = client.get(f"/api/admin/users/{user_id}", headers=admin_headers).json()["data"]
        assert data["subscriptionCount"] == 1

    def test_create_user(self, client, admin_headers):
        response = client.post(
            "/api/admin/users",
            json={"fullName": "New Admin", "email": "new@example.com", "password": "Strong@123", "role": "admin"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "admin"
        duplicate = client.post(
            "/api/admin/users",
            json={"fullName": "New Admin", "email": "new@example.com", "password": "Strong@123"},
            headers=admin_headers,
        )
        assert duplicate.status_code == 409

    def test_deactivated_user_cannot_login(self, client, admin_headers, user_headers):
        user_id = _me(client, user_headers)["id"]
        response = client.patch(
            f"/api/admin/users/{user_id}/status", json={"isActive": False}, headers=admin_headers
        )
        assert response.json()["data"]["isActive"] is False
        login = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "Secret@123"})
        assert login.status_code == 401
        assert client.get("/api/auth/me", headers=user_headers).status_code == 401

    def test_role_change_and_self_demotion(self, client, admin_headers, user_headers):
        user_id = _me(client, user_headers)["id"]
        promoted = client.patch(f"/api/admin/users/{user_id}/role", json={"role": "admin"}, headers=admin_headers)
        assert promoted.json()["data"]["role"] == "admin"

        admin_id = _me(client, admin_headers)["id"]
        demote_self = client.patch(
            f"/api/admin/users/{admin_id}/role", json={"role": "user"}, headers=admin_headers
        )
        assert demote_self.status_code == 400

    def test_delete_cascades_subscriptions(self, client, admin_headers, user_headers):
        created = client.post("/api/subscriptions", json=SUBSCRIPTION, headers=user_headers).json()["data"]
        user_id = _me(client, user_headers)["id"]
        assert client.delete(f"/api/admin/users/{user_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/subscriptions/{created['id']}", headers=admin_headers).status_code == 404
        assert client.get(f"/api/admin/users/{user_id}", headers=admin_headers).status_code == 404

    def test_cannot_delete_self(self, client, admin_headers):
        admin_id = _me(client, admin_headers)["id"]
        assert client.delete(f"/api/admin/users/{admin_id}", headers=admin_headers).status_code == 400


class TestStatistics:
    def test_stats(self, client, admin_headers, user_headers):
        client.post("/api/subscriptions", json=SUBSCRIPTION, headers=user_headers)
        data = client.get("/api/admin/stats", headers=admin_headers).json()["data"]
        assert data["users"]["totalUsers"] == 2
        assert data["users"]["adminUsers"] == 1
        assert data["subscriptions"]["totalRevenue"] == 344000
        assert data["activity"]["recentSubscriptions"] == 1

    def test_analytics_endpoints(self, client, admin_headers, user_headers):
        created = client.post("/api/subscriptions", json=SUBSCRIPTION, headers=user_headers).json()["data"]
        client.patch(f"/api/subscriptions/{created['id']}/cancel", json={"reason": "Budget"}, headers=user_headers)

        overview = client.get("/api/admin/analytics/overview", headers=admin_headers).json()["data"]
        assert overview["metrics"]["newSubscriptions"] == 1
        assert overview["additionalMetrics"]["cancelledSubscriptions"] == 1

        revenue = client.get(
            "/api/admin/analytics/revenue", params={"groupBy": "day"}, headers=admin_headers
        ).json()["data"]
        assert revenue["groupBy"] == "day"
        assert revenue["revenueData"][0]["totalRevenue"] == 344000
        assert revenue["revenueData"][0]["activeRevenue"] == 0

        churn = client.get("/api/admin/analytics/subscriptions", headers=admin_headers).json()["data"]
        assert churn["churnData"][0]["churnCount"] == 1
        assert churn["statusDistribution"] == [{"status": "cancelled", "count": 1, "totalRevenue": 344000}]


class TestAnalyticsAggregation:
    @pytest.fixture
    def admin_service(self, persistence):
        return AdminService(persistence, UserService(persistence, jwt_secret="test-secret"))

    def _save(self, persistence, owner_id, plan, price, status, created_at, cancelled_at=None):
        return persistence.save_subscription(
            Subscription(
                id=None,
                user_id=owner_id,
                name="Jane Doe",
                phone="081234567890",
                plan=plan,
                meal_types=("lunch",),
                delivery_days=("monday",),
                total_price=price,
                status=status,
                cancellation_date=cancelled_at,
                created_at=created_at,
            )
        )

    def test_revenue_grouped_by_month(self, persistence, admin_service):
        owner = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        self._save(persistence, owner.id, "diet", 100, "active", datetime(2025, 1, 5, tzinfo=timezone.utc))
        self._save(persistence, owner.id, "diet", 200, "cancelled", datetime(2025, 1, 20, tzinfo=timezone.utc))
        self._save(persistence, owner.id, "royal", 300, "active", datetime(2025, 2, 2, tzinfo=timezone.utc))

        result = admin_service.revenue_analytics(
            datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 2, 28, tzinfo=timezone.utc), "month"
        )
        assert result["revenueData"] == [
            {"period": {"year": 2025, "month": 1}, "totalRevenue": 300, "subscriptionCount": 2, "activeRevenue": 100, "activeCount": 1},
            {"period": {"year": 2025, "month": 2}, "totalRevenue": 300, "subscriptionCount": 1, "activeRevenue": 300, "activeCount": 1},
        ]

    def test_unknown_group_by_falls_back_to_month(self, admin_service):
        assert admin_service.revenue_analytics(group_by="year")["groupBy"] == "month"

    def test_churn_counts_cancellations_in_range(self, persistence, admin_service):
        owner = persistence.create_user("Jane Doe", "jane@example.com", "hash", "user")
        created = datetime(2025, 1, 5, tzinfo=timezone.utc)
        self._save(persistence, owner.id, "diet", 100, "cancelled", created, created + timedelta(days=3))
        self._save(persistence, owner.id, "diet", 100, "cancelled", created, created + timedelta(days=60))

        result = admin_service.subscription_analytics(
            datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 1, 31, tzinfo=timezone.utc)
        )
        assert result["churnData"] == [{"period": {"year": 2025, "month": 1}, "churnCount": 1, "lostRevenue": 100}]
        assert result["planPopularity"] == [{"plan": "diet", "count": 2, "revenue": 200, "avgPrice": 100.0}]

    def test_week_key_is_sunday_based(self):
        assert _group_key(datetime(2025, 1, 5), "week") == (("year", 2025), ("week", 1))
        assert _group_key(datetime(2025, 1, 4), "week") == (("year", 2025), ("week", 0))

