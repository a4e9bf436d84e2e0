"""Tests for the /api/meal-plans endpoints."""

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_application
from app.core.config import Settings

NEW_PLAN = {
    "name": "Keto Diet Plan",
    "price": 35000,
    "planType": "diet",
    "description": "Low carb meals for ketosis",
    "detailedDescription": "High fat, low carb meals prepared by our nutrition team.",
    "features": ["Low carb", "High fat"],
    "nutritionInfo": {"calories": "450", "protein": "30g", "carbs": "10g", "fats": "35g"},
}


@pytest.fixture
def seeded(client, admin_headers):
    response = client.post("/api/meal-plans/seed", headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCatalogue:
    def test_seed_creates_three_plans(self, seeded):
        assert sorted(plan["planType"] for plan in seeded) == ["diet", "protein", "royal"]
        diet = next(plan for plan in seeded if plan["planType"] == "diet")
        assert diet["price"] == 30000
        assert diet["formattedPrice"].startswith("Rp")

    def test_public_listing_and_filters(self, client, seeded):
        everything = client.get("/api/meal-plans").json()
        assert everything["count"] == 3
        expensive = client.get("/api/meal-plans", params={"minPrice": 40000}).json()
        assert {plan["planType"] for plan in expensive["data"]} == {"protein", "royal"}

    def test_get_by_id_and_type(self, client, seeded):
        plan_id = seeded[0]["id"]
        assert client.get(f"/api/meal-plans/{plan_id}").json()["data"]["id"] == plan_id
        royal = client.get("/api/meal-plans/type/royal").json()
        assert royal["count"] == 1
        assert client.get("/api/meal-plans/type/keto").status_code == 400

    def test_missing_plan(self, client):
        assert client.get("/api/meal-plans/404").status_code == 404


class TestAdministration:
    def test_writes_require_admin(self, client, user_headers):
        assert client.post("/api/meal-plans", json=NEW_PLAN).status_code == 401
        assert client.post("/api/meal-plans", json=NEW_PLAN, headers=user_headers).status_code == 403

    def test_create_update_delete(self, client, admin_headers):
        created = client.post("/api/meal-plans", json=NEW_PLAN, headers=admin_headers)
        assert created.status_code == 201
        plan_id = created.json()["data"]["id"]

        updated = client.put(
            f"/api/meal-plans/{plan_id}", json={**NEW_PLAN, "price": 36000}, headers=admin_headers
        )
        assert updated.json()["data"]["price"] == 36000

        deactivated = client.patch(
            f"/api/meal-plans/{plan_id}/status", json={"isActive": False}, headers=admin_headers
        )
        assert deactivated.json()["data"]["isActive"] is False
        assert client.get("/api/meal-plans/type/diet").json()["count"] == 0

        assert client.delete(f"/api/meal-plans/{plan_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/meal-plans/{plan_id}").status_code == 404

    def test_invalid_plan_type(self, client, admin_headers):
        response = client.post("/api/meal-plans", json={**NEW_PLAN, "planType": "keto"}, headers=admin_headers)
        assert response.status_code == 400

    def test_seed_refused_in_production(self, settings, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        production = Settings()
        with TestClient(create_application(production)) as prod_client:
            login = prod_client.post(
                "/api/auth/login",
                json={"email": production.admin_default_email, "password": production.admin_default_password},
            )
            token = login.json()["data"]["accessToken"]
            response = prod_client.post(
                "/api/meal-plans/seed", headers={"Authorization": f"Bearer {token}"}
            )
        assert response.status_code == 403
