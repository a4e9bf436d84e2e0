"""Shared fixtures: an application wired to a throwaway SQLite file."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_application
from app.core.config import Settings
from app.infrastructure.persistence.sqlite import SQLitePersistence

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin#Pass1"
USER_PASSWORD = "Secret@123"

FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a temporary database with a seeded admin."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("ADMIN_FULL_NAME", "Site Admin")
    return Settings()


@pytest.fixture
def client(settings):
    """Create test client; entering the context runs the lifespan."""
    with TestClient(create_application(settings)) as test_client:
        yield test_client


@pytest.fixture
def persistence(tmp_path):
    gateway = SQLitePersistence(tmp_path / "repo.db")
    try:
        yield gateway
    finally:
        gateway.close()


def register(client, email, full_name="Jane Doe", password=USER_PASSWORD):
    response = client.post(
        "/api/auth/register",
        json={
            "fullName": full_name,
            "email": email,
            "password": password,
            "confirmPassword": password,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(client):
    return bearer(register(client, "jane@example.com")["accessToken"])


@pytest.fixture
def other_user_headers(client):
    return bearer(register(client, "john@example.com", full_name="John Roe")["accessToken"])


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return bearer(response.json()["data"]["accessToken"])
