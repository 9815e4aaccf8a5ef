import asyncio

import pytest

from food_delivery.core.errors import ValidationFailed
from food_delivery.core.security import decode_access_token, hash_password, verify_password
from food_delivery.models import UserRole
from tests.helpers import auth_header, login, register


def test_register_returns_token_and_user(client):
    body = register(client, "Jane@Example.com", phone="555-123-4567")

    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "jane@example.com"
    assert body["user"]["role"] == "customer"
    assert "password_hash" not in body["user"]


def test_register_duplicate_email(client):
    register(client, "jane@example.com")

    response = client.post(
        "/api/auth/register",
        json={"email": "jane@example.com", "password": "secret123", "name": "Jane"},
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "User with this email already exists",
    }


def test_register_rejects_admin_role(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "x@example.com", "password": "secret123", "name": "Xavier", "role": "admin"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert any(err["field"] == "role" for err in body["errors"])


def test_register_validation_errors(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "123", "name": "J"},
    )
    assert response.status_code == 400
    fields = {err["field"] for err in response.json()["errors"]}
    assert {"email", "password", "name"} <= fields


def test_login_and_bad_credentials(client):
    register(client, "jane@example.com")

    assert login(client, "jane@example.com", "secret123")

    response = client.post(
        "/api/auth/login", json={"email": "jane@example.com", "password": "wrong"}
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"

    response = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"}
    )
    assert response.status_code == 401


def test_profile_requires_token(client):
    response = client.get("/api/auth/profile")
    assert response.status_code == 401
    assert response.json()["error"] == "Access token required"


def test_profile_rejects_invalid_token(client):
    response = client.get("/api/auth/profile", headers=auth_header("not-a-jwt"))
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid or expired token"


def test_profile_roundtrip(client, customer):
    headers = auth_header(customer["token"])

    response = client.get("/api/auth/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "alice@example.com"

    response = client.put(
        "/api/auth/profile",
        json={"name": "Alice Smith", "phone": "(555) 987-6543"},
        headers=headers,
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Alice Smith"
    assert user["phone"] == "(555) 987-6543"
    assert user["address"] == "1 Main St"


def test_profile_update_without_fields(client, customer):
    response = client.put("/api/auth/profile", json={}, headers=auth_header(customer["token"]))
    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"


def test_change_password(client, customer):
    headers = auth_header(customer["token"])

    response = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "wrong-one", "newPassword": "newsecret"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Current password is incorrect"

    response = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "newsecret"},
        headers=headers,
    )
    assert response.status_code == 200

    assert login(client, "alice@example.com", "newsecret")
    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "secret123"}
    )
    assert response.status_code == 401


def test_seeded_admin_can_log_in(client, admin_token):
    response = client.get("/api/auth/profile", headers=auth_header(admin_token))
    assert response.json()["user"]["role"] == "admin"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "healthy"


def test_login_token_carries_role(client, settings):
    body = register(client, "chef@example.com", role="restaurant")

    token = login(client, "chef@example.com", "secret123")
    identity = decode_access_token(settings, token)
    assert identity.id == body["user"]["id"]
    assert identity.email == "chef@example.com"
    assert identity.role == UserRole.RESTAURANT


def test_register_rejects_password_over_72_bytes(client):
    # 80 ASCII characters, then 30 three-byte characters (90 bytes)
    for password in ("p" * 80, "€" * 30):
        response = client.post(
            "/api/auth/register",
            json={"email": "long@example.com", "password": password, "name": "Longpass"},
        )
        assert response.status_code == 400
        assert any(err["field"] == "password" for err in response.json()["errors"])


def test_change_password_rejects_password_over_72_bytes(client, customer):
    response = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "あ" * 30},
        headers=auth_header(customer["token"]),
    )
    assert response.status_code == 400
    assert any(err["field"] == "newPassword" for err in response.json()["errors"])

    assert login(client, "alice@example.com", "secret123")


def test_hash_password_rejects_over_72_bytes():
    with pytest.raises(ValidationFailed):
        hash_password("p" * 80, rounds=4)
    assert verify_password("p" * 72, hash_password("p" * 72, rounds=4))


def test_password_hashing_runs_off_the_event_loop(client, monkeypatch):
    calls = []

    def recording_hash(password, rounds=12):
        try:
            asyncio.get_running_loop()
            calls.append("event loop")
        except RuntimeError:
            calls.append("worker thread")
        return hash_password(password, rounds)

    monkeypatch.setattr("food_delivery.services.accounts.hash_password", recording_hash)

    register(client, "jane@example.com")
    assert calls == ["worker thread"]
