"""
Shared fixtures: one fresh SQLite file database per test, a TestClient
running the full application lifespan, and the usual customer / owner /
approved-restaurant / menu setup built over HTTP.
"""

import pytest
from fastapi.testclient import TestClient

from food_delivery.core.config import Settings
from food_delivery.main import create_app
from tests.helpers import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    add_menu_item,
    add_to_cart,
    approve,
    create_restaurant,
    login,
    place_order,
    register,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client) -> str:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def customer(client) -> dict:
    body = register(client, "alice@example.com", address="1 Main St")
    return {"id": body["user"]["id"], "token": body["token"]}


@pytest.fixture
def other_customer(client) -> dict:
    body = register(client, "bob@example.com")
    return {"id": body["user"]["id"], "token": body["token"]}


@pytest.fixture
def owner(client) -> dict:
    body = register(client, "owner@example.com", role="restaurant")
    return {"id": body["user"]["id"], "token": body["token"]}


@pytest.fixture
def other_owner(client) -> dict:
    body = register(client, "owner2@example.com", role="restaurant")
    return {"id": body["user"]["id"], "token": body["token"]}


@pytest.fixture
def restaurant(client, owner, admin_token) -> dict:
    """Approved restaurant with two available menu items."""
    restaurant_id = create_restaurant(client, owner["token"])
    approve(client, admin_token, restaurant_id)
    pizza = add_menu_item(client, owner["token"], restaurant_id, "Pizza", 12.50, category="mains")
    soda = add_menu_item(client, owner["token"], restaurant_id, "Soda", 2.25, category="drinks")
    return {"id": restaurant_id, "pizza": pizza, "soda": soda}


@pytest.fixture
def second_restaurant(client, other_owner, admin_token) -> dict:
    restaurant_id = create_restaurant(client, other_owner["token"], name="Sushi Bar")
    approve(client, admin_token, restaurant_id)
    roll = add_menu_item(client, other_owner["token"], restaurant_id, "Maki Roll", 8.00)
    return {"id": restaurant_id, "roll": roll}


@pytest.fixture
def placed_order(client, customer, restaurant) -> int:
    """Pending order for two pizzas (25.00)."""
    response = add_to_cart(client, customer["token"], restaurant["id"], restaurant["pizza"], 2)
    assert response.status_code == 200, response.text
    response = place_order(client, customer["token"])
    assert response.status_code == 201, response.text
    return response.json()["order_id"]
