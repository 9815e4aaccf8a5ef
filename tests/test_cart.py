import pytest
from fastapi.testclient import TestClient

from food_delivery.main import create_app
from tests.helpers import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    add_menu_item,
    add_to_cart,
    approve,
    auth_header,
    create_restaurant,
    login,
    register,
)


def get_cart(client, token):
    response = client.get("/api/users/cart", headers=auth_header(token))
    assert response.status_code == 200
    return response.json()


def test_cart_requires_token(client):
    assert client.get("/api/users/cart").status_code == 401


def test_add_and_total(client, customer, restaurant):
    token = customer["token"]

    response = add_to_cart(client, token, restaurant["id"], restaurant["pizza"], 2)
    assert response.json()["message"] == "Item added to cart successfully"
    add_to_cart(client, token, restaurant["id"], restaurant["soda"], 3)

    cart = get_cart(client, token)
    assert len(cart["cart_items"]) == 2
    assert cart["total"] == pytest.approx(2 * 12.50 + 3 * 2.25)

    pizza_line = next(i for i in cart["cart_items"] if i["menu_item_id"] == restaurant["pizza"])
    assert pizza_line["line_total"] == pytest.approx(25.0)
    assert pizza_line["restaurant_name"] == "Luigi's"


def test_adding_same_item_merges_quantity(client, customer, restaurant):
    token = customer["token"]

    add_to_cart(client, token, restaurant["id"], restaurant["pizza"], 1)
    response = add_to_cart(client, token, restaurant["id"], restaurant["pizza"], 2)
    assert response.json()["message"] == "Cart updated successfully"

    cart = get_cart(client, token)
    assert len(cart["cart_items"]) == 1
    assert cart["cart_items"][0]["quantity"] == 3


def test_merged_quantity_is_capped(client, customer, restaurant):
    token = customer["token"]

    assert add_to_cart(client, token, restaurant["id"], restaurant["pizza"], 99).status_code == 200
    for extra in (99, 1):
        response = add_to_cart(client, token, restaurant["id"], restaurant["pizza"], extra)
        assert response.status_code == 400
        assert response.json()["error"] == "Quantity per item cannot exceed 99"

    assert get_cart(client, token)["cart_items"][0]["quantity"] == 99


def test_quantity_defaults_to_one(client, customer, restaurant):
    client.post(
        "/api/users/cart",
        json={"menuItemId": restaurant["soda"], "restaurantId": restaurant["id"]},
        headers=auth_header(customer["token"]),
    )
    assert get_cart(client, customer["token"])["cart_items"][0]["quantity"] == 1


@pytest.mark.parametrize("quantity", [0, -1, 100])
def test_quantity_out_of_range(client, customer, restaurant, quantity):
    response = add_to_cart(client, customer["token"], restaurant["id"], restaurant["pizza"], quantity)
    assert response.status_code == 400


def test_unavailable_or_mismatched_item(client, customer, owner, restaurant, second_restaurant):
    # Item belongs to a different restaurant than stated
    response = add_to_cart(client, customer["token"], restaurant["id"], second_restaurant["roll"])
    assert response.status_code == 404
    assert response.json()["error"] == "Menu item not found or unavailable"

    client.put(
        f"/api/restaurants/{restaurant['id']}/menu/{restaurant['soda']}",
        json={"isAvailable": False},
        headers=auth_header(owner["token"]),
    )
    response = add_to_cart(client, customer["token"], restaurant["id"], restaurant["soda"])
    assert response.status_code == 404


def test_mixed_restaurants_allowed_in_cart(client, customer, restaurant, second_restaurant):
    token = customer["token"]
    assert add_to_cart(client, token, restaurant["id"], restaurant["pizza"]).status_code == 200
    assert add_to_cart(client, token, second_restaurant["id"], second_restaurant["roll"]).status_code == 200
    assert len(get_cart(client, token)["cart_items"]) == 2


def test_update_remove_and_clear(client, customer, restaurant):
    token = customer["token"]
    headers = auth_header(token)
    add_to_cart(client, token, restaurant["id"], restaurant["pizza"])
    add_to_cart(client, token, restaurant["id"], restaurant["soda"])
    lines = get_cart(client, token)["cart_items"]
    pizza_line = next(i for i in lines if i["menu_item_id"] == restaurant["pizza"])

    response = client.put(f"/api/users/cart/{pizza_line['id']}", json={"quantity": 4}, headers=headers)
    assert response.status_code == 200
    assert get_cart(client, token)["total"] == pytest.approx(4 * 12.50 + 2.25)

    response = client.delete(f"/api/users/cart/{pizza_line['id']}", headers=headers)
    assert response.status_code == 200
    assert len(get_cart(client, token)["cart_items"]) == 1

    response = client.delete("/api/users/cart", headers=headers)
    assert response.status_code == 200
    assert get_cart(client, token) == {"cart_items": [], "total": 0.0}


def test_cannot_touch_another_users_cart_row(client, customer, other_customer, restaurant):
    add_to_cart(client, customer["token"], restaurant["id"], restaurant["pizza"])
    item_id = get_cart(client, customer["token"])["cart_items"][0]["id"]

    headers = auth_header(other_customer["token"])
    response = client.put(f"/api/users/cart/{item_id}", json={"quantity": 5}, headers=headers)
    assert response.status_code == 404
    response = client.delete(f"/api/users/cart/{item_id}", headers=headers)
    assert response.status_code == 404

    assert get_cart(client, customer["token"])["cart_items"][0]["quantity"] == 1


def test_single_restaurant_cart_setting(settings):
    settings.cart_single_restaurant = True
    with TestClient(create_app(settings)) as client:
        admin = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        owner = register(client, "owner@example.com", role="restaurant")["token"]
        first = create_restaurant(client, owner, "First")
        second = create_restaurant(client, owner, "Second")
        approve(client, admin, first)
        approve(client, admin, second)
        a = add_menu_item(client, owner, first, "Burger", 9.0)
        b = add_menu_item(client, owner, second, "Taco", 3.0)

        token = register(client, "carol@example.com")["token"]
        assert add_to_cart(client, token, first, a).status_code == 200
        response = add_to_cart(client, token, second, b)
        assert response.status_code == 400
        assert response.json()["error"] == "Cart already holds items from another restaurant"
