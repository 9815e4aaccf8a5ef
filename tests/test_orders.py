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
    place_order,
    register,
)


def set_status(client, token, restaurant_id, order_id, status):
    return client.put(
        f"/api/restaurants/{restaurant_id}/orders/{order_id}/status",
        json={"status": status},
        headers=auth_header(token),
    )


# =============================================================================
# PLACEMENT
# =============================================================================

def test_place_order_snapshots_cart(client, customer, owner, restaurant):
    token = customer["token"]
    add_to_cart(client, token, restaurant["id"], restaurant["pizza"], 2)
    add_to_cart(client, token, restaurant["id"], restaurant["soda"], 1)

    response = place_order(client, token, address="221B Baker St")
    assert response.status_code == 201
    body = response.json()
    assert body["total_amount"] == pytest.approx(27.25)
    assert body["estimated_delivery_time"] is not None
    order_id = body["order_id"]

    # Cart is emptied
    cart = client.get("/api/users/cart", headers=auth_header(token)).json()
    assert cart["cart_items"] == []

    # Price changes after checkout do not affect the order
    client.put(
        f"/api/restaurants/{restaurant['id']}/menu/{restaurant['pizza']}",
        json={"price": 99.0},
        headers=auth_header(owner["token"]),
    )

    detail = client.get(f"/api/users/orders/{order_id}", headers=auth_header(token)).json()
    assert detail["order"]["status"] == "pending"
    assert detail["order"]["delivery_address"] == "221B Baker St"
    assert detail["order"]["restaurant_name"] == "Luigi's"
    lines = {line["name"]: line for line in detail["order_items"]}
    assert lines["Pizza"]["price"] == pytest.approx(12.50)
    assert lines["Pizza"]["line_total"] == pytest.approx(25.0)
    assert sum(line["line_total"] for line in detail["order_items"]) == pytest.approx(
        detail["order"]["total_amount"]
    )


def test_empty_cart_rejected(client, customer):
    response = place_order(client, customer["token"])
    assert response.status_code == 400
    assert response.json()["error"] == "Cart is empty"


def test_mixed_restaurant_cart_rejected_and_kept(client, customer, restaurant, second_restaurant):
    token = customer["token"]
    add_to_cart(client, token, restaurant["id"], restaurant["pizza"])
    add_to_cart(client, token, second_restaurant["id"], second_restaurant["roll"])

    response = place_order(client, token)
    assert response.status_code == 400
    assert response.json()["error"] == "All items must be from the same restaurant"

    cart = client.get("/api/users/cart", headers=auth_header(token)).json()
    assert len(cart["cart_items"]) == 2
    assert client.get("/api/users/orders", headers=auth_header(token)).json()["orders"] == []


def test_failed_placement_leaves_no_order_and_keeps_cart(settings, monkeypatch):
    with TestClient(create_app(settings), raise_server_exceptions=False) as client:
        admin = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        owner = register(client, "owner@example.com", role="restaurant")["token"]
        restaurant_id = create_restaurant(client, owner)
        approve(client, admin, restaurant_id)
        pizza = add_menu_item(client, owner, restaurant_id, "Pizza", 12.50)
        token = register(client, "alice@example.com")["token"]
        add_to_cart(client, token, restaurant_id, pizza, 2)

        def broken_order_item(**kwargs):
            raise RuntimeError("order_items insert failed")

        # The order row is already flushed when the item rows fail
        monkeypatch.setattr("food_delivery.services.orders.OrderItem", broken_order_item)
        response = place_order(client, token)
        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"

        cart = client.get("/api/users/cart", headers=auth_header(token)).json()
        assert [(i["menu_item_id"], i["quantity"]) for i in cart["cart_items"]] == [(pizza, 2)]
        assert client.get("/api/users/orders", headers=auth_header(token)).json()["orders"] == []
        assert client.get("/api/orders", headers=auth_header(admin)).json()["orders"] == []

        monkeypatch.undo()
        assert place_order(client, token).status_code == 201


def test_delivery_address_required(client, customer, restaurant):
    add_to_cart(client, customer["token"], restaurant["id"], restaurant["pizza"])
    response = client.post("/api/users/orders", json={}, headers=auth_header(customer["token"]))
    assert response.status_code == 400


def test_order_history_is_per_customer(client, customer, other_customer, placed_order):
    orders = client.get("/api/users/orders", headers=auth_header(customer["token"])).json()["orders"]
    assert [o["id"] for o in orders] == [placed_order]

    other = client.get("/api/users/orders", headers=auth_header(other_customer["token"])).json()
    assert other["orders"] == []

    response = client.get(
        f"/api/users/orders/{placed_order}", headers=auth_header(other_customer["token"])
    )
    assert response.status_code == 404


# =============================================================================
# ACCESS
# =============================================================================

def test_order_access_rules(client, customer, other_customer, owner, other_owner, admin_token, placed_order):
    url = f"/api/orders/{placed_order}"

    assert client.get(url, headers=auth_header(customer["token"])).status_code == 200
    assert client.get(url, headers=auth_header(owner["token"])).status_code == 200
    assert client.get(url, headers=auth_header(admin_token)).status_code == 200

    response = client.get(url, headers=auth_header(other_customer["token"]))
    assert response.status_code == 403
    assert response.json()["error"] == "Access denied to this order"
    assert client.get(url, headers=auth_header(other_owner["token"])).status_code == 403

    assert client.get("/api/orders/9999", headers=auth_header(admin_token)).status_code == 404


def test_order_listing_is_admin_only(client, customer, admin_token, placed_order):
    assert client.get("/api/orders", headers=auth_header(customer["token"])).status_code == 403
    orders = client.get("/api/orders", headers=auth_header(admin_token)).json()["orders"]
    assert orders[0]["customer_name"] == "Test User"


# =============================================================================
# STATUS WORKFLOW
# =============================================================================

def test_customer_can_cancel_pending_order(client, customer, placed_order):
    response = client.put(
        f"/api/orders/{placed_order}/cancel",
        json={"reason": "Changed my mind"},
        headers=auth_header(customer["token"]),
    )
    assert response.status_code == 200

    tracking = client.get(f"/api/orders/{placed_order}/track").json()
    assert tracking["status"] == "cancelled"


def test_customer_can_cancel_accepted_order(client, customer, owner, restaurant, placed_order):
    set_status(client, owner["token"], restaurant["id"], placed_order, "accepted")
    response = client.put(f"/api/orders/{placed_order}/cancel", headers=auth_header(customer["token"]))
    assert response.status_code == 200


@pytest.mark.parametrize("status", ["preparing", "ready", "delivered", "cancelled"])
def test_customer_cannot_cancel_late_order(client, customer, owner, restaurant, placed_order, status):
    set_status(client, owner["token"], restaurant["id"], placed_order, status)

    response = client.put(f"/api/orders/{placed_order}/cancel", headers=auth_header(customer["token"]))
    assert response.status_code == 400
    assert response.json()["error"] == "Order cannot be cancelled at this stage"

    tracking = client.get(f"/api/orders/{placed_order}/track").json()
    assert tracking["status"] == status


def test_cancel_is_customer_only_and_own_orders(client, other_customer, owner, placed_order):
    response = client.put(f"/api/orders/{placed_order}/cancel", headers=auth_header(owner["token"]))
    assert response.status_code == 403

    response = client.put(
        f"/api/orders/{placed_order}/cancel", headers=auth_header(other_customer["token"])
    )
    assert response.status_code == 404


def test_restaurant_moves_order_forward(client, owner, restaurant, placed_order):
    for status in ["accepted", "preparing", "ready", "delivered"]:
        response = set_status(client, owner["token"], restaurant["id"], placed_order, status)
        assert response.status_code == 200
        assert client.get(f"/api/orders/{placed_order}/track").json()["status"] == status


def test_restaurant_cannot_set_pending(client, owner, restaurant, placed_order):
    response = set_status(client, owner["token"], restaurant["id"], placed_order, "pending")
    assert response.status_code == 400


def test_unknown_status_rejected(client, owner, restaurant, placed_order):
    response = set_status(client, owner["token"], restaurant["id"], placed_order, "shipped")
    assert response.status_code == 400


def test_restaurant_cannot_update_foreign_order(client, other_owner, second_restaurant, placed_order):
    response = set_status(client, other_owner["token"], second_restaurant["id"], placed_order, "accepted")
    assert response.status_code == 404


def test_admin_can_set_any_status(client, admin_token, placed_order):
    for status in ["delivered", "pending"]:
        response = client.put(
            f"/api/orders/{placed_order}/status",
            json={"status": status},
            headers=auth_header(admin_token),
        )
        assert response.status_code == 200
        assert client.get(f"/api/orders/{placed_order}/track").json()["status"] == status


# =============================================================================
# TRACKING
# =============================================================================

def test_tracking_is_public(client, placed_order):
    response = client.get(f"/api/orders/{placed_order}/track")
    assert response.status_code == 200
    body = response.json()
    assert body["order_id"] == placed_order
    assert body["status"] == "pending"
    assert body["status_description"] == "Order received, waiting for restaurant confirmation"
    assert body["next_status"] == "accepted"
    assert body["restaurant_name"] == "Luigi's"


def test_tracking_unknown_order(client):
    response = client.get("/api/orders/424242/track")
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


def test_tracking_delivered_has_no_next_status(client, admin_token, placed_order):
    client.put(
        f"/api/orders/{placed_order}/status",
        json={"status": "delivered"},
        headers=auth_header(admin_token),
    )
    body = client.get(f"/api/orders/{placed_order}/track").json()
    assert body["status_description"] == "Order delivered successfully"
    assert body["next_status"] is None
