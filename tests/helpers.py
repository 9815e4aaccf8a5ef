"""HTTP helpers shared by the API tests."""

ADMIN_EMAIL = "admin@fooddelivery.com"
ADMIN_PASSWORD = "admin123"


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client, email: str, role: str = "customer", password: str = "secret123", **extra):
    payload = {"email": email, "password": password, "name": "Test User", "role": role}
    payload.update(extra)
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def create_restaurant(client, owner_token: str, name: str = "Luigi's") -> int:
    response = client.post(
        "/api/restaurants",
        json={"name": name, "address": "10 Pasta Rd", "cuisineType": "Italian"},
        headers=auth_header(owner_token),
    )
    assert response.status_code == 201, response.text
    return response.json()["restaurant_id"]


def approve(client, admin_token: str, restaurant_id: int, approved: bool = True) -> None:
    response = client.put(
        f"/api/admin/restaurants/{restaurant_id}/approval",
        json={"isApproved": approved},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 200, response.text


def add_menu_item(client, owner_token: str, restaurant_id: int, name: str, price: float, **extra) -> int:
    payload = {"name": name, "price": price}
    payload.update(extra)
    response = client.post(
        f"/api/restaurants/{restaurant_id}/menu",
        json=payload,
        headers=auth_header(owner_token),
    )
    assert response.status_code == 201, response.text
    return response.json()["menu_item_id"]


def add_to_cart(client, token: str, restaurant_id: int, menu_item_id: int, quantity: int = 1):
    return client.post(
        "/api/users/cart",
        json={"menuItemId": menu_item_id, "restaurantId": restaurant_id, "quantity": quantity},
        headers=auth_header(token),
    )


def place_order(client, token: str, address: str = "1 Main St"):
    return client.post(
        "/api/users/orders",
        json={"deliveryAddress": address},
        headers=auth_header(token),
    )
