"""
Order Flow Simulation Script

Drives a running server through the whole three-role flow, then fires
concurrent customers at it:

    admin login -> owner registers restaurant -> admin approves
    -> owner fills menu -> customers fill carts and place orders
    -> owner moves orders forward -> admin reads analytics

Run from project root: python scripts/simulate.py [--orders 50]

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50
ADMIN_EMAIL = "admin@fooddelivery.com"
ADMIN_PASSWORD = "admin123"

# Sample data
FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis"]
STREETS = ["Main St", "Broadway", "5th Avenue", "Park Ave", "Madison Ave", "Lexington Ave"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "price": 14.99, "category": "pizza"},
    {"name": "Pepperoni Pizza", "price": 16.99, "category": "pizza"},
    {"name": "Caesar Salad", "price": 8.99, "category": "salads"},
    {"name": "Garlic Bread", "price": 5.99, "category": "sides"},
    {"name": "Pasta Carbonara", "price": 13.99, "category": "pasta"},
    {"name": "Tiramisu", "price": 7.99, "category": "desserts"},
    {"name": "Coke", "price": 2.99, "category": "drinks"},
]
FORWARD_STATUSES = ["accepted", "preparing", "ready", "delivered"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def generate_random_customer() -> dict[str, str]:
    """Registration payload for a random customer."""
    return {
        "email": unique_email("customer"),
        "password": "secret123",
        "name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "phone": f"555-{random.randint(100, 999)}-{random.randint(1000, 9999)}",
        "address": f"{random.randint(1, 999)} {random.choice(STREETS)}",
        "role": "customer",
    }


def expect(response: httpx.Response, status: int = 200) -> dict[str, Any]:
    if response.status_code != status:
        raise RuntimeError(f"{response.request.method} {response.request.url} -> "
                           f"{response.status_code}: {response.text[:200]}")
    return response.json()


# =============================================================================
# SETUP
# =============================================================================

async def setup_restaurant(client: httpx.AsyncClient) -> dict[str, Any]:
    """Create an approved restaurant with a full menu; returns tokens and ids."""
    admin = expect(await client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    ))
    admin_token = admin["token"]

    owner = expect(await client.post("/api/auth/register", json={
        "email": unique_email("owner"),
        "password": "secret123",
        "name": "Luigi Rossi",
        "role": "restaurant",
    }), 201)
    owner_token = owner["token"]

    created = expect(await client.post(
        "/api/restaurants",
        json={"name": "Luigi's Trattoria", "address": "350 Fifth Avenue", "cuisineType": "Italian"},
        headers=bearer(owner_token),
    ), 201)
    restaurant_id = created["restaurant_id"]

    expect(await client.put(
        f"/api/admin/restaurants/{restaurant_id}/approval",
        json={"isApproved": True},
        headers=bearer(admin_token),
    ))

    menu_item_ids = []
    for item in MENU_ITEMS:
        added = expect(await client.post(
            f"/api/restaurants/{restaurant_id}/menu", json=item, headers=bearer(owner_token)
        ), 201)
        menu_item_ids.append(added["menu_item_id"])

    return {
        "admin_token": admin_token,
        "owner_token": owner_token,
        "restaurant_id": restaurant_id,
        "menu_item_ids": menu_item_ids,
    }


# =============================================================================
# CUSTOMER FLOW
# =============================================================================

async def run_customer(
    client: httpx.AsyncClient,
    setup: dict[str, Any],
    order_num: int
) -> dict[str, Any]:
    """Register, fill a cart with random items and place the order."""
    start_time = time.time()

    try:
        customer = generate_random_customer()
        registered = expect(await client.post("/api/auth/register", json=customer), 201)
        token = registered["token"]

        for menu_item_id in random.sample(setup["menu_item_ids"], random.randint(1, 4)):
            expect(await client.post(
                "/api/users/cart",
                json={
                    "menuItemId": menu_item_id,
                    "restaurantId": setup["restaurant_id"],
                    "quantity": random.randint(1, 3),
                },
                headers=bearer(token),
            ))

        placed = expect(await client.post(
            "/api/users/orders",
            json={
                "deliveryAddress": customer["address"],
                "deliveryInstructions": random.choice([None, "Ring doorbell", "Leave at door"]),
            },
            headers=bearer(token),
        ), 201)

        return {
            "order_num": order_num,
            "success": True,
            "order_id": placed["order_id"],
            "total": placed["total_amount"],
            "time": round(time.time() - start_time, 3),
        }
    except (httpx.HTTPError, RuntimeError) as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def advance_order(client: httpx.AsyncClient, setup: dict[str, Any], order_id: int) -> str:
    """Move an order a random number of steps down the forward path."""
    steps = FORWARD_STATUSES[:random.randint(0, len(FORWARD_STATUSES))]
    for status in steps:
        expect(await client.put(
            f"/api/restaurants/{setup['restaurant_id']}/orders/{order_id}/status",
            json={"status": status},
            headers=bearer(setup["owner_token"]),
        ))
    return steps[-1] if steps else "pending"


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the concurrent order simulation.

    Args:
        num_orders: Number of customers, one order each
    """
    print("=" * 70)
    print("🔥 ORDER FLOW SIMULATION - CONCURRENT CUSTOMERS")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        setup = await setup_restaurant(client)
        print(f"\n🏪 Restaurant #{setup['restaurant_id']} approved with {len(setup['menu_item_ids'])} menu items")

        print("\n🚀 Firing customers...\n")
        results = await asyncio.gather(*[
            run_customer(client, setup, i + 1) for i in range(num_orders)
        ])

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        print("👨‍🍳 Restaurant working through orders...")
        final_statuses: dict[str, int] = {}
        for r in successful:
            status = await advance_order(client, setup, r["order_id"])
            final_statuses[status] = final_statuses.get(status, 0) + 1

        dashboard = expect(await client.get(
            "/api/admin/analytics/dashboard", headers=bearer(setup["admin_token"])
        ))

    total_time = round(time.time() - start_time, 2)

    # Print results
    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)

        print(f"\n📈 Performance Metrics:")
        print(f"   Average Customer Flow: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ${total_revenue:.2f}")

        print(f"\n🚦 Final Statuses:")
        for status, count in sorted(final_statuses.items()):
            print(f"   {status}: {count}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    order_stats = dashboard["order_stats"]
    print(f"\n🧾 Server-side totals: {order_stats['total_orders']} orders, "
          f"${order_stats['total_revenue']:.2f} revenue")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def test_single_flows() -> bool:
    """Check the individual flows before the concurrent run."""
    print("\n" + "=" * 70)
    print("🧪 TESTING INDIVIDUAL FLOWS")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        # Test 1: Health check
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Server unreachable: {e}")
            return False
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")

        # Test 2: Restaurant setup
        print("\n2️⃣ Restaurant Setup & Approval...")
        try:
            setup = await setup_restaurant(client)
        except RuntimeError as e:
            print(f"   ❌ Failed: {e}")
            return False
        print(f"   ✅ Restaurant #{setup['restaurant_id']} visible to customers")

        # Test 3: Single order
        print("\n3️⃣ Single Customer Order...")
        result = await run_customer(client, setup, 1)
        if not result["success"]:
            print(f"   ❌ Failed: {result['error']}")
            return False
        print(f"   ✅ Order #{result['order_id']} created")
        print(f"   Total: ${result['total']}")

        # Test 4: Tracking
        print("\n4️⃣ Public Tracking...")
        response = await client.get(f"/api/orders/{result['order_id']}/track")
        if response.status_code == 200:
            tracking = response.json()
            print(f"   ✅ {tracking['status']}: {tracking['status_description']}")
        else:
            print(f"   ⚠️ Response: {response.text[:100]}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Flow Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--base-url", default=API_BASE_URL, help="Server base URL")
    parser.add_argument("--skip-tests", action="store_true", help="Skip individual tests")
    args = parser.parse_args()

    API_BASE_URL = args.base_url

    # Run tests first
    if not args.skip_tests:
        success = asyncio.run(test_single_flows())
        if not success:
            print("\n❌ Pre-flight tests failed. Fix issues before running simulation.")
            sys.exit(1)

        print("\n✅ Pre-flight tests passed!")

    asyncio.run(run_simulation(num_orders=args.orders))
