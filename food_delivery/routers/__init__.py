"""
REST resource routers, mounted under the configured API prefix.
"""

from food_delivery.routers import admin, auth, orders, restaurants, users

__all__ = ["admin", "auth", "orders", "restaurants", "users"]
