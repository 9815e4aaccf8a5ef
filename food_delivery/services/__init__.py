"""
                        Services Module

Business logic used by the routers. Each service wraps one request's
database session.

Services:
    - accounts: registration, login, profile, default admin seed
    - cart: per-user shopping cart
    - orders: order placement and status workflow
    - analytics: admin aggregates
"""

from food_delivery.services.accounts import AccountService, seed_default_admin
from food_delivery.services.analytics import AnalyticsService
from food_delivery.services.cart import CartService
from food_delivery.services.orders import OrderService

__all__ = [
    "AccountService",
    "AnalyticsService",
    "CartService",
    "OrderService",
    "seed_default_admin",
]
