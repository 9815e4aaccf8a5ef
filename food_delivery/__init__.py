"""
                Food Delivery Platform

Three-role (customer, restaurant owner, admin) food ordering backend:
restaurants and menus, a shopping cart, order placement with an
order-status workflow, and admin analytics.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
