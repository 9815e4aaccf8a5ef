"""
SQLAlchemy Database Models

Six tables:
- users, restaurants, menu_items
- cart_items (per-user shopping cart)
- orders, order_items (immutable snapshot of the cart at checkout)

Version: 1.0.0
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from food_delivery.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    """Closed set of account roles."""
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """Account record for all three roles."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)
    role = Column(
        Enum(UserRole, values_callable=_enum_values, native_enum=False, length=20),
        default=UserRole.CUSTOMER,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    restaurants = relationship("Restaurant", back_populates="owner", passive_deletes=True)

    def __repr__(self):
        return f"<User #{self.id} - {self.email} - {self.role.value}>"


class Restaurant(Base):
    """
    A restaurant owned by one user with the restaurant role.

    Hidden from public listings until an admin sets ``is_approved``.
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    cuisine_type = Column(String(50), nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="restaurants")
    menu_items = relationship("MenuItem", back_populates="restaurant", passive_deletes=True)

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name} - approved={self.is_approved}>"


class MenuItem(Base):
    """
    A dish offered by one restaurant.

    Unavailable items are hidden from the public menu but stay referenced
    by historical order items.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    image_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    restaurant = relationship("Restaurant", back_populates="menu_items")

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class CartItem(Base):
    """One line of a user's cart."""
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    menu_item = relationship("MenuItem")
    restaurant = relationship("Restaurant")

    def __repr__(self):
        return f"<CartItem #{self.id} - user {self.user_id} - item {self.menu_item_id} x{self.quantity}>"


class Order(Base):
    """
    Order created from a cart snapshot.

    Line items and amounts never change after creation; only ``status``
    and ``updated_at`` do.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_amount = Column(Float, nullable=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=20),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )

    # =========================================================================
    # DELIVERY
    # =========================================================================
    delivery_address = Column(String(255), nullable=False)
    delivery_instructions = Column(Text, nullable=True)
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    customer = relationship("User")
    restaurant = relationship("Restaurant")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")

    def __repr__(self):
        return f"<Order #{self.id} - restaurant {self.restaurant_id} - {self.status.value}>"


class OrderItem(Base):
    """Immutable snapshot of (menu item, quantity, unit price, notes)."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)

    def __repr__(self):
        return f"<OrderItem #{self.id} - order {self.order_id} - item {self.menu_item_id} x{self.quantity}>"
