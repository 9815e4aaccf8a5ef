"""
Order Service

Turns a customer's cart into an order and drives the order through its
status workflow (see ``food_delivery.order_lifecycle``).

Order placement runs as one transaction:
    1. Load cart rows joined to the current menu price
    2. Reject carts spanning more than one restaurant
    3. Total = sum(unit price x quantity)
    4. Insert the order (status pending)
    5. Insert one order item per cart row (price snapshot)
    6. Delete the cart rows
A failure in steps 4-6 rolls everything back: no order, cart untouched.
"""

import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery import order_lifecycle
from food_delivery.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from food_delivery.models import (
    CartItem,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Restaurant,
    User,
    UserRole,
    utcnow,
)
from food_delivery.schemas import OrderPlace

logger = logging.getLogger(__name__)


def _summary_query():
    """Order columns joined to customer and restaurant display fields."""
    return (
        select(
            Order.id,
            Order.customer_id,
            Order.restaurant_id,
            Order.total_amount,
            Order.status,
            Order.delivery_address,
            Order.delivery_instructions,
            Order.estimated_delivery_time,
            Order.created_at,
            Order.updated_at,
            User.name.label("customer_name"),
            User.phone.label("customer_phone"),
            Restaurant.name.label("restaurant_name"),
            Restaurant.address.label("restaurant_address"),
        )
        .join(User, Order.customer_id == User.id)
        .join(Restaurant, Order.restaurant_id == Restaurant.id)
    )


class OrderService:
    """Order lifecycle operations for one session."""

    def __init__(self, db: AsyncSession, estimated_delivery_minutes: int = 40):
        self.db = db
        self.estimated_delivery_minutes = estimated_delivery_minutes

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    async def place_order(self, user_id: int, data: OrderPlace) -> Order:
        """
        Convert the caller's cart into a pending order.

        Raises:
            BusinessRuleViolation: Cart empty or spans several restaurants
        """
        result = await self.db.execute(
            select(
                CartItem.menu_item_id,
                CartItem.quantity,
                CartItem.notes,
                CartItem.restaurant_id,
                MenuItem.price,
            )
            .join(MenuItem, CartItem.menu_item_id == MenuItem.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        )
        cart_rows = result.all()

        if not cart_rows:
            raise BusinessRuleViolation("Cart is empty")

        restaurant_ids = {row.restaurant_id for row in cart_rows}
        if len(restaurant_ids) > 1:
            raise BusinessRuleViolation("All items must be from the same restaurant")

        restaurant_id = restaurant_ids.pop()
        total_amount = round(sum(row.price * row.quantity for row in cart_rows), 2)
        now = utcnow()

        try:
            order = Order(
                customer_id=user_id,
                restaurant_id=restaurant_id,
                total_amount=total_amount,
                status=OrderStatus.PENDING,
                delivery_address=data.delivery_address,
                delivery_instructions=data.delivery_instructions,
                estimated_delivery_time=now + timedelta(minutes=self.estimated_delivery_minutes),
                created_at=now,
                updated_at=now,
            )
            self.db.add(order)
            await self.db.flush()

            self.db.add_all([
                OrderItem(
                    order_id=order.id,
                    menu_item_id=row.menu_item_id,
                    quantity=row.quantity,
                    price=row.price,
                    notes=row.notes,
                )
                for row in cart_rows
            ])
            await self.db.execute(delete(CartItem).where(CartItem.user_id == user_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception(f"Order placement failed for user #{user_id}, rolled back")
            raise

        logger.info(
            f"Order #{order.id} placed by user #{user_id} at restaurant #{restaurant_id} "
            f"({len(cart_rows)} lines, total {total_amount:.2f})"
        )
        return order

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_for_customer(self, customer_id: int) -> list[dict[str, Any]]:
        result = await self.db.execute(
            _summary_query()
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return [dict(row) for row in result.mappings()]

    async def list_for_restaurant(self, restaurant_id: int) -> list[dict[str, Any]]:
        result = await self.db.execute(
            _summary_query()
            .where(Order.restaurant_id == restaurant_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return [dict(row) for row in result.mappings()]

    async def list_recent_for_owner(self, owner_id: int, limit: int = 10) -> list[dict[str, Any]]:
        """Latest orders across every restaurant the owner has."""
        result = await self.db.execute(
            _summary_query()
            .where(Restaurant.user_id == owner_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return [dict(row) for row in result.mappings()]

    async def list_all(self) -> list[dict[str, Any]]:
        result = await self.db.execute(
            _summary_query().order_by(Order.created_at.desc(), Order.id.desc())
        )
        return [dict(row) for row in result.mappings()]

    async def get_detail(
        self,
        order_id: int,
        customer_id: Optional[int] = None,
        restaurant_id: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Order summary plus its line items, optionally scoped to a customer
        or a restaurant.

        Raises:
            NotFound: No order matches the id and scope
        """
        query = _summary_query().where(Order.id == order_id)
        if customer_id is not None:
            query = query.where(Order.customer_id == customer_id)
        if restaurant_id is not None:
            query = query.where(Order.restaurant_id == restaurant_id)

        result = await self.db.execute(query)
        order = result.mappings().one_or_none()
        if order is None:
            raise NotFound("Order not found")

        items = await self.db.execute(
            select(
                OrderItem.menu_item_id,
                OrderItem.quantity,
                OrderItem.price,
                OrderItem.notes,
                MenuItem.name,
                MenuItem.description,
                MenuItem.image_url,
            )
            .join(MenuItem, OrderItem.menu_item_id == MenuItem.id)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        order_items = []
        for row in items.mappings():
            line = dict(row)
            line["line_total"] = round(row["price"] * row["quantity"], 2)
            order_items.append(line)

        return {"order": dict(order), "order_items": order_items}

    async def track(self, order_id: int) -> dict[str, Any]:
        """Public tracking view of an order."""
        result = await self.db.execute(
            select(
                Order.id,
                Order.status,
                Order.created_at,
                Order.estimated_delivery_time,
                Restaurant.name.label("restaurant_name"),
            )
            .join(Restaurant, Order.restaurant_id == Restaurant.id)
            .where(Order.id == order_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFound("Order not found")

        return {
            "order_id": row.id,
            "status": row.status,
            "status_description": order_lifecycle.describe(row.status),
            "next_status": order_lifecycle.next_status(row.status),
            "created_at": row.created_at,
            "estimated_delivery_time": row.estimated_delivery_time,
            "restaurant_name": row.restaurant_name,
        }

    # =========================================================================
    # STATUS TRANSITIONS
    # =========================================================================

    async def cancel_by_customer(
        self, order_id: int, customer_id: int, reason: Optional[str] = None
    ) -> Order:
        """
        Raises:
            NotFound: Not the caller's order
            BusinessRuleViolation: Order already past the accepted stage
        """
        result = await self.db.execute(
            select(Order).where(Order.id == order_id, Order.customer_id == customer_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found")

        if not order_lifecycle.can_customer_cancel(order.status):
            raise BusinessRuleViolation("Order cannot be cancelled at this stage")

        order.status = OrderStatus.CANCELLED
        order.updated_at = utcnow()
        await self.db.commit()

        logger.info(
            f"Order #{order.id} cancelled by customer #{customer_id}"
            + (f": {reason}" if reason else "")
        )
        return order

    async def set_status(
        self,
        order_id: int,
        status: OrderStatus,
        role: UserRole,
        restaurant_id: Optional[int] = None,
    ) -> Order:
        """
        Write a new status on behalf of a restaurant owner or admin.

        No precondition on the current status; the last write wins.

        Raises:
            ValidationFailed: Status not settable by this role
            NotFound: No such order (in that restaurant, when scoped)
        """
        if status not in order_lifecycle.settable_statuses(role):
            allowed = sorted(s.value for s in order_lifecycle.settable_statuses(role))
            raise ValidationFailed(f"Invalid status. Options: {allowed}")

        query = select(Order).where(Order.id == order_id)
        if restaurant_id is not None:
            query = query.where(Order.restaurant_id == restaurant_id)

        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFound("Order not found")

        previous = order.status
        order.status = status
        order.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Order #{order.id} status {previous.value} -> {status.value} ({role.value})")
        return order
