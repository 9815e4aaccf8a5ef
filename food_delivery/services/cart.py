"""
Cart Service

Per-user shopping cart. Adding a menu item that is already in the cart
merges quantities into the existing row. Whether all rows share one
restaurant is checked at order placement, unless the
``cart_single_restaurant`` setting asks for it at insertion time.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from food_delivery.models import CartItem, MenuItem, Restaurant
from food_delivery.schemas import MAX_ITEM_QUANTITY, CartItemAdd

logger = logging.getLogger(__name__)


class CartService:
    """Cart operations for one session."""

    def __init__(self, db: AsyncSession, single_restaurant: bool = False):
        self.db = db
        self.single_restaurant = single_restaurant

    async def list_items(self, user_id: int) -> dict[str, Any]:
        """Cart rows joined to menu item and restaurant, with line and cart totals."""
        result = await self.db.execute(
            select(
                CartItem.id,
                CartItem.quantity,
                CartItem.notes,
                CartItem.created_at,
                MenuItem.id.label("menu_item_id"),
                MenuItem.name,
                MenuItem.description,
                MenuItem.price,
                MenuItem.image_url,
                Restaurant.id.label("restaurant_id"),
                Restaurant.name.label("restaurant_name"),
            )
            .join(MenuItem, CartItem.menu_item_id == MenuItem.id)
            .join(Restaurant, CartItem.restaurant_id == Restaurant.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        )

        lines = []
        for row in result.mappings():
            line = dict(row)
            line["line_total"] = round(row["price"] * row["quantity"], 2)
            lines.append(line)

        total = round(sum(line["price"] * line["quantity"] for line in lines), 2)
        return {"cart_items": lines, "total": total}

    async def add_item(self, user_id: int, data: CartItemAdd) -> tuple[CartItem, bool]:
        """
        Add a menu item or increase the quantity of an existing row.

        Returns:
            (cart row, created) where created is False for a merge

        Raises:
            NotFound: Item missing, unavailable, or not in the stated restaurant
            BusinessRuleViolation: Eager single-restaurant check failed
            ValidationFailed: Merged quantity would exceed the per-item cap
        """
        menu_item = await self.db.execute(
            select(MenuItem.id).where(
                MenuItem.id == data.menu_item_id,
                MenuItem.restaurant_id == data.restaurant_id,
                MenuItem.is_available.is_(True),
            )
        )
        if menu_item.scalar_one_or_none() is None:
            raise NotFound("Menu item not found or unavailable")

        if self.single_restaurant:
            other = await self.db.execute(
                select(CartItem.id).where(
                    CartItem.user_id == user_id,
                    CartItem.restaurant_id != data.restaurant_id,
                ).limit(1)
            )
            if other.scalar_one_or_none() is not None:
                raise BusinessRuleViolation(
                    "Cart already holds items from another restaurant"
                )

        result = await self.db.execute(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.menu_item_id == data.menu_item_id,
            )
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            if existing.quantity + data.quantity > MAX_ITEM_QUANTITY:
                raise ValidationFailed(
                    f"Quantity per item cannot exceed {MAX_ITEM_QUANTITY}"
                )
            existing.quantity += data.quantity
            if data.notes:
                existing.notes = data.notes
            await self.db.commit()
            return existing, False

        item = CartItem(
            user_id=user_id,
            restaurant_id=data.restaurant_id,
            menu_item_id=data.menu_item_id,
            quantity=data.quantity,
            notes=data.notes,
        )
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item, True

    async def _get_own(self, user_id: int, item_id: int) -> Optional[CartItem]:
        result = await self.db.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def update_quantity(self, user_id: int, item_id: int, quantity: int) -> CartItem:
        item = await self._get_own(user_id, item_id)
        if item is None:
            raise NotFound("Cart item not found")
        item.quantity = quantity
        await self.db.commit()
        return item

    async def remove_item(self, user_id: int, item_id: int) -> None:
        item = await self._get_own(user_id, item_id)
        if item is None:
            raise NotFound("Cart item not found")
        await self.db.delete(item)
        await self.db.commit()

    async def clear(self, user_id: int) -> int:
        """Delete every row of the user's cart; returns the number removed."""
        result = await self.db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        await self.db.commit()
        return result.rowcount or 0
