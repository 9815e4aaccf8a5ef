"""
Restaurant Owner Self-Service Endpoints

All routes require the restaurant role; routes with a restaurant id in
the path additionally require that the caller owns that restaurant.

    - GET  /restaurants/my-restaurants
    - GET  /restaurants/orders/recent
    - POST /restaurants
    - PUT  /restaurants/{rid}
    - GET/POST /restaurants/{rid}/menu
    - PUT/DELETE /restaurants/{rid}/menu/{mid}
    - GET  /restaurants/{rid}/orders
    - GET  /restaurants/{rid}/orders/{oid}
    - PUT  /restaurants/{rid}/orders/{oid}/status
"""

import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.errors import BusinessRuleViolation, NotFound, ValidationFailed
from food_delivery.core.security import Identity
from food_delivery.database import get_db
from food_delivery.deps import get_owned_restaurant, require_restaurant_owner
from food_delivery.models import CartItem, MenuItem, OrderItem, Restaurant, UserRole
from food_delivery.schemas import (
    ErrorResponse,
    MenuItemCreate,
    MenuItemCreatedResponse,
    MenuItemResponse,
    MenuItemUpdate,
    MenuResponse,
    MessageResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderStatusUpdate,
    RestaurantCreate,
    RestaurantCreatedResponse,
    RestaurantListResponse,
    RestaurantResponse,
    RestaurantUpdate,
)
from food_delivery.services import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/restaurants",
    tags=["Restaurant Owners"],
    responses={403: {"model": ErrorResponse}},
)

# Columns that cannot be cleared once set
REQUIRED_RESTAURANT_FIELDS = {"name", "address"}
REQUIRED_MENU_FIELDS = {"name", "price", "is_available"}


def _changes(data, required: set) -> dict:
    changes = data.model_dump(exclude_unset=True)
    return {k: v for k, v in changes.items() if not (k in required and v is None)}


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.get("/my-restaurants", response_model=RestaurantListResponse)
async def my_restaurants(
    identity: Identity = Depends(require_restaurant_owner),
    db: AsyncSession = Depends(get_db),
) -> RestaurantListResponse:
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.user_id == identity.id)
        .order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
    )
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.model_validate(r) for r in result.scalars()]
    )


@router.get("/orders/recent", response_model=OrderListResponse)
async def recent_orders(
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_restaurant_owner),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Latest orders across all of the caller's restaurants."""
    orders = await OrderService(db).list_recent_for_owner(identity.id, limit=limit)
    return OrderListResponse(orders=orders)


@router.post("", response_model=RestaurantCreatedResponse, status_code=201)
async def create_restaurant(
    data: RestaurantCreate,
    identity: Identity = Depends(require_restaurant_owner),
    db: AsyncSession = Depends(get_db),
) -> RestaurantCreatedResponse:
    """Create a restaurant; it stays hidden until an admin approves it."""
    restaurant = Restaurant(user_id=identity.id, **data.model_dump())
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)

    logger.info(f"Restaurant #{restaurant.id} created by user #{identity.id}, awaiting approval")
    return RestaurantCreatedResponse(
        message="Restaurant created successfully",
        restaurant_id=restaurant.id,
    )


@router.put("/{restaurant_id}", response_model=MessageResponse)
async def update_restaurant(
    data: RestaurantUpdate,
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    changes = _changes(data, REQUIRED_RESTAURANT_FIELDS)
    if not changes:
        raise ValidationFailed("No fields to update")

    for field, value in changes.items():
        setattr(restaurant, field, value)
    await db.commit()
    return MessageResponse(message="Restaurant updated successfully")


# =============================================================================
# MENU
# =============================================================================

@router.get("/{restaurant_id}/menu", response_model=MenuResponse)
async def owner_menu(
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    """Full menu including unavailable items."""
    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant.id)
        .order_by(MenuItem.category, MenuItem.name)
    )
    return MenuResponse(
        menu_items=[MenuItemResponse.model_validate(item) for item in result.scalars()]
    )


@router.post("/{restaurant_id}/menu", response_model=MenuItemCreatedResponse, status_code=201)
async def add_menu_item(
    data: MenuItemCreate,
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MenuItemCreatedResponse:
    item = MenuItem(restaurant_id=restaurant.id, **data.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return MenuItemCreatedResponse(
        message="Menu item added successfully",
        menu_item_id=item.id,
    )


async def _get_menu_item(db: AsyncSession, restaurant_id: int, menu_item_id: int) -> MenuItem:
    result = await db.execute(
        select(MenuItem).where(
            MenuItem.id == menu_item_id,
            MenuItem.restaurant_id == restaurant_id,
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound("Menu item not found")
    return item


@router.put(
    "/{restaurant_id}/menu/{menu_item_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_menu_item(
    data: MenuItemUpdate,
    menu_item_id: int = Path(..., ge=1),
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    changes = _changes(data, REQUIRED_MENU_FIELDS)
    if not changes:
        raise ValidationFailed("No fields to update")

    item = await _get_menu_item(db, restaurant.id, menu_item_id)
    for field, value in changes.items():
        setattr(item, field, value)
    await db.commit()
    return MessageResponse(message="Menu item updated successfully")


@router.delete(
    "/{restaurant_id}/menu/{menu_item_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_menu_item(
    menu_item_id: int = Path(..., ge=1),
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a menu item of this restaurant.

    Items that appear in past orders are kept for order history; mark them
    unavailable instead.
    """
    item = await _get_menu_item(db, restaurant.id, menu_item_id)

    ordered = await db.execute(
        select(OrderItem.id).where(OrderItem.menu_item_id == item.id).limit(1)
    )
    if ordered.scalar_one_or_none() is not None:
        raise BusinessRuleViolation(
            "Menu item appears in existing orders; mark it unavailable instead"
        )

    await db.execute(delete(CartItem).where(CartItem.menu_item_id == item.id))
    await db.delete(item)
    await db.commit()
    return MessageResponse(message="Menu item deleted successfully")


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/{restaurant_id}/orders", response_model=OrderListResponse)
async def restaurant_orders(
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    return OrderListResponse(orders=await OrderService(db).list_for_restaurant(restaurant.id))


@router.get(
    "/{restaurant_id}/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def restaurant_order_detail(
    order_id: int = Path(..., ge=1),
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> OrderDetailResponse:
    detail = await OrderService(db).get_detail(order_id, restaurant_id=restaurant.id)
    return OrderDetailResponse(**detail)


@router.put(
    "/{restaurant_id}/orders/{order_id}/status",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_order_status(
    data: OrderStatusUpdate,
    order_id: int = Path(..., ge=1),
    restaurant: Restaurant = Depends(get_owned_restaurant),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await OrderService(db).set_status(
        order_id,
        data.status,
        role=UserRole.RESTAURANT,
        restaurant_id=restaurant.id,
    )
    return MessageResponse(message="Order status updated successfully")
