"""
Customer-Facing Endpoints

Public browsing:
    - GET /users/restaurants: Approved restaurants
    - GET /users/restaurants/{id}: One approved restaurant
    - GET /users/restaurants/{id}/menu: Available menu items

Cart (authenticated):
    - GET/POST/DELETE /users/cart, PUT/DELETE /users/cart/{item_id}

Orders (authenticated):
    - POST /users/orders: Place an order from the cart
    - GET /users/orders: Own order history
    - GET /users/orders/{id}: Own order with line items
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.config import Settings
from food_delivery.core.errors import NotFound
from food_delivery.core.security import Identity
from food_delivery.database import get_db
from food_delivery.deps import get_app_settings, get_identity
from food_delivery.models import MenuItem, Restaurant, User
from food_delivery.schemas import (
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
    ErrorResponse,
    MenuItemResponse,
    MenuResponse,
    MessageResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderPlace,
    OrderPlacedResponse,
    RestaurantEnvelope,
    RestaurantListResponse,
)
from food_delivery.services import CartService, OrderService

router = APIRouter(prefix="/users", tags=["Customers"])


def public_restaurant_query():
    return (
        select(
            Restaurant.id,
            Restaurant.name,
            Restaurant.description,
            Restaurant.address,
            Restaurant.phone,
            Restaurant.cuisine_type,
            Restaurant.is_approved,
            Restaurant.created_at,
            User.name.label("owner_name"),
        )
        .join(User, Restaurant.user_id == User.id)
        .where(Restaurant.is_approved.is_(True))
    )


# =============================================================================
# PUBLIC BROWSING
# =============================================================================

@router.get("/restaurants", response_model=RestaurantListResponse)
async def list_restaurants(db: AsyncSession = Depends(get_db)) -> RestaurantListResponse:
    """Approved restaurants, alphabetically."""
    result = await db.execute(public_restaurant_query().order_by(Restaurant.name))
    return RestaurantListResponse(restaurants=[dict(row) for row in result.mappings()])


@router.get(
    "/restaurants/{restaurant_id}",
    response_model=RestaurantEnvelope,
    responses={404: {"model": ErrorResponse}},
)
async def get_restaurant(
    restaurant_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> RestaurantEnvelope:
    result = await db.execute(public_restaurant_query().where(Restaurant.id == restaurant_id))
    restaurant = result.mappings().one_or_none()
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return RestaurantEnvelope(restaurant=dict(restaurant))


@router.get(
    "/restaurants/{restaurant_id}/menu",
    response_model=MenuResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_menu(
    restaurant_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    """Available items of an approved restaurant, by category then name."""
    approved = await db.execute(
        select(Restaurant.id).where(
            Restaurant.id == restaurant_id,
            Restaurant.is_approved.is_(True),
        )
    )
    if approved.scalar_one_or_none() is None:
        raise NotFound("Restaurant not found")

    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.is_available.is_(True))
        .order_by(MenuItem.category, MenuItem.name)
    )
    return MenuResponse(
        menu_items=[MenuItemResponse.model_validate(item) for item in result.scalars()]
    )


# =============================================================================
# CART
# =============================================================================

@router.get("/cart", response_model=CartResponse)
async def get_cart(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    return CartResponse(**await CartService(db).list_items(identity.id))


@router.post(
    "/cart",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def add_to_cart(
    data: CartItemAdd,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    service = CartService(db, single_restaurant=settings.cart_single_restaurant)
    _, created = await service.add_item(identity.id, data)
    return MessageResponse(
        message="Item added to cart successfully" if created else "Cart updated successfully"
    )


@router.put("/cart/{item_id}", response_model=MessageResponse)
async def update_cart_item(
    data: CartItemUpdate,
    item_id: int = Path(..., ge=1),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await CartService(db).update_quantity(identity.id, item_id, data.quantity)
    return MessageResponse(message="Cart updated successfully")


@router.delete("/cart/{item_id}", response_model=MessageResponse)
async def remove_cart_item(
    item_id: int = Path(..., ge=1),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await CartService(db).remove_item(identity.id, item_id)
    return MessageResponse(message="Item removed from cart successfully")


@router.delete("/cart", response_model=MessageResponse)
async def clear_cart(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await CartService(db).clear(identity.id)
    return MessageResponse(message="Cart cleared successfully")


# =============================================================================
# ORDERS
# =============================================================================

@router.post(
    "/orders",
    response_model=OrderPlacedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Place Order",
)
async def place_order(
    data: OrderPlace,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> OrderPlacedResponse:
    """Convert the caller's cart into a pending order and empty the cart."""
    service = OrderService(db, estimated_delivery_minutes=settings.estimated_delivery_minutes)
    order = await service.place_order(identity.id, data)
    return OrderPlacedResponse(
        message="Order placed successfully",
        order_id=order.id,
        total_amount=order.total_amount,
        estimated_delivery_time=order.estimated_delivery_time,
    )


@router.get("/orders", response_model=OrderListResponse)
async def order_history(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    return OrderListResponse(orders=await OrderService(db).list_for_customer(identity.id))


@router.get(
    "/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def order_detail(
    order_id: int = Path(..., ge=1),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> OrderDetailResponse:
    detail = await OrderService(db).get_detail(order_id, customer_id=identity.id)
    return OrderDetailResponse(**detail)
