"""
Access-Control Dependencies

Request pipeline for protected routes:

    bearer credential -> Identity -> (optional) full User -> role gate
                                                          -> ownership check

    - No credential           -> 401 Access token required
    - Invalid/expired token   -> 403 Invalid or expired token
    - Identity's user deleted -> 404 User not found
    - Role not allowed        -> 403 Insufficient permissions
    - Not the owner           -> 403
"""

from typing import Optional

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.config import Settings
from food_delivery.core.errors import AuthenticationRequired, NotFound, PermissionDenied
from food_delivery.core.security import Identity, decode_access_token
from food_delivery.database import get_db
from food_delivery.models import Order, Restaurant, User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Identity:
    """Decode the bearer token into the caller identity."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired("Access token required")
    return decode_access_token(settings, credentials.credentials)


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the full user record behind the token."""
    user = await db.get(User, identity.id)
    if user is None:
        raise NotFound("User not found")
    return user


def require_role(*roles: UserRole):
    """
    Build a dependency that admits only the given roles.

    Example:
        @router.get("/users", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """
    allowed = frozenset(roles)

    async def checker(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise PermissionDenied("Insufficient permissions")
        return identity

    return checker


require_customer = require_role(UserRole.CUSTOMER)
require_restaurant_owner = require_role(UserRole.RESTAURANT)
require_admin = require_role(UserRole.ADMIN)


async def get_owned_restaurant(
    restaurant_id: int = Path(..., ge=1),
    identity: Identity = Depends(require_restaurant_owner),
    db: AsyncSession = Depends(get_db),
) -> Restaurant:
    """Restaurant from the path, provided the caller owns it."""
    result = await db.execute(
        select(Restaurant).where(
            Restaurant.id == restaurant_id,
            Restaurant.user_id == identity.id,
        )
    )
    restaurant = result.scalar_one_or_none()
    if restaurant is None:
        raise PermissionDenied("Restaurant not found or access denied")
    return restaurant


async def get_accessible_order(
    order_id: int = Path(..., ge=1),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> Order:
    """
    Order from the path, provided the caller is its customer, the owner of
    its restaurant, or an admin.
    """
    order = await db.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")

    if identity.role == UserRole.ADMIN or order.customer_id == identity.id:
        return order

    if identity.role == UserRole.RESTAURANT:
        owned = await db.execute(
            select(Restaurant.id).where(
                Restaurant.id == order.restaurant_id,
                Restaurant.user_id == identity.id,
            )
        )
        if owned.scalar_one_or_none() is not None:
            return order

    raise PermissionDenied("Access denied to this order")
