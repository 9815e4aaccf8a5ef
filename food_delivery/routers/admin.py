"""
Admin Endpoints

Every route requires the admin role.

Users:
    - GET /admin/users, GET /admin/users/{id}
    - PUT /admin/users/{id}/role
    - DELETE /admin/users/{id}

Restaurants:
    - GET /admin/restaurants/pending
    - PUT /admin/restaurants/{id}/approval
    - GET /admin/restaurants, GET /admin/restaurants/{id}

Analytics:
    - GET /admin/analytics/dashboard
    - GET /admin/analytics/recent-activity
    - GET /admin/analytics/revenue

System:
    - GET /admin/system/health
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.errors import BusinessRuleViolation, NotFound
from food_delivery.core.security import Identity
from food_delivery.database import get_db
from food_delivery.deps import require_admin
from food_delivery.models import CartItem, Order, Restaurant, User
from food_delivery.schemas import (
    ApprovalUpdate,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    RestaurantEnvelope,
    RestaurantListResponse,
    RoleUpdate,
    UserEnvelope,
    UserListResponse,
    UserResponse,
)
from food_delivery.services import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={403: {"model": ErrorResponse}},
)


def admin_restaurant_query():
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
            User.email.label("owner_email"),
        )
        .join(User, Restaurant.user_id == User.id)
    )


# =============================================================================
# USERS
# =============================================================================

@router.get("/users", response_model=UserListResponse)
async def list_users(db: AsyncSession = Depends(get_db)) -> UserListResponse:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return UserListResponse(users=[UserResponse.model_validate(u) for u in result.scalars()])


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/users/{user_id}", response_model=UserEnvelope, responses={404: {"model": ErrorResponse}})
async def get_user(
    user_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(await _get_user(db, user_id)))


@router.put("/users/{user_id}/role", response_model=MessageResponse)
async def update_user_role(
    data: RoleUpdate,
    user_id: int = Path(..., ge=1),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    user = await _get_user(db, user_id)
    previous = user.role
    user.role = data.role
    await db.commit()

    logger.info(
        f"Admin #{admin.id} changed role of user #{user.id}: "
        f"{previous.value} -> {data.role.value}"
    )
    return MessageResponse(message="User role updated successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(..., ge=1),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a user. Nothing cascades: users that still own restaurants,
    have placed orders or hold cart items cannot be deleted.
    """
    user = await _get_user(db, user_id)

    referenced = await db.execute(
        select(
            or_(
                exists().where(Restaurant.user_id == user.id),
                exists().where(Order.customer_id == user.id),
                exists().where(CartItem.user_id == user.id),
            )
        )
    )
    if referenced.scalar():
        raise BusinessRuleViolation(
            "User still owns restaurants, orders or cart items and cannot be deleted"
        )

    await db.delete(user)
    await db.commit()

    logger.info(f"Admin #{admin.id} deleted user #{user_id}")
    return MessageResponse(message="User deleted successfully")


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.get("/restaurants/pending", response_model=RestaurantListResponse)
async def pending_restaurants(db: AsyncSession = Depends(get_db)) -> RestaurantListResponse:
    """Restaurants awaiting approval, oldest first."""
    result = await db.execute(
        admin_restaurant_query()
        .where(Restaurant.is_approved.is_(False))
        .order_by(Restaurant.created_at.asc(), Restaurant.id.asc())
    )
    return RestaurantListResponse(restaurants=[dict(row) for row in result.mappings()])


@router.put("/restaurants/{restaurant_id}/approval", response_model=MessageResponse)
async def set_restaurant_approval(
    data: ApprovalUpdate,
    restaurant_id: int = Path(..., ge=1),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")

    restaurant.is_approved = data.is_approved
    await db.commit()

    verdict = "approved" if data.is_approved else "rejected"
    logger.info(f"Admin #{admin.id} {verdict} restaurant #{restaurant.id}")
    return MessageResponse(message=f"Restaurant {verdict} successfully")


@router.get("/restaurants", response_model=RestaurantListResponse)
async def all_restaurants(db: AsyncSession = Depends(get_db)) -> RestaurantListResponse:
    result = await db.execute(
        admin_restaurant_query().order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
    )
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
    result = await db.execute(admin_restaurant_query().where(Restaurant.id == restaurant_id))
    restaurant = result.mappings().one_or_none()
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return RestaurantEnvelope(restaurant=dict(restaurant))


# =============================================================================
# ANALYTICS
# =============================================================================

@router.get("/analytics/dashboard")
async def analytics_dashboard(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """User, restaurant and order counters."""
    return await AnalyticsService(db).dashboard()


@router.get("/analytics/recent-activity")
async def recent_activity(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    return {"activities": await AnalyticsService(db).recent_activity(limit)}


@router.get("/analytics/revenue")
async def revenue(
    period: str = Query("month", description="day, week or month"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Revenue over the trailing six months, newest bucket first."""
    return await AnalyticsService(db).revenue_by_period(period)


# =============================================================================
# SYSTEM
# =============================================================================

@router.get("/system/health", response_model=HealthResponse)
async def system_health(request: Request) -> HealthResponse:
    healthy = await request.app.state.database.ping()
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        database="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(),
    )
