"""
Order Endpoints

    - GET /orders: All orders (admin)
    - GET /orders/stats/overview: Count per status, revenue (admin)
    - GET /orders/stats/by-date: Per-day stats for a date range (admin)
    - GET /orders/stats/top-restaurants: Busiest approved restaurants (admin)
    - GET /orders/{id}: Order with items (customer, owning restaurant, admin)
    - PUT /orders/{id}/status: Set any status (admin)
    - PUT /orders/{id}/cancel: Cancel own pending/accepted order (customer)
    - GET /orders/{id}/track: Public tracking
"""

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.errors import ValidationFailed
from food_delivery.core.security import Identity
from food_delivery.database import get_db
from food_delivery.deps import get_accessible_order, require_admin, require_customer
from food_delivery.models import Order, UserRole
from food_delivery.schemas import (
    ErrorResponse,
    MessageResponse,
    OrderCancel,
    OrderDetailResponse,
    OrderListResponse,
    OrderStatusUpdate,
    OrderTrackingResponse,
)
from food_delivery.services import AnalyticsService, OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


# =============================================================================
# ADMIN LISTING & STATS
# =============================================================================

@router.get("", response_model=OrderListResponse, dependencies=[Depends(require_admin)])
async def list_orders(db: AsyncSession = Depends(get_db)) -> OrderListResponse:
    return OrderListResponse(orders=await OrderService(db).list_all())


@router.get("/stats/overview", dependencies=[Depends(require_admin)])
async def stats_overview(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return {"stats": await AnalyticsService(db).order_overview()}


@router.get("/stats/by-date", dependencies=[Depends(require_admin)])
async def stats_by_date(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    if start_date is None or end_date is None:
        raise ValidationFailed("Start date and end date are required")
    if start_date > end_date:
        raise ValidationFailed("Start date must not be after end date")
    return {"daily_stats": await AnalyticsService(db).orders_by_date(start_date, end_date)}


@router.get("/stats/top-restaurants", dependencies=[Depends(require_admin)])
async def stats_top_restaurants(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    return {"top_restaurants": await AnalyticsService(db).top_restaurants(limit)}


# =============================================================================
# SINGLE ORDER
# =============================================================================

@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_order(
    order: Order = Depends(get_accessible_order),
    db: AsyncSession = Depends(get_db),
) -> OrderDetailResponse:
    return OrderDetailResponse(**await OrderService(db).get_detail(order.id))


@router.put(
    "/{order_id}/status",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
    responses={404: {"model": ErrorResponse}},
)
async def admin_update_status(
    data: OrderStatusUpdate,
    order_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await OrderService(db).set_status(order_id, data.status, role=UserRole.ADMIN)
    return MessageResponse(message="Order status updated successfully")


@router.put(
    "/{order_id}/cancel",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def cancel_order(
    data: Optional[OrderCancel] = None,
    order_id: int = Path(..., ge=1),
    identity: Identity = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Cancel the caller's order while it is pending or accepted."""
    reason = data.reason if data else None
    await OrderService(db).cancel_by_customer(order_id, identity.id, reason)
    return MessageResponse(message="Order cancelled successfully")


@router.get(
    "/{order_id}/track",
    response_model=OrderTrackingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def track_order(
    order_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> OrderTrackingResponse:
    return OrderTrackingResponse(**await OrderService(db).track(order_id))
