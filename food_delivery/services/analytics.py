"""
Admin Analytics

Read-only aggregate queries over users, restaurants and orders:
- Dashboard counters
- Revenue bucketed by day/week/month over the trailing six months
- Merged recent-activity feed
- Order overview, per-day stats for a date range, top restaurants

Time buckets are computed in SQL and grouped by the database; the bucket
label expression differs between SQLite (strftime) and PostgreSQL
(to_char).
"""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.models import Order, OrderStatus, Restaurant, User, UserRole, utcnow


REVENUE_WINDOW_MONTHS = 6

PERIOD_FORMATS = {
    "sqlite": {
        "day": "%Y-%m-%d",
        "week": "%Y-W%W",
        "month": "%Y-%m",
    },
    "postgresql": {
        "day": "YYYY-MM-DD",
        "week": 'IYYY-"W"IW',
        "month": "YYYY-MM",
    },
}

PERIODS = ("day", "week", "month")


def months_ago(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_bucket(period: str, dialect: str):
    """
    SQL expression turning ``orders.created_at`` into its bucket label,
    e.g. ``2026-10`` for a month or ``2026-10-18`` for a day.

    Raises:
        ValueError: Unsupported database dialect
    """
    if dialect == "postgresql":
        return func.to_char(Order.created_at, PERIOD_FORMATS["postgresql"][period])
    if dialect == "sqlite":
        return func.strftime(PERIOD_FORMATS["sqlite"][period], Order.created_at)
    raise ValueError(f"No period bucketing for dialect: {dialect}")


def _money(value) -> float:
    return round(float(value or 0.0), 2)


class AnalyticsService:
    """Aggregations for the admin dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def dashboard(self) -> dict[str, Any]:
        user_row = (await self.db.execute(
            select(
                func.count(User.id),
                func.count(case((User.role == UserRole.CUSTOMER, 1))),
                func.count(case((User.role == UserRole.RESTAURANT, 1))),
                func.count(case((User.role == UserRole.ADMIN, 1))),
            )
        )).one()

        restaurant_row = (await self.db.execute(
            select(
                func.count(Restaurant.id),
                func.count(case((Restaurant.is_approved.is_(True), 1))),
                func.count(case((Restaurant.is_approved.is_(False), 1))),
            )
        )).one()

        order_row = (await self.db.execute(
            select(
                func.count(Order.id),
                func.sum(Order.total_amount),
                func.avg(Order.total_amount),
            )
        )).one()

        return {
            "user_stats": {
                "total_users": user_row[0],
                "customers": user_row[1],
                "restaurants": user_row[2],
                "admins": user_row[3],
            },
            "restaurant_stats": {
                "total_restaurants": restaurant_row[0],
                "approved_restaurants": restaurant_row[1],
                "pending_restaurants": restaurant_row[2],
            },
            "order_stats": {
                "total_orders": order_row[0],
                "total_revenue": _money(order_row[1]),
                "avg_order_value": _money(order_row[2]),
            },
        }

    # =========================================================================
    # REVENUE
    # =========================================================================

    async def _grouped_by_period(self, period: str, *conditions) -> list[dict[str, Any]]:
        """One row per bucket: label, order count, revenue, average order value."""
        bucket = period_bucket(period, self.db.get_bind().dialect.name).label("period")
        result = await self.db.execute(
            select(
                bucket,
                func.count(Order.id).label("order_count"),
                func.sum(Order.total_amount).label("revenue"),
                func.avg(Order.total_amount).label("avg_order_value"),
            )
            .where(*conditions)
            .group_by(bucket)
            .order_by(bucket)
        )
        return [
            {
                "period": row.period,
                "order_count": row.order_count,
                "revenue": _money(row.revenue),
                "avg_order_value": _money(row.avg_order_value),
            }
            for row in result.all()
        ]

    async def revenue_by_period(self, period: str = "month") -> dict[str, Any]:
        """Revenue per day/week/month for the trailing six months, newest first."""
        if period not in PERIODS:
            period = "month"

        since = months_ago(utcnow(), REVENUE_WINDOW_MONTHS)
        buckets = await self._grouped_by_period(period, Order.created_at >= since)
        buckets.reverse()
        return {"period": period, "since": since, "revenue_data": buckets}

    async def orders_by_date(self, start: date, end: date) -> list[dict[str, Any]]:
        """Per-day order count and revenue between two dates, inclusive."""
        start_at = datetime.combine(start, time.min, tzinfo=timezone.utc)
        end_at = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)

        buckets = await self._grouped_by_period(
            "day",
            Order.created_at >= start_at,
            Order.created_at < end_at,
        )
        return [
            {
                "date": b["period"],
                "order_count": b["order_count"],
                "daily_revenue": b["revenue"],
            }
            for b in buckets
        ]

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def order_overview(self) -> dict[str, Any]:
        """Order count per status plus overall revenue."""
        result = await self.db.execute(
            select(Order.status, func.count(Order.id), func.sum(Order.total_amount))
            .group_by(Order.status)
        )
        per_status = {status.value: 0 for status in OrderStatus}
        total_orders = 0
        total_revenue = 0.0
        for status, count, revenue in result.all():
            per_status[OrderStatus(status).value] = count
            total_orders += count
            total_revenue += revenue or 0.0

        stats: dict[str, Any] = {"total_orders": total_orders}
        stats.update({f"{name}_orders": count for name, count in per_status.items()})
        stats["total_revenue"] = _money(total_revenue)
        return stats

    async def top_restaurants(self, limit: int = 10) -> list[dict[str, Any]]:
        order_count = func.count(Order.id)
        result = await self.db.execute(
            select(
                Restaurant.id,
                Restaurant.name,
                order_count.label("order_count"),
                func.sum(Order.total_amount).label("total_revenue"),
                func.avg(Order.total_amount).label("avg_order_value"),
            )
            .outerjoin(Order, Order.restaurant_id == Restaurant.id)
            .where(Restaurant.is_approved.is_(True))
            .group_by(Restaurant.id, Restaurant.name)
            .order_by(order_count.desc(), Restaurant.id)
            .limit(limit)
        )
        return [
            {
                "restaurant_id": row.id,
                "restaurant_name": row.name,
                "order_count": row.order_count,
                "total_revenue": _money(row.total_revenue),
                "avg_order_value": _money(row.avg_order_value),
            }
            for row in result.all()
        ]

    # =========================================================================
    # ACTIVITY FEED
    # =========================================================================

    async def recent_activity(self, limit: int = 20) -> list[dict[str, Any]]:
        """Newest orders, restaurants and users merged by timestamp."""
        orders = await self.db.execute(
            select(Order.id, Order.created_at, Order.total_amount, User.name)
            .join(User, Order.customer_id == User.id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        restaurants = await self.db.execute(
            select(Restaurant.id, Restaurant.created_at, Restaurant.name, User.name.label("owner"))
            .join(User, Restaurant.user_id == User.id)
            .order_by(Restaurant.created_at.desc())
            .limit(limit)
        )
        users = await self.db.execute(
            select(User.id, User.created_at, User.name, User.role)
            .order_by(User.created_at.desc())
            .limit(limit)
        )

        activities = [
            {
                "type": "order",
                "item_id": row.id,
                "timestamp": row.created_at,
                "description": f"Order #{row.id} - ${row.total_amount:.2f}",
                "user_name": row.name,
            }
            for row in orders.all()
        ]
        activities += [
            {
                "type": "restaurant",
                "item_id": row.id,
                "timestamp": row.created_at,
                "description": f"Restaurant: {row.name}",
                "user_name": row.owner,
            }
            for row in restaurants.all()
        ]
        activities += [
            {
                "type": "user",
                "item_id": row.id,
                "timestamp": row.created_at,
                "description": f"User: {row.name} ({UserRole(row.role).value})",
                "user_name": row.name,
            }
            for row in users.all()
        ]

        activities.sort(key=lambda a: a["timestamp"], reverse=True)
        return activities[:limit]
