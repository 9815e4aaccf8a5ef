"""
Order Status Workflow

    pending -> accepted -> preparing -> ready -> delivered
    cancelled (terminal)

Who may set which status:
    - customer:   cancel only, and only from pending or accepted
    - restaurant: any of accepted/preparing/ready/delivered/cancelled,
                  without a current-state precondition
    - admin:      any status, without a current-state precondition
"""

from typing import Optional

from food_delivery.models import OrderStatus, UserRole


FORWARD_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED})

RESTAURANT_SETTABLE = frozenset({
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})

STATUS_DESCRIPTIONS = {
    OrderStatus.PENDING: "Order received, waiting for restaurant confirmation",
    OrderStatus.ACCEPTED: "Order accepted by restaurant, preparing your food",
    OrderStatus.PREPARING: "Your food is being prepared",
    OrderStatus.READY: "Your order is ready for delivery",
    OrderStatus.DELIVERED: "Order delivered successfully",
    OrderStatus.CANCELLED: "Order has been cancelled",
}


def describe(status: str) -> str:
    """Human-readable tracking text for a status."""
    try:
        return STATUS_DESCRIPTIONS[OrderStatus(status)]
    except ValueError:
        return "Unknown status"


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_customer_cancel(status: OrderStatus) -> bool:
    return status in CUSTOMER_CANCELLABLE


def settable_statuses(role: UserRole) -> frozenset:
    """Target statuses a role may write through a status update."""
    if role == UserRole.ADMIN:
        return frozenset(OrderStatus)
    if role == UserRole.RESTAURANT:
        return RESTAURANT_SETTABLE
    if role == UserRole.CUSTOMER:
        return frozenset({OrderStatus.CANCELLED})
    raise ValueError(f"Unknown role: {role}")


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    """The next step on the forward path, or None once delivered or cancelled."""
    if is_terminal(status) or status not in FORWARD_SEQUENCE:
        return None
    return FORWARD_SEQUENCE[FORWARD_SEQUENCE.index(status) + 1]
