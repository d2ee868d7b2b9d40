from typing import Dict, FrozenSet

from errors import ConflictError
from orders.models import Order, OrderStatus


class OrderStateException(ConflictError):
    """Raised when an invalid state transition is attempted."""
    pass


# PENDING -> ASSIGNED -> DELIVERED, with cancellation from the two live states.
ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ASSIGNED, OrderStatus.CANCELLED}),
    OrderStatus.ASSIGNED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def ensure_transition(order: Order, new: OrderStatus) -> None:
    """
    Guard every status write. Raises OrderStateException for any move that
    is not an edge of the transition table.
    """
    if is_terminal(order.status):
        raise OrderStateException(f"Order {order.id} is already {order.status.value}")
    if not can_transition(order.status, new):
        raise OrderStateException(
            f"Cannot transition order {order.id} from {order.status.value} to {new.value}"
        )


def ensure_deliverable(order: Order) -> None:
    """
    Called before confirming a delivery. Only ASSIGNED orders can be delivered.
    """
    if order.status != OrderStatus.ASSIGNED:
        raise OrderStateException(
            f"Order {order.id} is not assigned. Current: {order.status.value}"
        )
