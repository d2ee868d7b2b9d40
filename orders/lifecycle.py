"""
Purpose: Order Lifecycle service.
What it does:
- Status reads and guarded status writes
- Delivery confirmation (ASSIGNED -> DELIVERED + delivery history row)
- Cancellation
- Order intake for the external order-placement process

Rule: Every status write goes through the transition table in
dispatch/state_machines/order_state.py and is conditional on the status that
was checked. Moving an order to ASSIGNED always goes through the store's
atomic rider assignment.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, List, Optional

from dispatch.state_machines.order_state import ensure_deliverable, ensure_transition
from dispatch.state_machines.rider_state import ensure_assignable
from errors import NotFound, ValidationError
from store.base import Store

from .models import Delivery, Order, OrderStatus

logger = logging.getLogger(__name__)


def parse_order_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid order status: {value!r}") from None


class OrderLifecycle:
    """
    State machine front for orders:

    PENDING -> ASSIGNED -> DELIVERED
       |           |
       +--> CANCELLED <--+
    """

    def __init__(self, store: Store):
        self.store = store

    # --- Reads ---

    def get_order(self, order_id: int) -> Order:
        return self.store.get_order(order_id)

    def list_orders(self, status: Any = None) -> List[Order]:
        if status is not None:
            status = parse_order_status(status)
        return self.store.list_orders(status)

    def get_status(self, order_id: int) -> OrderStatus:
        return self.store.get_order_status(order_id)

    # --- Intake ---

    def create_order(self, customer_id: Any, delivery_fee: Any = 0) -> int:
        if customer_id is None or isinstance(customer_id, bool) or str(customer_id).strip() == "":
            raise ValidationError("customer_id is required")
        if isinstance(delivery_fee, bool) or not isinstance(delivery_fee, Real) or math.isnan(delivery_fee):
            raise ValidationError("delivery_fee must be a number")
        if delivery_fee < 0:
            raise ValidationError("delivery_fee must be >= 0")

        order_id = self.store.insert_order(str(customer_id).strip(), float(delivery_fee))
        logger.info(f"Order {order_id} placed for customer {customer_id}")
        return order_id

    # --- Transitions ---

    def set_status(self, order_id: int, status: Any, rider_id: Optional[int] = None) -> Order:
        """
        Move an order along one edge of the transition table.

        ASSIGNED needs a rider_id and is written through the store's atomic
        assignment; DELIVERED records the delivery like confirm_delivery().
        """
        new_status = parse_order_status(status)
        if new_status == OrderStatus.ASSIGNED and rider_id is None:
            raise ValidationError("rider_id is required to assign an order")

        with self.store.transaction():
            order = self.store.get_order(order_id)
            ensure_transition(order, new_status)

            if new_status == OrderStatus.ASSIGNED:
                rider = self.store.get_rider(rider_id)
                ensure_assignable(rider, self.store.rider_has_active_order(rider.id))
                updated = self.store.assign_rider_to_order(rider.id, order.id)
            elif new_status == OrderStatus.DELIVERED:
                self._record_delivery(order)
                updated = self.store.get_order(order.id)
            else:
                if not self.store.set_order_status(order.id, new_status, expected=order.status):
                    raise NotFound(f"Order {order_id} not found")
                updated = self.store.get_order(order.id)

        logger.info(f"Order {order_id}: {order.status.value} -> {new_status.value}")
        return updated

    def confirm_delivery(self, order_id: int) -> Delivery:
        """
        Mark an ASSIGNED order as DELIVERED. Any other current state raises
        ConflictError and leaves the order untouched.
        """
        with self.store.transaction():
            order = self.store.get_order(order_id)
            ensure_deliverable(order)
            delivery = self._record_delivery(order)

        logger.info(f"Order {order_id} delivered by rider {delivery.rider_id}")
        return delivery

    def cancel(self, order_id: int) -> Order:
        return self.set_status(order_id, OrderStatus.CANCELLED)

    # --- Helpers ---

    def _record_delivery(self, order: Order) -> Delivery:
        # lands only if nothing moved the order since it was read
        if not self.store.set_order_status(order.id, OrderStatus.DELIVERED, expected=order.status):
            raise NotFound(f"Order {order.id} not found")
        delivered = self.store.get_order(order.id)

        duration = None
        if order.assigned_at and delivered.delivered_at:
            duration = (delivered.delivered_at - order.assigned_at).total_seconds()

        delivery_id = self.store.insert_delivery(order.id, order.rider_id, duration, order.delivery_fee)
        return Delivery(
            id=delivery_id,
            order_id=order.id,
            rider_id=order.rider_id,
            duration_seconds=duration,
            cost=order.delivery_fee,
            delivered_at=delivered.delivered_at,
        )
