"""
Purpose: The persistence boundary every component talks to.
What it does:
- Declares the operations the directory, lifecycle, dispatcher and reporter
  need (CRUD + filtered queries + aggregates).
- Owns the handle lifecycle: open() at startup, close() at shutdown.
- Exposes transaction() so a caller can group writes.

Implementations:
- store.memory.InMemoryStore (tests, simulations)
- backend/logistics/store.py DjangoStore (Django ORM)

Rule: Stores enforce row-level preconditions at write time (the assignment
compare-and-swap, conditional status writes, idle-only rider deletes),
services enforce business rules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from errors import InternalError
from orders.models import Order, OrderStatus
from riders.models import Rating, Rider, RiderStatus


class Store(ABC):
    """
    Abstract store handle. Construct it once, open() it, pass it to each
    component, close() it on shutdown.
    """

    def __init__(self):
        self._open = False

    # --- Lifecycle ---

    def open(self) -> "Store":
        self._open = True
        return self

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ensure_open(self) -> None:
        if not self._open:
            raise InternalError("store is closed")

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """
        Group writes: commit on success, roll back if the block raises.
        The default does nothing beyond the open check.
        """
        self.ensure_open()
        yield self

    # --- Riders ---

    @abstractmethod
    def list_riders(self) -> List[Rider]: ...

    @abstractmethod
    def get_rider(self, rider_id: int) -> Rider:
        """Raises NotFound if the rider does not exist."""

    @abstractmethod
    def insert_rider(self, fields: Dict[str, Any]) -> int: ...

    @abstractmethod
    def update_rider(self, rider_id: int, fields: Dict[str, Any]) -> bool: ...

    @abstractmethod
    def delete_rider(self, rider_id: int) -> bool:
        """
        Delete an idle rider. Returns False if absent; raises RiderBusy if the
        rider holds an ASSIGNED order when the delete runs.
        """

    @abstractmethod
    def set_rider_status(self, rider_id: int, status: RiderStatus) -> bool: ...

    @abstractmethod
    def insert_rating(self, rider_id: int, score: float, feedback: str) -> int:
        """Raises NotFound if the rider does not exist."""

    @abstractmethod
    def list_ratings(self, rider_id: int) -> List[Rating]: ...

    @abstractmethod
    def rider_has_active_order(self, rider_id: int) -> bool: ...

    # --- Orders ---

    @abstractmethod
    def insert_order(self, customer_id: str, delivery_fee: float = 0.0) -> int: ...

    @abstractmethod
    def get_order(self, order_id: int) -> Order:
        """Raises NotFound if the order does not exist."""

    @abstractmethod
    def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]: ...

    def list_pending_orders(self) -> List[Order]:
        return self.list_orders(OrderStatus.PENDING)

    @abstractmethod
    def list_active_riders(self) -> List[Rider]:
        """Active riders that hold no ASSIGNED order, in store order."""

    @abstractmethod
    def assign_rider_to_order(self, rider_id: int, order_id: int) -> Order:
        """
        Atomically set the rider reference and move the order to ASSIGNED.

        Raises NotFound for unknown ids, OrderNotPending if the order left
        PENDING, RiderUnavailable if the rider is inactive or busy.
        """

    def get_order_status(self, order_id: int) -> OrderStatus:
        return self.get_order(order_id).status

    @abstractmethod
    def set_order_status(self, order_id: int, status: OrderStatus,
                         expected: Optional[OrderStatus] = None) -> bool:
        """
        Write a new status. Returns False if the order is absent. With
        `expected`, the write only lands while the order is still in that
        status, otherwise OrderStateChanged is raised.
        """

    # --- Communications ---

    @abstractmethod
    def insert_communication(self, customer_id: str, message: str) -> bool: ...

    # --- Deliveries & aggregates ---

    @abstractmethod
    def insert_delivery(self, order_id: int, rider_id: Optional[int],
                        duration_seconds: Optional[float], cost: float) -> int: ...

    @abstractmethod
    def count_deliveries(self) -> int: ...

    @abstractmethod
    def average_delivery_duration(self) -> Optional[float]: ...

    @abstractmethod
    def average_rating(self) -> Optional[float]: ...

    @abstractmethod
    def total_delivery_cost(self) -> float: ...
