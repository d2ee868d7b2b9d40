"""
Purpose: In-memory Store used by tests, simulations and local runs.
What it does:
- Keeps one dict "table" per entity, keyed by an auto-increment id
- Serialises every read/write behind a re-entrant lock
- Implements transaction() as snapshot + restore on failure
- Computes the analytics aggregates with pandas

Rule: Row-level preconditions only (existence, the assignment CAS,
conditional status writes, idle-only deletes).
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

import pandas as pd

from errors import NotFound, OrderNotPending, OrderStateChanged, RiderBusy, RiderUnavailable
from orders.models import Communication, Delivery, Order, OrderStatus
from riders.models import Rating, Rider, RiderStatus

from .base import Store

logger = logging.getLogger(__name__)

TABLES = ("riders", "ratings", "orders", "deliveries", "communications")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore(Store):
    """
    Dict-backed store. Insertion order is retrieval order, which is what the
    first-fit dispatcher relies on.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        super().__init__()
        self.clock = clock or utc_now
        self._lock = threading.RLock()
        self._tables: Dict[str, Dict[int, Dict[str, Any]]] = {name: {} for name in TABLES}
        self._ids = {name: itertools.count(1) for name in TABLES}
        self._tx_depth = 0

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        self.ensure_open()
        with self._lock:
            # only the outermost block snapshots; nested blocks join it
            snapshot = copy.deepcopy(self._tables) if self._tx_depth == 0 else None
            self._tx_depth += 1
            try:
                yield self
            except Exception:
                if snapshot is not None:
                    logger.warning("Rolling back in-memory transaction")
                    self._tables = snapshot
                raise
            finally:
                self._tx_depth -= 1

    # --- Internal helpers ---

    def _insert(self, table: str, row: Dict[str, Any]) -> int:
        row_id = next(self._ids[table])
        row["id"] = row_id
        self._tables[table][row_id] = row
        return row_id

    def _rider_row(self, rider_id: int) -> Dict[str, Any]:
        row = self._tables["riders"].get(rider_id)
        if row is None:
            raise NotFound(f"Rider {rider_id} not found")
        return row

    def _order_row(self, order_id: int) -> Dict[str, Any]:
        row = self._tables["orders"].get(order_id)
        if row is None:
            raise NotFound(f"Order {order_id} not found")
        return row

    def _to_rider(self, row: Dict[str, Any]) -> Rider:
        scores = [r["score"] for r in self._tables["ratings"].values() if r["rider_id"] == row["id"]]
        return Rider(
            id=row["id"],
            name=row["name"],
            status=RiderStatus(row["status"]),
            phone=row.get("phone") or "",
            email=row.get("email") or "",
            rating=(sum(scores) / len(scores)) if scores else None,
            rating_count=len(scores),
            created_at=row.get("created_at"),
        )

    @staticmethod
    def _to_order(row: Dict[str, Any]) -> Order:
        return Order(**row)

    def _busy(self, rider_id: int) -> bool:
        return any(
            o["rider_id"] == rider_id and o["status"] == OrderStatus.ASSIGNED
            for o in self._tables["orders"].values()
        )

    # --- Riders ---

    def list_riders(self) -> List[Rider]:
        self.ensure_open()
        with self._lock:
            return [self._to_rider(row) for row in self._tables["riders"].values()]

    def get_rider(self, rider_id: int) -> Rider:
        self.ensure_open()
        with self._lock:
            return self._to_rider(self._rider_row(rider_id))

    def insert_rider(self, fields: Dict[str, Any]) -> int:
        self.ensure_open()
        row = {
            "name": fields["name"],
            "phone": fields.get("phone", ""),
            "email": fields.get("email", ""),
            "status": RiderStatus(fields.get("status", RiderStatus.ACTIVE)),
            "created_at": self.clock(),
        }
        with self._lock:
            return self._insert("riders", row)

    def update_rider(self, rider_id: int, fields: Dict[str, Any]) -> bool:
        self.ensure_open()
        with self._lock:
            row = self._tables["riders"].get(rider_id)
            if row is None:
                return False
            row.update(fields)
            if "status" in fields:
                row["status"] = RiderStatus(fields["status"])
            return True

    def delete_rider(self, rider_id: int) -> bool:
        self.ensure_open()
        with self._lock:
            if rider_id not in self._tables["riders"]:
                return False
            if self._busy(rider_id):
                raise RiderBusy(f"Rider {rider_id} holds an assigned order")
            del self._tables["riders"][rider_id]
            ratings = self._tables["ratings"]
            for rating_id in [k for k, r in ratings.items() if r["rider_id"] == rider_id]:
                del ratings[rating_id]
            for table in ("orders", "deliveries"):
                for row in self._tables[table].values():
                    if row["rider_id"] == rider_id:
                        row["rider_id"] = None
            return True

    def set_rider_status(self, rider_id: int, status: RiderStatus) -> bool:
        return self.update_rider(rider_id, {"status": status})

    def insert_rating(self, rider_id: int, score: float, feedback: str) -> int:
        self.ensure_open()
        with self._lock:
            self._rider_row(rider_id)
            return self._insert("ratings", {
                "rider_id": rider_id,
                "score": score,
                "feedback": feedback,
                "created_at": self.clock(),
            })

    def list_ratings(self, rider_id: int) -> List[Rating]:
        self.ensure_open()
        with self._lock:
            return [Rating(**row) for row in self._tables["ratings"].values() if row["rider_id"] == rider_id]

    def rider_has_active_order(self, rider_id: int) -> bool:
        self.ensure_open()
        with self._lock:
            return self._busy(rider_id)

    # --- Orders ---

    def insert_order(self, customer_id: str, delivery_fee: float = 0.0) -> int:
        self.ensure_open()
        with self._lock:
            return self._insert("orders", {
                "customer_id": customer_id,
                "status": OrderStatus.PENDING,
                "rider_id": None,
                "delivery_fee": float(delivery_fee),
                "created_at": self.clock(),
                "assigned_at": None,
                "delivered_at": None,
            })

    def get_order(self, order_id: int) -> Order:
        self.ensure_open()
        with self._lock:
            return self._to_order(self._order_row(order_id))

    def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        self.ensure_open()
        with self._lock:
            return [
                self._to_order(row) for row in self._tables["orders"].values()
                if status is None or row["status"] == status
            ]

    def list_active_riders(self) -> List[Rider]:
        self.ensure_open()
        with self._lock:
            return [
                self._to_rider(row) for row in self._tables["riders"].values()
                if row["status"] == RiderStatus.ACTIVE and not self._busy(row["id"])
            ]

    def assign_rider_to_order(self, rider_id: int, order_id: int) -> Order:
        self.ensure_open()
        with self._lock:
            order = self._order_row(order_id)
            rider = self._rider_row(rider_id)
            if order["status"] != OrderStatus.PENDING:
                raise OrderNotPending(f"Order {order_id} is {order['status'].value}, not pending")
            if rider["status"] != RiderStatus.ACTIVE:
                raise RiderUnavailable(f"Rider {rider_id} is not active")
            if self._busy(rider_id):
                raise RiderUnavailable(f"Rider {rider_id} already holds an assigned order")

            order.update(rider_id=rider_id, status=OrderStatus.ASSIGNED, assigned_at=self.clock())
            return self._to_order(order)

    def set_order_status(self, order_id: int, status: OrderStatus,
                         expected: Optional[OrderStatus] = None) -> bool:
        self.ensure_open()
        with self._lock:
            order = self._tables["orders"].get(order_id)
            if order is None:
                return False
            if expected is not None and order["status"] != expected:
                raise OrderStateChanged(
                    f"Order {order_id} is {order['status'].value}, expected {OrderStatus(expected).value}"
                )
            order["status"] = OrderStatus(status)
            if order["status"] == OrderStatus.DELIVERED:
                order["delivered_at"] = self.clock()
            return True

    # --- Communications ---

    def insert_communication(self, customer_id: str, message: str) -> bool:
        self.ensure_open()
        with self._lock:
            self._insert("communications", {
                "customer_id": customer_id,
                "message": message,
                "created_at": self.clock(),
            })
            return True

    def list_communications(self, customer_id: str) -> List[Communication]:
        self.ensure_open()
        with self._lock:
            return [
                Communication(**row) for row in self._tables["communications"].values()
                if row["customer_id"] == customer_id
            ]

    # --- Deliveries & aggregates ---

    def insert_delivery(self, order_id: int, rider_id: Optional[int],
                        duration_seconds: Optional[float], cost: float) -> int:
        self.ensure_open()
        with self._lock:
            return self._insert("deliveries", {
                "order_id": order_id,
                "rider_id": rider_id,
                "duration_seconds": duration_seconds,
                "cost": cost,
                "delivered_at": self.clock(),
            })

    def list_deliveries(self) -> List[Delivery]:
        self.ensure_open()
        with self._lock:
            return [Delivery(**row) for row in self._tables["deliveries"].values()]

    def _column(self, table: str, column: str) -> pd.Series:
        self.ensure_open()
        with self._lock:
            frame = pd.DataFrame(list(self._tables[table].values()), columns=[column])
        return pd.to_numeric(frame[column], errors="coerce")

    def count_deliveries(self) -> int:
        self.ensure_open()
        with self._lock:
            return len(self._tables["deliveries"])

    def average_delivery_duration(self) -> Optional[float]:
        value = self._column("deliveries", "duration_seconds").mean()
        return None if pd.isna(value) else float(value)

    def average_rating(self) -> Optional[float]:
        value = self._column("ratings", "score").mean()
        return None if pd.isna(value) else float(value)

    def total_delivery_cost(self) -> float:
        return float(self._column("deliveries", "cost").sum())
