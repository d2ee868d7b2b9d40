"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, customer reference, status, assigned rider, fee, timestamps)
- Delivery (history row written when a delivery is confirmed)
- Communication (message recorded for a customer)
- Assignment (one order bound to one rider by a dispatch run)

Defines enums/constants:
- OrderStatus = PENDING | ASSIGNED | DELIVERED | CANCELLED

Rule: No store calls, no dispatch logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Order:
    """
    Represents a single customer order as seen by dispatch.
    """

    id: int
    customer_id: str
    status: OrderStatus = OrderStatus.PENDING
    rider_id: Optional[int] = None
    delivery_fee: float = 0.0

    created_at: datetime | None = None
    assigned_at: datetime | None = None
    delivered_at: datetime | None = None


@dataclass(frozen=True)
class Delivery:
    """
    A completed delivery. Analytics aggregate over these rows.
    """
    id: int
    order_id: int
    rider_id: Optional[int]
    duration_seconds: Optional[float]
    cost: float
    delivered_at: datetime | None = None


@dataclass(frozen=True)
class Communication:
    id: int
    customer_id: str
    message: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class Assignment:
    order_id: int
    rider_id: int
    assigned_at: datetime | None = None
