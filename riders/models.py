"""
Purpose: Core data models for the riders domain.
What it does:
Defines the structure of a Rider, its status and its ratings without relying
on Django ORM constraints. Stores hand these records back to the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

# Fields a caller may set on a rider (create / update).
RIDER_FIELDS = ("name", "phone", "email", "status")


class RiderStatus(str, Enum):
    """
    Standardizes the state a rider can be in.
    Only ACTIVE riders are considered by the dispatcher.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Rider:
    """
    A read-side snapshot of a rider.

    `rating` and `rating_count` are derived from the rider's ratings at read
    time; they are never written back.
    """
    id: int
    name: str
    status: RiderStatus = RiderStatus.ACTIVE
    phone: str = ""
    email: str = ""

    rating: Optional[float] = None
    rating_count: int = 0
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == RiderStatus.ACTIVE


@dataclass(frozen=True)
class Rating:
    """
    Immutable rating left for a rider after a delivery.
    """
    id: int
    rider_id: int
    score: float
    feedback: str = ""
    created_at: datetime | None = None
