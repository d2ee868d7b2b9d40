"""
Purpose: Read-only delivery analytics.
What it does:
Aggregates the delivery history at call time (no caching):
- total number of deliveries
- average delivery time (seconds between assignment and delivery)
- customer satisfaction (mean rider rating)
- total delivery cost

An empty history yields count 0, averages None and a total cost of 0.0.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from store.base import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReport:
    total_deliveries: int
    average_delivery_time: Optional[float]
    customer_satisfaction_rating: Optional[float]
    total_delivery_cost: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DeliveryAnalytics:

    def __init__(self, store: Store):
        self.store = store

    def total_deliveries(self) -> int:
        return int(self.store.count_deliveries())

    def average_delivery_time(self) -> Optional[float]:
        return self.store.average_delivery_duration()

    def customer_satisfaction_rating(self) -> Optional[float]:
        return self.store.average_rating()

    def total_delivery_cost(self) -> float:
        return float(self.store.total_delivery_cost() or 0.0)

    def report(self) -> DeliveryReport:
        report = DeliveryReport(
            total_deliveries=self.total_deliveries(),
            average_delivery_time=self.average_delivery_time(),
            customer_satisfaction_rating=self.customer_satisfaction_rating(),
            total_delivery_cost=self.total_delivery_cost(),
        )
        logger.debug(f"Delivery analytics: {report}")
        return report
