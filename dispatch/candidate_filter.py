"""
Purpose: Hard eligibility filtering (rule gates).
Builds the base candidate set before matching.

Output: "rule-qualified riders" in store order (still not matched).
"""

from typing import Iterable, List, Set

from orders.models import Order, OrderStatus
from riders.models import Rider


def build_base_candidates(riders: Iterable[Rider]) -> List[Rider]:
    """
    Keep ACTIVE riders, preserving retrieval order.
    Duplicate ids keep their first occurrence.
    """
    candidates = []
    seen: Set[int] = set()

    for rider in riders:
        if not rider.is_active:
            continue
        if rider.id in seen:
            continue
        seen.add(rider.id)
        candidates.append(rider)

    return candidates


def pending_only(orders: Iterable[Order]) -> List[Order]:
    """
    Keep orders still PENDING, preserving retrieval order.
    """
    return [order for order in orders if order.status == OrderStatus.PENDING]
