"""
Purpose: Matching model (the "who gets which order" layer).
Greedy first-fit pairing by arrival order: each pending order gets the first
available rider not consumed yet. Deterministic, one rider per order.

The same loop serves the dry run (every pair accepted) and the real run
(each pair committed through a callback that can report a lost race).
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from orders.models import Order
from riders.models import Rider


class PairOutcome(str, Enum):
    ASSIGNED = "assigned"
    RIDER_TAKEN = "rider_taken"   # drop the rider, try the next one for this order
    ORDER_TAKEN = "order_taken"   # skip the order, keep the rider for the next one


@dataclass
class Matching:
    pairs: List[Tuple[Order, Rider]] = field(default_factory=list)
    unmatched: List[Order] = field(default_factory=list)  # riders ran out
    skipped: List[Order] = field(default_factory=list)  # left PENDING elsewhere


def first_fit(
    orders: Sequence[Order],
    riders: Sequence[Rider],
    try_pair: Optional[Callable[[Order, Rider], PairOutcome]] = None,
) -> Matching:
    """
    Pair each order with the first rider not consumed yet.

    try_pair commits a pair and reports how it went. Without it every pair is
    accepted, which is the dry run.
    """
    pool = deque(riders)
    matching = Matching()

    for order in orders:
        while pool:
            rider = pool.popleft()
            outcome = try_pair(order, rider) if try_pair else PairOutcome.ASSIGNED

            if outcome == PairOutcome.RIDER_TAKEN:
                continue
            if outcome == PairOutcome.ORDER_TAKEN:
                pool.appendleft(rider)
                matching.skipped.append(order)
                break

            matching.pairs.append((order, rider))
            break
        else:
            matching.unmatched.append(order)

    return matching
