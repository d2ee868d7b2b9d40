"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Takes a snapshot of pending orders and available riders, pairs them first-fit
in retrieval order and commits each pair through the store's atomic
assignment. One invocation is one non-preemptible batch.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from errors import OrderNotPending, RiderUnavailable
from orders.models import Assignment, Order
from riders.models import Rider
from store.base import Store

from .candidate_filter import build_base_candidates, pending_only
from .matching import PairOutcome, first_fit
from .policy import DispatchPolicy, default_dispatch_policy

logger = logging.getLogger(__name__)

COMPLETED_MESSAGE = "Dispatch automation completed"


@dataclass
class DispatchResult:
    """
    Outcome of one batch run. `assignments` lists the committed pairs in
    commit order.
    """
    run_id: str
    started_at: datetime
    assignments: List[Assignment] = field(default_factory=list)
    unassigned_order_ids: List[int] = field(default_factory=list)  # no rider left
    skipped_order_ids: List[int] = field(default_factory=list)  # taken by a concurrent run
    message: str = COMPLETED_MESSAGE

    @property
    def assigned_count(self) -> int:
        return len(self.assignments)


class Dispatcher:
    """
    Batch dispatch over an injected store handle.
    """

    def __init__(self, store: Store, policy: Optional[DispatchPolicy] = None):
        self.store = store
        self.policy = policy or default_dispatch_policy()

    def snapshot(self) -> Tuple[List[Order], List[Rider]]:
        orders = pending_only(self.store.list_pending_orders())
        riders = build_base_candidates(self.store.list_active_riders())
        return orders, riders

    def plan(self) -> List[Tuple[Order, Rider]]:
        """
        Dry run: the pairs a run would try to commit right now.
        """
        orders, riders = self.snapshot()
        return first_fit(orders, riders).pairs

    def run(self) -> DispatchResult:
        """
        Match every pending order to an available rider and commit.

        Any error other than a skipped conflict aborts the rest of the batch
        and is re-raised with a `committed` attribute: the assignments of this
        run that stay committed. In atomic mode they are rolled back with the
        batch, so it is empty.
        """
        result = DispatchResult(run_id=str(uuid.uuid4()), started_at=datetime.now(timezone.utc))
        scope = self.store.transaction() if self.policy.atomic_batch else nullcontext()

        try:
            with scope:
                orders, riders = self.snapshot()
                logger.info(
                    f"Dispatch run {result.run_id}: {len(orders)} pending orders, {len(riders)} available riders"
                )
                self._assign_all(orders, riders, result)
        except Exception as exc:
            exc.committed = [] if self.policy.atomic_batch else list(result.assignments)
            if self.policy.atomic_batch:
                logger.error(f"Dispatch run {result.run_id} aborted and rolled back: {exc}")
            else:
                committed = [(a.order_id, a.rider_id) for a in result.assignments]
                logger.error(
                    f"Dispatch run {result.run_id} aborted after committing {committed}: {exc}"
                )
            raise

        logger.info(
            f"Dispatch run {result.run_id} done: {result.assigned_count} assigned, "
            f"{len(result.unassigned_order_ids)} left pending, {len(result.skipped_order_ids)} skipped"
        )
        return result

    def _assign_all(self, orders: List[Order], riders: List[Rider], result: DispatchResult) -> None:
        def try_pair(order: Order, rider: Rider) -> PairOutcome:
            try:
                assigned = self.store.assign_rider_to_order(rider.id, order.id)
            except RiderUnavailable as exc:
                if not self.policy.skip_conflicts:
                    raise
                # rider went inactive or busy since the snapshot
                logger.warning(f"Skipping rider {rider.id} for order {order.id}: {exc}")
                return PairOutcome.RIDER_TAKEN
            except OrderNotPending as exc:
                if not self.policy.skip_conflicts:
                    raise
                logger.warning(f"Skipping order {order.id}: {exc}")
                return PairOutcome.ORDER_TAKEN

            result.assignments.append(
                Assignment(order_id=order.id, rider_id=rider.id, assigned_at=assigned.assigned_at)
            )
            logger.info(f"Rider {rider.id} assigned to order {order.id}")
            return PairOutcome.ASSIGNED

        matching = first_fit(orders, riders, try_pair)
        result.skipped_order_ids.extend(order.id for order in matching.skipped)
        result.unassigned_order_ids.extend(order.id for order in matching.unmatched)
