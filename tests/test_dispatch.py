import threading

import pytest

from dispatch.dispatcher import COMPLETED_MESSAGE, Dispatcher
from dispatch.matching import PairOutcome, first_fit
from dispatch.policy import DispatchPolicy
from errors import InternalError, RiderUnavailable
from orders.models import Order, OrderStatus
from riders.models import Rider
from store.memory import InMemoryStore


class FailingStore(InMemoryStore):
    """Fails the n-th assignment with a store error."""

    def __init__(self, fail_on, **kwargs):
        super().__init__(**kwargs)
        self.fail_on = fail_on
        self.calls = 0

    def assign_rider_to_order(self, rider_id, order_id):
        self.calls += 1
        if self.calls == self.fail_on:
            raise InternalError("connection lost")
        return super().assign_rider_to_order(rider_id, order_id)


class RacingStore(InMemoryStore):
    """Lets another writer grab a rider / order right before our write."""

    def __init__(self, steal_rider=None, steal_order=None, **kwargs):
        super().__init__(**kwargs)
        self.steal_rider = steal_rider
        self.steal_order = steal_order

    def assign_rider_to_order(self, rider_id, order_id):
        if rider_id == self.steal_rider:
            self.steal_rider = None
            self.set_rider_status(rider_id, "inactive")
        if order_id == self.steal_order:
            self.steal_order = None
            self.set_order_status(order_id, OrderStatus.CANCELLED)
        return super().assign_rider_to_order(rider_id, order_id)


def seed(store, orders, riders, inactive=()):
    order_ids = [store.insert_order(f"c_{i}", 4.0) for i in range(orders)]
    rider_ids = [store.insert_rider({"name": f"r_{i}"}) for i in range(riders)]
    for index in inactive:
        store.set_rider_status(rider_ids[index], "inactive")
    return order_ids, rider_ids


def test_first_fit_pairs_in_arrival_order():
    orders = [Order(id=i, customer_id="c") for i in (1, 2, 3)]
    riders = [Rider(id=i, name="r") for i in (10, 20)]

    matching = first_fit(orders, riders)

    assert [(o.id, r.id) for o, r in matching.pairs] == [(1, 10), (2, 20)]
    assert [o.id for o in matching.unmatched] == [3]
    assert first_fit([], riders).pairs == []
    assert [o.id for o in first_fit(orders, []).unmatched] == [1, 2, 3]


def test_first_fit_follows_reported_outcomes():
    orders = [Order(id=i, customer_id="c") for i in (1, 2, 3)]
    riders = [Rider(id=i, name="r") for i in (10, 20, 30)]
    outcomes = {(1, 10): PairOutcome.RIDER_TAKEN, (2, 30): PairOutcome.ORDER_TAKEN}

    matching = first_fit(orders, riders, lambda o, r: outcomes.get((o.id, r.id), PairOutcome.ASSIGNED))

    # rider 30 is kept after order 2 was taken and serves order 3
    assert [(o.id, r.id) for o, r in matching.pairs] == [(1, 20), (3, 30)]
    assert [o.id for o in matching.skipped] == [2]
    assert matching.unmatched == []


def test_three_orders_two_riders(store, dispatcher):
    """
    O1 -> R1, O2 -> R2, O3 stays pending.
    """
    (o1, o2, o3), (r1, r2) = seed(store, 3, 2)

    result = dispatcher.run()

    assert [(a.order_id, a.rider_id) for a in result.assignments] == [(o1, r1), (o2, r2)]
    assert result.unassigned_order_ids == [o3]
    assert result.message == COMPLETED_MESSAGE

    assert store.get_order(o1).rider_id == r1
    assert store.get_order(o2).rider_id == r2
    assert store.get_order(o1).status == OrderStatus.ASSIGNED
    assert store.get_order(o3).status == OrderStatus.PENDING
    assert store.get_order(o3).rider_id is None


def test_every_pending_order_gets_distinct_rider(store, dispatcher):
    order_ids, rider_ids = seed(store, 4, 6)

    result = dispatcher.run()

    assigned_riders = [a.rider_id for a in result.assignments]
    assert len(result.assignments) == 4
    assert len(set(assigned_riders)) == 4
    for order_id in order_ids:
        order = store.get_order(order_id)
        assert order.status == OrderStatus.ASSIGNED
        assert order.rider_id in rider_ids


def test_more_orders_than_riders_assigns_rider_count(store, dispatcher):
    seed(store, 7, 3)

    result = dispatcher.run()

    assert result.assigned_count == 3
    assert len(store.list_pending_orders()) == 4


def test_inactive_riders_are_never_assigned(store, dispatcher):
    (o1, o2), rider_ids = seed(store, 2, 3, inactive=(0,))

    result = dispatcher.run()

    assert [a.rider_id for a in result.assignments] == rider_ids[1:]


def test_no_riders_leaves_everything_pending(store, dispatcher):
    order_ids, _ = seed(store, 2, 0)

    result = dispatcher.run()

    assert result.assignments == []
    assert result.unassigned_order_ids == order_ids


def test_rerun_only_uses_free_riders(store, dispatcher, lifecycle):
    (o1, o2, o3), (r1, r2) = seed(store, 3, 2)
    dispatcher.run()

    second = dispatcher.run()
    assert second.assignments == []
    assert second.unassigned_order_ids == [o3]

    lifecycle.confirm_delivery(o1)
    third = dispatcher.run()
    assert [(a.order_id, a.rider_id) for a in third.assignments] == [(o3, r1)]


def test_plan_does_not_write(store, dispatcher):
    (o1, o2), (r1,) = seed(store, 2, 1)

    pairs = dispatcher.plan()

    assert [(o.id, r.id) for o, r in pairs] == [(o1, r1)]
    assert store.get_order(o1).status == OrderStatus.PENDING


def test_plan_matches_what_run_commits(store, dispatcher):
    seed(store, 3, 2)

    planned = [(o.id, r.id) for o, r in dispatcher.plan()]
    result = dispatcher.run()

    assert planned == [(a.order_id, a.rider_id) for a in result.assignments]


def test_atomic_batch_rolls_back_on_failure(clock):
    store = FailingStore(fail_on=2, clock=clock).open()
    order_ids, _ = seed(store, 3, 3)
    dispatcher = Dispatcher(store, DispatchPolicy(atomic_batch=True))

    with pytest.raises(InternalError) as excinfo:
        dispatcher.run()

    assert excinfo.value.committed == []

    assert [store.get_order(i).status for i in order_ids] == [OrderStatus.PENDING] * 3


def test_per_pair_mode_keeps_committed_pairs(clock):
    store = FailingStore(fail_on=2, clock=clock).open()
    (o1, o2, o3), (r1, _, _) = seed(store, 3, 3)
    dispatcher = Dispatcher(store, DispatchPolicy(atomic_batch=False))

    with pytest.raises(InternalError) as excinfo:
        dispatcher.run()

    assert [(a.order_id, a.rider_id) for a in excinfo.value.committed] == [(o1, r1)]

    assert store.get_order(o1).rider_id == r1
    assert store.get_order(o2).status == OrderStatus.PENDING
    assert store.get_order(o3).status == OrderStatus.PENDING

    # the next run resumes from the recovery point
    result = dispatcher.run()
    assert [a.order_id for a in result.assignments] == [o2, o3]


def test_lost_rider_race_moves_to_next_rider(clock):
    store = RacingStore(clock=clock).open()
    (o1, o2), (r1, r2, r3) = seed(store, 2, 3)
    store.steal_rider = r1

    result = Dispatcher(store, DispatchPolicy(skip_conflicts=True)).run()

    assert [(a.order_id, a.rider_id) for a in result.assignments] == [(o1, r2), (o2, r3)]


def test_lost_order_race_is_skipped(clock):
    store = RacingStore(clock=clock).open()
    (o1, o2), (r1, r2) = seed(store, 2, 2)
    store.steal_order = o1

    result = Dispatcher(store, DispatchPolicy(skip_conflicts=True)).run()

    assert result.skipped_order_ids == [o1]
    assert [(a.order_id, a.rider_id) for a in result.assignments] == [(o2, r1)]


def test_conflict_aborts_when_not_skipping(clock):
    store = RacingStore(clock=clock).open()
    (o1, o2), (r1, r2) = seed(store, 2, 2)
    store.steal_rider = r1

    with pytest.raises(RiderUnavailable):
        Dispatcher(store, DispatchPolicy(atomic_batch=True, skip_conflicts=False)).run()

    assert store.get_order(o1).status == OrderStatus.PENDING
    assert store.get_order(o2).status == OrderStatus.PENDING


def test_concurrent_runs_never_double_assign(store):
    order_ids, rider_ids = seed(store, 20, 8)
    policy = DispatchPolicy(atomic_batch=False, skip_conflicts=True)
    results = []

    def worker():
        results.append(Dispatcher(store, policy).run())

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assigned = [a for r in results for a in r.assignments]
    assert len(assigned) == len(rider_ids)
    assert len({a.rider_id for a in assigned}) == len(rider_ids)
    assert len({a.order_id for a in assigned}) == len(rider_ids)
