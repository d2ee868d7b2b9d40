import pytest

from backend.logistics.store import DjangoStore
from dispatch.dispatcher import Dispatcher
from dispatch.policy import DispatchPolicy
from errors import (
    InternalError,
    NotFound,
    OrderNotPending,
    OrderStateChanged,
    RiderBusy,
    RiderUnavailable,
    ValidationError,
)
from orders.lifecycle import OrderLifecycle
from orders.models import OrderStatus
from riders.directory import RiderDirectory

pytestmark = pytest.mark.django_db


@pytest.fixture
def store():
    return DjangoStore().open()


def test_closed_store_raises_internal_error():
    with pytest.raises(InternalError):
        DjangoStore().list_riders()


def test_assignment_compare_and_swap(store):
    order_id = store.insert_order("c_1", 3)
    other_id = store.insert_order("c_2", 3)
    rider_id = store.insert_rider({"name": "r"})

    order = store.assign_rider_to_order(rider_id, order_id)
    assert order.status == OrderStatus.ASSIGNED
    assert order.assigned_at is not None

    with pytest.raises(OrderNotPending):
        store.assign_rider_to_order(rider_id, order_id)
    with pytest.raises(RiderUnavailable):
        store.assign_rider_to_order(rider_id, other_id)
    with pytest.raises(NotFound):
        store.assign_rider_to_order(rider_id, 999)

    assert store.list_active_riders() == []
    assert [o.id for o in store.list_pending_orders()] == [other_id]


def test_rejected_pair_inside_batch_keeps_the_batch_alive(store):
    first = store.insert_order("c_1")
    second = store.insert_order("c_2")
    rider_id = store.insert_rider({"name": "r"})

    with store.transaction():
        store.assign_rider_to_order(rider_id, first)
        with pytest.raises(RiderUnavailable):
            store.assign_rider_to_order(rider_id, second)

    assert store.get_order_status(first) == OrderStatus.ASSIGNED
    assert store.get_order_status(second) == OrderStatus.PENDING


def test_transaction_rolls_back(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert_rider({"name": "lost"})
            raise RuntimeError("boom")

    assert store.list_riders() == []


def test_invalid_contact_is_rejected(store):
    with pytest.raises(ValidationError):
        store.insert_rider({"name": "x", "email": "nope"})


def test_dispatch_on_django_store(store):
    order_ids = [store.insert_order(f"c_{i}") for i in range(3)]
    rider_ids = [store.insert_rider({"name": f"r_{i}"}) for i in range(2)]

    result = Dispatcher(store, DispatchPolicy(atomic_batch=True)).run()

    assert [(a.order_id, a.rider_id) for a in result.assignments] == list(zip(order_ids, rider_ids))
    assert result.unassigned_order_ids == order_ids[2:]


class CancelAfterReadStore(DjangoStore):
    """Cancels an order right after the lifecycle has read it."""

    race_order = None

    def get_order(self, order_id):
        order = super().get_order(order_id)
        if order_id == self.race_order:
            self.race_order = None
            self.set_order_status(order_id, OrderStatus.CANCELLED)
        return order


class AssignAfterCheckStore(DjangoStore):
    """Assigns the rider to an order right after the busy check has run."""

    race = None

    def rider_has_active_order(self, rider_id):
        busy = super().rider_has_active_order(rider_id)
        if self.race:
            race_rider, race_order = self.race
            self.race = None
            self.assign_rider_to_order(race_rider, race_order)
        return busy


def test_conditional_status_write(store):
    order_id = store.insert_order("c_1")
    store.set_order_status(order_id, OrderStatus.CANCELLED)

    with pytest.raises(OrderStateChanged):
        store.set_order_status(order_id, OrderStatus.DELIVERED, expected=OrderStatus.ASSIGNED)

    order = store.get_order(order_id)
    assert order.status == OrderStatus.CANCELLED
    assert order.delivered_at is None
    assert store.set_order_status(999, OrderStatus.CANCELLED, expected=OrderStatus.PENDING) is False


def test_confirm_delivery_racing_cancel():
    store = CancelAfterReadStore().open()
    order_id = store.insert_order("c_1", 4)
    rider_id = store.insert_rider({"name": "r"})
    store.assign_rider_to_order(rider_id, order_id)
    store.race_order = order_id

    with pytest.raises(OrderStateChanged):
        OrderLifecycle(store).confirm_delivery(order_id)

    assert store.get_order_status(order_id) != OrderStatus.DELIVERED
    assert store.count_deliveries() == 0


def test_busy_rider_delete_is_refused(store):
    order_id = store.insert_order("c_1")
    rider_id = store.insert_rider({"name": "r"})
    store.assign_rider_to_order(rider_id, order_id)

    with pytest.raises(RiderBusy):
        store.delete_rider(rider_id)

    assert store.get_order(order_id).rider_id == rider_id
    store.set_order_status(order_id, OrderStatus.CANCELLED)
    assert store.delete_rider(rider_id) is True
    assert store.delete_rider(rider_id) is False


def test_delete_rider_racing_dispatch():
    store = AssignAfterCheckStore().open()
    order_id = store.insert_order("c_1")
    rider_id = store.insert_rider({"name": "r"})
    store.race = (rider_id, order_id)

    with pytest.raises(RiderBusy):
        RiderDirectory(store).delete_rider(rider_id)

    order = store.get_order(order_id)
    assert not (order.status == OrderStatus.ASSIGNED and order.rider_id is None)
    assert store.get_rider(rider_id).id == rider_id
