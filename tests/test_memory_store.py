import pytest

from errors import InternalError, NotFound, OrderNotPending, OrderStateChanged, RiderBusy, RiderUnavailable
from orders.models import OrderStatus
from store.memory import InMemoryStore


def test_closed_store_refuses_work():
    store = InMemoryStore()
    with pytest.raises(InternalError):
        store.list_riders()

    with store:
        assert store.is_open
        store.list_riders()
    assert not store.is_open


def test_transaction_rolls_back_on_error(store):
    rider_id = store.insert_rider({"name": "kept"})

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert_rider({"name": "lost"})
            store.set_rider_status(rider_id, "inactive")
            raise RuntimeError("boom")

    riders = store.list_riders()
    assert [r.name for r in riders] == ["kept"]
    assert riders[0].is_active


def test_nested_transactions_join_the_outer_one(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert_order("c_1")
            with store.transaction():
                store.insert_order("c_2")
            raise RuntimeError("boom")

    assert store.list_orders() == []


def test_assignment_compare_and_swap(store):
    order_id = store.insert_order("c_1")
    other_id = store.insert_order("c_2")
    rider_id = store.insert_rider({"name": "r"})

    order = store.assign_rider_to_order(rider_id, order_id)
    assert (order.status, order.rider_id) == (OrderStatus.ASSIGNED, rider_id)

    with pytest.raises(OrderNotPending):
        store.assign_rider_to_order(rider_id, order_id)
    with pytest.raises(RiderUnavailable):
        store.assign_rider_to_order(rider_id, other_id)
    with pytest.raises(NotFound):
        store.assign_rider_to_order(999, other_id)
    with pytest.raises(NotFound):
        store.assign_rider_to_order(rider_id, 999)


def test_active_riders_exclude_busy_and_inactive(store):
    order_id = store.insert_order("c_1")
    busy = store.insert_rider({"name": "busy"})
    off = store.insert_rider({"name": "off", "status": "inactive"})
    free = store.insert_rider({"name": "free"})
    store.assign_rider_to_order(busy, order_id)

    assert [r.id for r in store.list_active_riders()] == [free]
    assert store.rider_has_active_order(busy)
    assert not store.rider_has_active_order(off)


def test_missing_rows(store):
    assert store.update_rider(5, {"name": "x"}) is False
    assert store.delete_rider(5) is False
    assert store.set_order_status(5, OrderStatus.CANCELLED) is False
    with pytest.raises(NotFound):
        store.get_order_status(5)


def test_status_write_is_conditional_on_expected_status(store):
    order_id = store.insert_order("c_1")
    store.set_order_status(order_id, OrderStatus.CANCELLED)

    with pytest.raises(OrderStateChanged):
        store.set_order_status(order_id, OrderStatus.DELIVERED, expected=OrderStatus.ASSIGNED)

    order = store.get_order(order_id)
    assert order.status == OrderStatus.CANCELLED
    assert order.delivered_at is None
    assert store.set_order_status(99, OrderStatus.CANCELLED, expected=OrderStatus.PENDING) is False


def test_busy_rider_cannot_be_deleted(store):
    order_id = store.insert_order("c_1")
    rider_id = store.insert_rider({"name": "r"})
    store.assign_rider_to_order(rider_id, order_id)

    with pytest.raises(RiderBusy):
        store.delete_rider(rider_id)

    assert store.get_rider(rider_id).id == rider_id
    assert store.get_order(order_id).rider_id == rider_id


def test_delete_rider_clears_history_references(store):
    order_id = store.insert_order("c_1", 3)
    rider_id = store.insert_rider({"name": "r"})
    store.assign_rider_to_order(rider_id, order_id)
    store.set_order_status(order_id, OrderStatus.DELIVERED)
    store.insert_delivery(order_id, rider_id, 60.0, 3.0)
    store.insert_rating(rider_id, 4, "")

    assert store.delete_rider(rider_id) is True

    assert store.get_order(order_id).rider_id is None
    assert [d.rider_id for d in store.list_deliveries()] == [None]
    assert store.list_ratings(rider_id) == []
    assert store.count_deliveries() == 1
