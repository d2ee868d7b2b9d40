from datetime import datetime, timedelta, timezone

import pytest

from dispatch.dispatcher import Dispatcher
from dispatch.policy import DispatchPolicy
from orders.lifecycle import OrderLifecycle
from riders.directory import RiderDirectory
from riders.policy import RatingPolicy
from store.memory import InMemoryStore


class FakeClock:
    """Manually advanced clock so durations are exact."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    with InMemoryStore(clock=clock) as s:
        yield s


@pytest.fixture
def directory(store):
    return RiderDirectory(store, RatingPolicy(min_score=1, max_score=5))


@pytest.fixture
def lifecycle(store):
    return OrderLifecycle(store)


@pytest.fixture
def dispatcher(store):
    return Dispatcher(store, DispatchPolicy(atomic_batch=True, skip_conflicts=True))


@pytest.fixture
def make_riders(directory):
    def _make(*names, status="active"):
        return [directory.create_rider({"name": name, "status": status}) for name in names]
    return _make


@pytest.fixture
def make_orders(lifecycle):
    def _make(count, fee=5.0):
        return [lifecycle.create_order(f"c_{i}", fee) for i in range(count)]
    return _make
