"""
Runs a few dispatch waves against an in-memory store:
seed riders/orders -> dispatch -> confirm some deliveries -> rate riders -> repeat,
then prints the delivery analytics report.

Usage:
    python scripts/run_dispatch_simulation.py [riders.csv orders.csv]
"""

import logging
import sys

import numpy as np
import pandas as pd

from analytics.reporter import DeliveryAnalytics
from dispatch.dispatcher import Dispatcher
from orders.lifecycle import OrderLifecycle
from orders.models import OrderStatus
from riders.directory import RiderDirectory
from store.memory import InMemoryStore

from generate_mock_data import generate_mock_data


def load_frames(argv):
    if len(argv) == 3:
        return pd.read_csv(argv[1], dtype={"phone": str}), pd.read_csv(argv[2])
    return generate_mock_data(seed=7, riders_file=None, orders_file=None)


def run_simulation(riders: pd.DataFrame, orders: pd.DataFrame, waves: int = 3, seed: int = 7):
    rng = np.random.default_rng(seed)

    with InMemoryStore() as store:
        directory = RiderDirectory(store)
        lifecycle = OrderLifecycle(store)
        dispatcher = Dispatcher(store)

        for row in riders.to_dict("records"):
            directory.create_rider({"name": row["name"], "phone": str(row["phone"]), "status": row["status"]})
        for row in orders.to_dict("records"):
            lifecycle.create_order(row["customer_id"], float(row["delivery_fee"]))

        for wave in range(1, waves + 1):
            result = dispatcher.run()
            print(f"Wave {wave}: {result.assigned_count} assigned, {len(result.unassigned_order_ids)} still pending")

            # Most riders finish their drop-off before the next wave
            for assignment in result.assignments:
                if rng.random() < 0.8:
                    lifecycle.confirm_delivery(assignment.order_id)
                    directory.add_rating(assignment.rider_id, int(rng.integers(1, 6)), "")

        pending = len(lifecycle.list_orders(OrderStatus.PENDING))
        report = DeliveryAnalytics(store).report()

    print(f"\nOrders left pending: {pending}")
    print(pd.Series(report.as_dict()).to_string())
    return report


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    riders_frame, orders_frame = load_frames(sys.argv)
    run_simulation(riders_frame, orders_frame)
