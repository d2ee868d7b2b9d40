import pandas as pd
import numpy as np
from typing import Optional


def generate_mock_data(num_riders=20, num_orders=60, inactive_share=0.15, seed: Optional[int] = None,
                       riders_file="riders_generated.csv", orders_file="orders_generated.csv"):
    """
    Generates a rider roster and a backlog of pending orders for dispatch runs.
    A share of riders is generated inactive so the eligibility filter has
    something to drop.
    """
    rng = np.random.default_rng(seed)

    # 1. Riders
    riders = pd.DataFrame({
        "name": [f"Rider {rider_index + 1}" for rider_index in range(num_riders)],
        "phone": [f"+26377{rng.integers(1000000, 9999999)}" for _ in range(num_riders)],
        "status": rng.choice(["active", "inactive"], size=num_riders, p=[1 - inactive_share, inactive_share]),
    })

    # 2. Orders
    orders = pd.DataFrame({
        "customer_id": [f"c_{rng.integers(1000, 9999)}" for _ in range(num_orders)],
        "delivery_fee": np.round(rng.uniform(1.5, 8.0, size=num_orders), 2),
    })

    # 3. Save to CSV
    if riders_file:
        riders.to_csv(riders_file, index=False)
    if orders_file:
        orders.to_csv(orders_file, index=False)
    print(f"✅ Generated {num_riders} riders ({(riders['status'] == 'active').sum()} active) and {num_orders} orders")
    return riders, orders


if __name__ == "__main__":
    generate_mock_data()
