"""
Purpose: Package entry + stable exports.
What it does:

Marks orders as a Python package and re-exports the domain models so other
modules can do:

from orders import Order, OrderStatus

Should not contain business logic. The lifecycle service lives in
orders.lifecycle, customer messaging in orders.communication.
"""
from .models import Order, OrderStatus, Delivery, Assignment, Communication

__all__ = [
    "Order",
    "OrderStatus",
    "Delivery",
    "Assignment",
    "Communication",
]
