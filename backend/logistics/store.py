"""
Purpose: Django ORM implementation of the Store boundary.
What it does:
- Maps the logistics models onto the domain dataclasses
- transaction() is django.db.transaction.atomic()
- The rider assignment locks the order and rider rows (select_for_update)
  and re-checks both before writing, so two concurrent dispatch runs cannot
  hand the same rider two orders
- Status writes and rider deletes are conditional on the row state at write
  time, so a concurrent cancel or assignment is never overwritten
- Any DatabaseError surfaces as errors.InternalError
"""

import logging
from contextlib import contextmanager
from decimal import Decimal
from functools import wraps

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, connections
from django.db import transaction as db_transaction
from django.db.models import Avg, Count, Sum
from django.utils import timezone

from errors import (
    InternalError,
    NotFound,
    OrderNotPending,
    OrderStateChanged,
    RiderBusy,
    RiderUnavailable,
    ValidationError,
)
from orders.models import Order, OrderStatus
from riders.models import Rating, Rider, RiderStatus
from store.base import Store

from . import models

logger = logging.getLogger(__name__)


def translate_errors(func):
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        self.ensure_open()
        try:
            return func(self, *args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Store failure in {func.__name__}: {e}")
            raise InternalError(f"Store failure in {func.__name__}") from e
    return wrapper


def _clean(row):
    try:
        row.full_clean()
    except DjangoValidationError as e:
        raise ValidationError("; ".join(f"{k}: {' '.join(v)}" for k, v in e.message_dict.items())) from None


class DjangoStore(Store):

    def open(self):
        super().open()
        logger.info("Django store opened")
        return self

    def close(self):
        super().close()
        connections.close_all()

    @contextmanager
    def transaction(self):
        self.ensure_open()
        try:
            with db_transaction.atomic():
                yield self
        except DatabaseError as e:
            logger.error(f"Transaction failed: {e}")
            raise InternalError("Transaction failed") from e

    # --- Mapping ---

    @staticmethod
    def _riders():
        return models.Rider.objects.annotate(avg_score=Avg("ratings__score"), score_count=Count("ratings"))

    @staticmethod
    def _to_rider(row) -> Rider:
        return Rider(
            id=row.id,
            name=row.name,
            status=RiderStatus(row.status),
            phone=str(row.phone) if row.phone else "",
            email=row.email,
            rating=row.avg_score,
            rating_count=row.score_count,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_order(row) -> Order:
        return Order(
            id=row.id,
            customer_id=row.customer_id,
            status=OrderStatus(row.status),
            rider_id=row.rider_id,
            delivery_fee=float(row.delivery_fee),
            created_at=row.created_at,
            assigned_at=row.assigned_at,
            delivered_at=row.delivered_at,
        )

    # --- Riders ---

    @translate_errors
    def list_riders(self):
        return [self._to_rider(row) for row in self._riders()]

    @translate_errors
    def get_rider(self, rider_id):
        try:
            return self._to_rider(self._riders().get(pk=rider_id))
        except models.Rider.DoesNotExist:
            raise NotFound(f"Rider {rider_id} not found") from None

    @translate_errors
    def insert_rider(self, fields):
        row = models.Rider(
            name=fields["name"],
            phone=fields.get("phone", ""),
            email=fields.get("email", ""),
            status=RiderStatus(fields.get("status", RiderStatus.ACTIVE)).value,
        )
        _clean(row)
        row.save()
        return row.id

    @translate_errors
    def update_rider(self, rider_id, fields):
        try:
            row = models.Rider.objects.get(pk=rider_id)
        except models.Rider.DoesNotExist:
            return False
        for key, value in fields.items():
            setattr(row, key, RiderStatus(value).value if key == "status" else value)
        _clean(row)
        row.save()
        return True

    @translate_errors
    def delete_rider(self, rider_id):
        with db_transaction.atomic():
            # assign_rider_to_order locks the same row
            if models.Rider.objects.select_for_update().filter(pk=rider_id).first() is None:
                return False
            deleted, _ = models.Rider.objects.filter(pk=rider_id).exclude(
                orders__status=OrderStatus.ASSIGNED.value
            ).delete()
            if not deleted:
                raise RiderBusy(f"Rider {rider_id} holds an assigned order")
        return True

    @translate_errors
    def set_rider_status(self, rider_id, status):
        return models.Rider.objects.filter(pk=rider_id).update(status=RiderStatus(status).value) > 0

    @translate_errors
    def insert_rating(self, rider_id, score, feedback):
        if not models.Rider.objects.filter(pk=rider_id).exists():
            raise NotFound(f"Rider {rider_id} not found")
        return models.RiderRating.objects.create(rider_id=rider_id, score=score, feedback=feedback).id

    @translate_errors
    def list_ratings(self, rider_id):
        return [
            Rating(id=r.id, rider_id=r.rider_id, score=r.score, feedback=r.feedback, created_at=r.created_at)
            for r in models.RiderRating.objects.filter(rider_id=rider_id)
        ]

    @translate_errors
    def rider_has_active_order(self, rider_id):
        return models.Order.objects.filter(rider_id=rider_id, status=OrderStatus.ASSIGNED.value).exists()

    # --- Orders ---

    @translate_errors
    def insert_order(self, customer_id, delivery_fee=0.0):
        return models.Order.objects.create(customer_id=customer_id, delivery_fee=Decimal(str(delivery_fee))).id

    @translate_errors
    def get_order(self, order_id):
        try:
            return self._to_order(models.Order.objects.get(pk=order_id))
        except models.Order.DoesNotExist:
            raise NotFound(f"Order {order_id} not found") from None

    @translate_errors
    def list_orders(self, status=None):
        rows = models.Order.objects.all()
        if status is not None:
            rows = rows.filter(status=OrderStatus(status).value)
        return [self._to_order(row) for row in rows]

    @translate_errors
    def list_active_riders(self):
        rows = self._riders().filter(status=RiderStatus.ACTIVE.value).exclude(
            orders__status=OrderStatus.ASSIGNED.value
        )
        return [self._to_rider(row) for row in rows]

    @translate_errors
    def assign_rider_to_order(self, rider_id, order_id):
        # savepoint: a rejected pair must not poison an enclosing batch transaction
        with db_transaction.atomic():
            try:
                order = models.Order.objects.select_for_update().get(pk=order_id)
            except models.Order.DoesNotExist:
                raise NotFound(f"Order {order_id} not found") from None
            try:
                rider = models.Rider.objects.select_for_update().get(pk=rider_id)
            except models.Rider.DoesNotExist:
                raise NotFound(f"Rider {rider_id} not found") from None

            if order.status != OrderStatus.PENDING.value:
                raise OrderNotPending(f"Order {order_id} is {order.status}, not pending")
            if rider.status != RiderStatus.ACTIVE.value:
                raise RiderUnavailable(f"Rider {rider_id} is not active")
            if models.Order.objects.filter(rider=rider, status=OrderStatus.ASSIGNED.value).exists():
                raise RiderUnavailable(f"Rider {rider_id} already holds an assigned order")

            order.rider = rider
            order.status = OrderStatus.ASSIGNED.value
            order.assigned_at = timezone.now()
            order.save(update_fields=["rider", "status", "assigned_at"])
        return self._to_order(order)

    @translate_errors
    def set_order_status(self, order_id, status, expected=None):
        changes = {"status": OrderStatus(status).value}
        if changes["status"] == OrderStatus.DELIVERED.value:
            changes["delivered_at"] = timezone.now()

        rows = models.Order.objects.filter(pk=order_id)
        if expected is None:
            return rows.update(**changes) > 0
        if rows.filter(status=OrderStatus(expected).value).update(**changes):
            return True

        current = rows.values_list("status", flat=True).first()
        if current is None:
            return False
        raise OrderStateChanged(f"Order {order_id} is {current}, expected {OrderStatus(expected).value}")

    # --- Communications ---

    @translate_errors
    def insert_communication(self, customer_id, message):
        models.CustomerCommunication.objects.create(customer_id=customer_id, message=message)
        return True

    # --- Deliveries & aggregates ---

    @translate_errors
    def insert_delivery(self, order_id, rider_id, duration_seconds, cost):
        return models.Delivery.objects.create(
            order_id=order_id,
            rider_id=rider_id,
            duration_seconds=duration_seconds,
            cost=Decimal(str(cost)),
        ).id

    @translate_errors
    def count_deliveries(self):
        return models.Delivery.objects.count()

    @translate_errors
    def average_delivery_duration(self):
        return models.Delivery.objects.aggregate(value=Avg("duration_seconds"))["value"]

    @translate_errors
    def average_rating(self):
        return models.RiderRating.objects.aggregate(value=Avg("score"))["value"]

    @translate_errors
    def total_delivery_cost(self):
        total = models.Delivery.objects.aggregate(value=Sum("cost"))["value"]
        return float(total or 0)
