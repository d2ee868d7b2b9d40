from django.db import models
from phonenumber_field.modelfields import PhoneNumberField


class Rider(models.Model):
    """
    A delivery rider. The aggregate rating is computed from RiderRating rows
    at read time and never stored here.
    """
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    name = models.CharField(max_length=255)
    # Contact number, validated as an international number on full_clean()
    phone = PhoneNumberField(blank=True)
    email = models.EmailField(blank=True)

    # Only ACTIVE riders are matched by the dispatcher
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "riders"
        ordering = ["id"]

    def __str__(self):
        return f"{self.name} ({self.get_status_display()})"


class RiderRating(models.Model):
    """
    Immutable score + feedback left for a rider.
    """
    rider = models.ForeignKey(Rider, on_delete=models.CASCADE, related_name="ratings")
    score = models.FloatField()
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "rider_ratings"
        ordering = ["id"]


class Order(models.Model):
    """
    Dispatch view of a customer order.
    Tracks lifecycle: Pending -> Assigned -> Delivered (or Cancelled).
    """
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ASSIGNED = "assigned", "Assigned"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    customer_id = models.CharField(max_length=64)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    # Rider is set together with the ASSIGNED status, in one write
    rider = models.ForeignKey(Rider, on_delete=models.SET_NULL, null=True, blank=True, related_name="orders")
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    assigned_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = "orders"
        ordering = ["id"]

    def __str__(self):
        return f"Order #{self.id} - {self.status}"


class Delivery(models.Model):
    """
    History row written when a delivery is confirmed. Analytics read these.
    """
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="delivery")
    rider = models.ForeignKey(Rider, on_delete=models.SET_NULL, null=True, blank=True, related_name="deliveries")
    duration_seconds = models.FloatField(blank=True, null=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    delivered_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "deliveries"
        ordering = ["id"]


class CustomerCommunication(models.Model):
    customer_id = models.CharField(max_length=64, db_index=True)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "customer_communication"
        ordering = ["id"]
