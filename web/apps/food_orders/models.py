from django.db import models


class FoodOrderModel(models.Model):
    class State(models.TextChoices):
        CREATED = "CREATED"
        CONFIRMED = "CONFIRMED"
        READY = "READY"
        DELIVERED = "DELIVERED"
        CANCELLED = "CANCELLED"

    state = models.CharField(max_length=32, choices=State.choices, default=State.CREATED)
    payment_info = models.CharField(max_length=255, blank=True, default="")
    food_joint_id = models.PositiveBigIntegerField(null=True, blank=True)
    total_cents = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "food_orders"
        ordering = ["id"]


class OrderLineModel(models.Model):
    food_order = models.ForeignKey(FoodOrderModel, on_delete=models.CASCADE, related_name="lines")
    food_id = models.PositiveBigIntegerField()
    name = models.CharField(max_length=120, blank=True, default="")
    quantity = models.PositiveIntegerField()
    unit_price_cents = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "food_order_lines"
        ordering = ["id"]


class TicketModel(models.Model):
    class State(models.TextChoices):
        WAITING = "WAITING"
        READY = "READY"
        SERVED = "SERVED"

    # Short code read out to the customer
    number = models.CharField(max_length=16, unique=True)
    food_order = models.OneToOneField(FoodOrderModel, on_delete=models.CASCADE, related_name="ticket")
    food_joint_id = models.PositiveBigIntegerField()
    state = models.CharField(max_length=16, choices=State.choices, default=State.WAITING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "tickets"


class IdempotencyKey(models.Model):
    key = models.CharField(max_length=128, unique=True)
    request_hash = models.CharField(max_length=64)
    response_status = models.PositiveSmallIntegerField(default=0)
    response_body = models.JSONField(default=dict)
    response_headers = models.JSONField(default=dict)
    ticket_id = models.PositiveBigIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "idempotency_keys"
