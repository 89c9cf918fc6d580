"""Pydantic schemas for the food order API.

Input schemas validate request bodies before they are mapped onto the
domain dataclasses; output schemas shape the JSON returned to clients.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .domain import MAX_CENTS, MAX_ID, MAX_QUANTITY, Cart, FoodOrder, OrderLine, OrderState, TicketState


class OrderLineIn(BaseModel):
    """Input schema for a single order line.

    Attributes:
        food_id: Positive dish identifier.
        quantity: Positive number of portions, at most MAX_QUANTITY.
        name: Optional display name (at most 120 characters).
        unit_price_cents: Non-negative price of one portion.
    """

    food_id: int = Field(gt=0, le=MAX_ID)
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    name: str = Field(default="", max_length=120)
    unit_price_cents: int = Field(default=0, ge=0, le=MAX_CENTS)

    def to_domain(self) -> OrderLine:
        return OrderLine(
            food_id=self.food_id,
            quantity=self.quantity,
            name=self.name,
            unit_price_cents=self.unit_price_cents,
        )


class FoodOrderIn(BaseModel):
    """Schema for creating or updating a food order.

    ``ticket_id`` and ``created_at`` are owned by the server; if a client
    echoes them back they are ignored.
    """

    id: Optional[int] = Field(default=None, gt=0, le=MAX_ID)
    state: OrderState = OrderState.CREATED
    payment_info: str = Field(default="", max_length=255)
    food_joint_id: Optional[int] = Field(default=None, gt=0, le=MAX_ID)
    total_cents: int = Field(default=0, ge=0, le=MAX_CENTS)
    lines: List[OrderLineIn] = []

    def to_domain(self) -> FoodOrder:
        return FoodOrder(
            id=self.id,
            state=self.state,
            payment_info=self.payment_info,
            food_joint_id=self.food_joint_id,
            total_cents=self.total_cents,
            lines=[line.to_domain() for line in self.lines],
        )


class OrderDTO(BaseModel):
    """Schema for a cart submitted through ``/food-orders/new``.

    Attributes:
        payment_info: Non-empty payment reference.
        food_joint_id: Positive food joint identifier.
        items: At least one line; the line subtotals must add up to at
            most MAX_CENTS.
    """

    payment_info: str = Field(min_length=1, max_length=255)
    food_joint_id: int = Field(gt=0, le=MAX_ID)
    items: List[OrderLineIn] = Field(min_length=1)

    @model_validator(mode="after")
    def _total_fits(self):
        if sum(item.quantity * item.unit_price_cents for item in self.items) > MAX_CENTS:
            raise ValueError("order total is too large")
        return self

    def to_domain(self) -> Cart:
        return Cart(
            payment_info=self.payment_info,
            food_joint_id=self.food_joint_id,
            items=[item.to_domain() for item in self.items],
        )


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    food_id: int
    quantity: int
    name: str
    unit_price_cents: int


class FoodOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    state: OrderState
    payment_info: str
    food_joint_id: Optional[int] = None
    total_cents: int
    lines: List[OrderLineOut]
    ticket_id: Optional[int] = None
    created_at: Optional[datetime] = None


class TicketGoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: str
    food_order_id: int
    food_joint_id: int
    state: TicketState
    total_cents: int
