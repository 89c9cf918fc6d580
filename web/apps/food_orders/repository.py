"""Repository layer for persisting food orders and tickets.

The repository maps the Django ORM models onto the domain dataclasses so
the service and the views never handle model instances directly.
"""

import secrets
from typing import List, Optional, Tuple

from django.db import IntegrityError, transaction

from .domain import MAX_ID, FoodOrder, FoodOrderRepositoryPort, OrderLine, OrderState, TicketGo, TicketState
from .models import FoodOrderModel, OrderLineModel, TicketModel

TICKET_NUMBER_ATTEMPTS = 5


def _to_domain(obj: FoodOrderModel) -> FoodOrder:
    ticket = getattr(obj, "ticket", None)
    return FoodOrder(
        id=obj.id,
        state=OrderState(obj.state),
        payment_info=obj.payment_info,
        food_joint_id=obj.food_joint_id,
        total_cents=obj.total_cents,
        lines=[
            OrderLine(
                food_id=line.food_id,
                quantity=line.quantity,
                name=line.name,
                unit_price_cents=line.unit_price_cents,
            )
            for line in obj.lines.all()
        ],
        ticket_id=ticket.id if ticket is not None else None,
        created_at=obj.created_at,
    )


def _ticket_to_domain(ticket: TicketModel, order: FoodOrderModel) -> TicketGo:
    return TicketGo(
        id=ticket.id,
        number=ticket.number,
        food_order_id=order.id,
        food_joint_id=ticket.food_joint_id,
        state=TicketState(ticket.state),
        total_cents=order.total_cents,
    )


class FoodOrderRepository(FoodOrderRepositoryPort):
    """Repository that persists FoodOrder domain objects using Django ORM."""

    def _queryset(self):
        return FoodOrderModel.objects.select_related("ticket").prefetch_related("lines")

    def _write_lines(self, obj: FoodOrderModel, lines: List[OrderLine]) -> None:
        obj.lines.all().delete()
        OrderLineModel.objects.bulk_create(
            OrderLineModel(
                food_order=obj,
                food_id=line.food_id,
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
            )
            for line in lines
        )

    def _write(self, order: FoodOrder) -> FoodOrderModel:
        fields = {
            "state": order.state.value,
            "payment_info": order.payment_info,
            "food_joint_id": order.food_joint_id,
            "total_cents": order.total_cents,
        }
        obj = None
        if order.id is not None:
            obj = FoodOrderModel.objects.select_for_update().filter(id=order.id).first()
        if obj is None:
            # ids are always generated, never taken from the client
            obj = FoodOrderModel.objects.create(**fields)
        else:
            for name, value in fields.items():
                setattr(obj, name, value)
            obj.save(update_fields=list(fields))
        self._write_lines(obj, order.lines)
        return obj

    @transaction.atomic
    def save(self, order: FoodOrder) -> FoodOrder:
        """Insert or update ``order`` and return it as stored.

        Args:
            order: Domain order. When ``order.id`` is set but no such row
                exists, the order is inserted under a newly generated id.

        Returns:
            The reloaded domain order, including ``created_at`` and
            ``ticket_id``.
        """
        obj = self._write(order)
        return _to_domain(self._queryset().get(id=obj.id))

    @transaction.atomic
    def save_with_ticket(self, order: FoodOrder) -> Tuple[FoodOrder, TicketGo]:
        """Insert ``order`` and issue a WAITING ticket for it.

        Ticket numbers are random 8 character hex codes; on the rare
        collision a new code is drawn inside a savepoint.

        Raises:
            IntegrityError: If no free ticket number was found.
        """
        obj = self._write(order)
        for attempt in range(TICKET_NUMBER_ATTEMPTS):
            try:
                with transaction.atomic():
                    ticket = TicketModel.objects.create(
                        number=secrets.token_hex(4).upper(),
                        food_order=obj,
                        food_joint_id=order.food_joint_id,
                    )
                break
            except IntegrityError:
                if attempt == TICKET_NUMBER_ATTEMPTS - 1:
                    raise
        saved = self._queryset().get(id=obj.id)
        return _to_domain(saved), _ticket_to_domain(ticket, saved)

    def find_all(self) -> List[FoodOrder]:
        return [_to_domain(o) for o in self._queryset()]

    def find_all_where_ticket_is_null(self) -> List[FoodOrder]:
        return [_to_domain(o) for o in self._queryset().filter(ticket__isnull=True)]

    def find_one(self, order_id: int) -> Optional[FoodOrder]:
        if order_id > MAX_ID:
            return None
        obj = self._queryset().filter(id=order_id).first()
        return _to_domain(obj) if obj is not None else None

    def find_by_ids(self, order_ids: List[int]) -> List[FoodOrder]:
        wanted = [i for i in order_ids if 0 < i <= MAX_ID]
        by_id = {o.id: o for o in self._queryset().filter(id__in=wanted)}
        return [_to_domain(by_id[i]) for i in order_ids if i in by_id]

    def delete(self, order_id: int) -> None:
        if order_id > MAX_ID:
            return
        FoodOrderModel.objects.filter(id=order_id).delete()
