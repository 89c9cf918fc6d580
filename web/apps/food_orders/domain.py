"""Domain models, ports and service for food orders.

This module contains the dataclasses used as DTOs between the HTTP layer
and persistence, protocol definitions (ports) for the repository and the
search index, and the ``FoodOrderService`` every endpoint delegates to.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol, Tuple

# Upper bounds of the backing columns: bigint ids, 32-bit money and quantities.
MAX_ID = 2**63 - 1
MAX_CENTS = 2**31 - 1
MAX_QUANTITY = 10_000


# ---- Enums ----
class OrderState(str, Enum):
    """Lifecycle of a food order."""

    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class TicketState(str, Enum):
    WAITING = "WAITING"
    READY = "READY"
    SERVED = "SERVED"


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class OrderLine:
    """A single line of a food order.

    Attributes:
        food_id: Identifier of the dish on the food joint's menu.
        quantity: Number of portions requested.
        name: Display name of the dish, kept for tickets and search.
        unit_price_cents: Price of one portion in integer cents.
    """

    food_id: int
    quantity: int
    name: str = ""
    unit_price_cents: int = 0

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass
class FoodOrder:
    """Container for food order data.

    Attributes:
        id: Persistent identifier, or None if not yet saved.
        state: Current OrderState.
        payment_info: Opaque payment reference supplied by the client.
        food_joint_id: Restaurant the order belongs to, if known.
        total_cents: Order total in integer cents.
        lines: OrderLine objects that make up the order.
        ticket_id: Identifier of the kitchen ticket, None while unticketed.
        created_at: Creation timestamp set by the persistence layer.
    """

    id: Optional[int]
    state: OrderState = OrderState.CREATED
    payment_info: str = ""
    food_joint_id: Optional[int] = None
    total_cents: int = 0
    lines: List[OrderLine] = field(default_factory=list)
    ticket_id: Optional[int] = None
    created_at: Optional[datetime] = None

    def search_text(self) -> str:
        """Flatten the searchable attributes into one whitespace separated string."""
        parts = [str(self.id), self.state.value, self.payment_info]
        if self.food_joint_id is not None:
            parts.append(str(self.food_joint_id))
        parts.extend(line.name for line in self.lines if line.name)
        return " ".join(p for p in parts if p)


@dataclass(frozen=True)
class Cart:
    """A cart submitted by a customer, not persisted as-is."""

    payment_info: str
    food_joint_id: int
    items: List[OrderLine]


@dataclass(frozen=True)
class TicketGo:
    """Kitchen ticket issued for an order placed from a cart."""

    id: int
    number: str
    food_order_id: int
    food_joint_id: int
    state: TicketState
    total_cents: int


# ---- Ports (DIP) ----
class FoodOrderRepositoryPort(Protocol):
    """Port describing the persistence operations used by the service."""

    def save(self, order: FoodOrder) -> FoodOrder:
        """Insert the order when it has no id or an unknown one, otherwise update it.

        Inserted orders always get a generated id. Lines are replaced by
        the ones carried by ``order``.
        """
        raise NotImplementedError()

    def save_with_ticket(self, order: FoodOrder) -> Tuple[FoodOrder, TicketGo]:
        """Insert a new order together with a fresh ticket, atomically."""
        raise NotImplementedError()

    def find_all(self) -> List[FoodOrder]:
        raise NotImplementedError()

    def find_all_where_ticket_is_null(self) -> List[FoodOrder]:
        raise NotImplementedError()

    def find_one(self, order_id: int) -> Optional[FoodOrder]:
        raise NotImplementedError()

    def find_by_ids(self, order_ids: List[int]) -> List[FoodOrder]:
        """Load the given orders preserving the order of ``order_ids``.

        Unknown ids are skipped.
        """
        raise NotImplementedError()

    def delete(self, order_id: int) -> None:
        raise NotImplementedError()


class SearchIndexPort(Protocol):
    """Port describing the full-text index kept alongside the orders."""

    def index(self, order: FoodOrder) -> None:
        """Add or replace the document for ``order``."""
        raise NotImplementedError()

    def remove(self, order_id: int) -> None:
        """Drop the document for ``order_id``; absent documents are ignored."""
        raise NotImplementedError()

    def search(self, query: str) -> List[int]:
        """Return ids of the orders matching ``query``, best match first."""
        raise NotImplementedError()

    def ping(self) -> bool:
        raise NotImplementedError()


# ---- Domain service ----
class FoodOrderService:
    """Domain service behind every food order endpoint.

    The service keeps the repository and the search index in step: every
    write goes to the repository first and is then mirrored into the
    index. It does not know about HTTP.
    """

    def __init__(self, repository: FoodOrderRepositoryPort, search_index: SearchIndexPort):
        self.repository = repository
        self.search_index = search_index

    def save(self, order: FoodOrder) -> FoodOrder:
        """Persist an order and refresh its search document.

        Args:
            order: Order to insert (``id`` is None) or update.

        Returns:
            The saved order as reloaded from the repository.
        """
        saved = self.repository.save(order)
        self.search_index.index(saved)
        return saved

    def create_order(self, cart: Cart) -> TicketGo:
        """Turn a cart into a confirmed order with a kitchen ticket.

        The order total is the sum of the line subtotals. The order and its
        ticket are written in one repository call so neither exists without
        the other.

        Args:
            cart: The submitted cart.

        Returns:
            The issued TicketGo.

        Raises:
            ValueError: 'EMPTY_ORDER' if the cart has no items.
            ValueError: 'TOTAL_TOO_LARGE' if the total does not fit in cents.
        """
        if not cart.items:
            raise ValueError("EMPTY_ORDER")
        total = sum(item.subtotal_cents for item in cart.items)
        if total > MAX_CENTS:
            raise ValueError("TOTAL_TOO_LARGE")

        order = FoodOrder(
            id=None,
            state=OrderState.CONFIRMED,
            payment_info=cart.payment_info,
            food_joint_id=cart.food_joint_id,
            total_cents=total,
            lines=list(cart.items),
        )
        saved, ticket = self.repository.save_with_ticket(order)
        self.search_index.index(saved)
        return ticket

    def find_all(self) -> List[FoodOrder]:
        return self.repository.find_all()

    def find_all_where_ticket_is_null(self) -> List[FoodOrder]:
        return self.repository.find_all_where_ticket_is_null()

    def find_one(self, order_id: int) -> Optional[FoodOrder]:
        return self.repository.find_one(order_id)

    def delete(self, order_id: int) -> None:
        self.repository.delete(order_id)
        self.search_index.remove(order_id)

    def search(self, query: str) -> List[FoodOrder]:
        """Run ``query`` against the index and load the matching orders.

        A blank query matches nothing.
        """
        if not query.strip():
            return []
        return self.repository.find_by_ids(self.search_index.search(query))
