"""In-process search index adapter for the food orders domain.

``DatabaseSearchIndex`` implements ``SearchIndexPort`` on top of the
orders database itself. It needs no extra service, which makes it the
default for tests and local development.
"""

from typing import List

from django.db.models import Q

from .domain import MAX_ID, FoodOrder, SearchIndexPort
from .models import FoodOrderModel


class DatabaseSearchIndex(SearchIndexPort):
    """Search index that queries the order tables directly.

    Every whitespace separated term of the query must match, case
    insensitively, the payment info, the state or a line name. ASCII
    numeric terms that fit a bigint also match the order id and the food
    joint id.
    """

    def index(self, order: FoodOrder) -> None:
        # The rows are the index.
        return None

    def remove(self, order_id: int) -> None:
        return None

    def search(self, query: str) -> List[int]:
        """Return ids of the matching orders in ascending id order.

        Args:
            query: Free text query.

        Returns:
            list[int]: Matching order ids; empty for a blank query.
        """
        terms = query.split()
        if not terms:
            return []
        qs = FoodOrderModel.objects.all()
        for term in terms:
            cond = (
                Q(payment_info__icontains=term)
                | Q(state__iexact=term)
                | Q(lines__name__icontains=term)
            )
            # str.isdigit also accepts superscripts and other digits int() rejects
            if term.isascii() and term.isdigit() and int(term) <= MAX_ID:
                cond |= Q(id=int(term)) | Q(food_joint_id=int(term))
            qs = qs.filter(cond)
        return list(qs.order_by("id").values_list("id", flat=True).distinct())

    def ping(self) -> bool:
        return True
