"""Service provider helpers for wiring FoodOrderService with its ports.

``get_food_order_service`` returns a configured ``FoodOrderService``. The
repository is always the Django ORM one; the search index is the HTTP
search service client when ``settings.USE_HTTP_SEARCH_INDEX`` is truthy
and the in-process database index otherwise.
"""

from django.conf import settings

from .adapters import DatabaseSearchIndex
from .domain import FoodOrderService, SearchIndexPort
from .http_adapters import HttpSearchIndexClient
from .repository import FoodOrderRepository


def get_search_index() -> SearchIndexPort:
    if getattr(settings, "USE_HTTP_SEARCH_INDEX", False):
        return HttpSearchIndexClient()
    return DatabaseSearchIndex()


def get_food_order_service() -> FoodOrderService:
    """Return a FoodOrderService wired for the current settings."""
    return FoodOrderService(
        repository=FoodOrderRepository(),
        search_index=get_search_index(),
    )
