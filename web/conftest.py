import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def use_database_search_index(settings):
    settings.USE_HTTP_SEARCH_INDEX = False


@pytest.fixture(autouse=True)
def reset_throttle_counters():
    # ScopedRateThrottle history lives in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def reset_search_circuit():
    from apps.food_orders.http_adapters import _search_cb

    _search_cb.on_success()
    yield
    _search_cb.on_success()
