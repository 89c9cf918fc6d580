import pytest

from apps.food_orders.models import FoodOrderModel, IdempotencyKey, TicketModel

CART_URL = "/api/food-orders/new"

CART = {
    "payment_info": "tok_mc_5555",
    "food_joint_id": 4,
    "items": [{"food_id": 8, "quantity": 1, "name": "Falafel Wrap", "unit_price_cents": 750}],
}


def _post(client, payload, key):
    return client.post(CART_URL, data=payload, content_type="application/json", HTTP_IDEMPOTENCY_KEY=key)


@pytest.mark.django_db
def test_retry_with_same_payload_replays_ticket(client):
    r1 = _post(client, CART, "idem-same-1")
    assert r1.status_code == 201

    r2 = _post(client, CART, "idem-same-1")
    assert r2.status_code == 201
    assert r2.json() == r1.json()
    assert r2.headers["Location"] == r1.headers["Location"]
    assert r2.headers["Idempotent-Replay"] == "true"
    assert TicketModel.objects.count() == 1
    assert FoodOrderModel.objects.count() == 1
    assert IdempotencyKey.objects.get(key="idem-same-1").ticket_id == r1.json()["id"]


@pytest.mark.django_db
def test_same_key_with_different_payload_conflicts(client):
    assert _post(client, CART, "idem-conflict-1").status_code == 201

    other = {**CART, "food_joint_id": 5}
    r = _post(client, other, "idem-conflict-1")
    assert r.status_code == 409
    assert r.json()["detail"] == "IDEMPOTENCY_CONFLICT"
    assert r.headers["X-foodOrdersApp-error"] == "error.idempotencyconflict"


@pytest.mark.django_db
def test_invalid_cart_does_not_consume_key(client):
    r = _post(client, {**CART, "items": []}, "idem-invalid")
    assert r.status_code == 400
    assert not IdempotencyKey.objects.filter(key="idem-invalid").exists()


@pytest.mark.django_db
def test_replay_preserves_domain_error(client, monkeypatch):
    from apps.food_orders import providers

    class RejectingService:
        def create_order(self, cart):
            raise ValueError("EMPTY_ORDER")

    monkeypatch.setattr(providers, "get_food_order_service", lambda: RejectingService())
    r1 = _post(client, CART, "idem-400")
    r2 = _post(client, CART, "idem-400")
    assert r1.status_code == r2.status_code == 400
    assert r2.json() == {"detail": "EMPTY_ORDER"}
    assert r2.headers["Idempotent-Replay"] == "true"


@pytest.mark.django_db
def test_unexpected_failure_releases_key(client, monkeypatch):
    from apps.food_orders import providers

    class BrokenService:
        def create_order(self, cart):
            raise RuntimeError("db down")

    monkeypatch.setattr(providers, "get_food_order_service", lambda: BrokenService())
    r = _post(client, CART, "idem-500")
    assert r.status_code == 500
    assert not IdempotencyKey.objects.filter(key="idem-500").exists()

    monkeypatch.undo()
    assert _post(client, CART, "idem-500").status_code == 201


@pytest.mark.django_db
def test_index_outage_retry_does_not_duplicate_order(client, settings, monkeypatch):
    import httpx

    settings.USE_HTTP_SEARCH_INDEX = True
    settings.SEARCH_INDEX_BASE_URL = "http://search"
    settings.HTTP_RETRY_MAX = 0

    def fake_request(self, method, url, **kw):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.Client, "request", fake_request, raising=True)
    assert _post(client, CART, "idem-index-down").status_code == 503
    assert _post(client, CART, "idem-index-down").status_code == 503
    assert FoodOrderModel.objects.count() == 0
    assert TicketModel.objects.count() == 0
    assert not IdempotencyKey.objects.filter(key="idem-index-down").exists()

    monkeypatch.undo()
    settings.USE_HTTP_SEARCH_INDEX = False
    assert _post(client, CART, "idem-index-down").status_code == 201
    assert FoodOrderModel.objects.count() == 1
