"""API tests for creating and updating food orders.

Covers ``POST /api/food-orders`` and ``PUT /api/food-orders``: the id
rules, the Location and alert headers, schema validation, and the PUT to
POST delegation for orders without an id.
"""

import pytest

from apps.food_orders import providers
from apps.food_orders.models import FoodOrderModel

COLLECTION_URL = "/api/food-orders"
ALERT = "X-foodOrdersApp-alert"
PARAMS = "X-foodOrdersApp-params"
ERROR = "X-foodOrdersApp-error"

PAYLOAD = {
    "state": "CREATED",
    "payment_info": "cash",
    "food_joint_id": 3,
    "total_cents": 1800,
    "lines": [{"food_id": 5, "quantity": 2, "name": "Burrito", "unit_price_cents": 900}],
}


@pytest.mark.django_db
def test_create_returns_201_with_location_and_alert(client):
    r = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    assert r.status_code == 201
    body = r.json()
    oid = body["id"]
    assert r.headers["Location"] == f"/api/food-orders/{oid}"
    assert r.headers[ALERT] == "foodOrdersApp.foodOrder.created"
    assert r.headers[PARAMS] == str(oid)
    assert body["payment_info"] == "cash"
    assert body["ticket_id"] is None
    assert body["lines"] == PAYLOAD["lines"]
    assert FoodOrderModel.objects.filter(id=oid).exists()


@pytest.mark.django_db
def test_create_with_id_returns_400_and_never_reaches_service(client, monkeypatch):
    """A new order carrying an id is rejected before the service is built."""

    def fail():
        raise AssertionError("service must not be called")

    monkeypatch.setattr(providers, "get_food_order_service", fail)
    r = client.post(COLLECTION_URL, data={**PAYLOAD, "id": 42}, content_type="application/json")
    assert r.status_code == 400
    assert r.content == b""
    assert r.headers[ERROR] == "error.idexists"
    assert r.headers[PARAMS] == "foodOrder"
    assert FoodOrderModel.objects.count() == 0


@pytest.mark.django_db
def test_create_validation_error_returns_400(client):
    payload = {**PAYLOAD, "total_cents": -1, "lines": [{"food_id": 0, "quantity": 0}]}
    r = client.post(COLLECTION_URL, data=payload, content_type="application/json")
    assert r.status_code == 400
    assert r.headers[ERROR] == "error.invalidpayload"
    locs = {tuple(e["loc"]) for e in r.json()["detail"]}
    assert ("total_cents",) in locs
    assert ("lines", 0, "food_id") in locs


@pytest.mark.django_db
def test_create_malformed_json_returns_400(client):
    r = client.post(COLLECTION_URL, data="{not json", content_type="application/json")
    assert r.status_code == 400
    assert r.headers[ERROR] == "error.invalidpayload"
    assert r.headers[PARAMS] == "foodOrder"
    assert "detail" in r.json()


@pytest.mark.django_db
def test_update_existing_returns_200_with_update_alert(client):
    created = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json").json()
    payload = {**PAYLOAD, "id": created["id"], "state": "READY", "lines": []}
    r = client.put(COLLECTION_URL, data=payload, content_type="application/json")
    assert r.status_code == 200
    assert r.headers[ALERT] == "foodOrdersApp.foodOrder.updated"
    assert r.headers[PARAMS] == str(created["id"])
    assert "Location" not in r.headers
    body = r.json()
    assert body["state"] == "READY"
    assert body["lines"] == []
    assert FoodOrderModel.objects.get(id=created["id"]).state == "READY"


@pytest.mark.django_db
def test_update_without_id_behaves_like_create(client):
    r_put = client.put(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    r_post = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    assert r_put.status_code == r_post.status_code == 201
    for r in (r_put, r_post):
        oid = r.json()["id"]
        assert r.headers["Location"] == f"/api/food-orders/{oid}"
        assert r.headers[ALERT] == "foodOrdersApp.foodOrder.created"
        assert r.headers[PARAMS] == str(oid)


@pytest.mark.django_db
def test_update_ignores_client_supplied_ticket_id(client):
    created = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json").json()
    payload = {**PAYLOAD, "id": created["id"], "ticket_id": 77}
    r = client.put(COLLECTION_URL, data=payload, content_type="application/json")
    assert r.status_code == 200
    assert r.json()["ticket_id"] is None


@pytest.mark.django_db
def test_alert_header_prefix_follows_settings(client, settings):
    settings.ALERT_APPLICATION_NAME = "kitchenApp"
    r = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    assert r.headers["X-kitchenApp-alert"] == "kitchenApp.foodOrder.created"


@pytest.mark.django_db
def test_responses_carry_request_id(client):
    r = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json", HTTP_X_REQUEST_ID="req-123")
    assert r.headers["X-Request-ID"] == "req-123"


@pytest.mark.django_db
def test_update_malformed_json_returns_400_with_alert(client):
    r = client.put(COLLECTION_URL, data="[1, 2", content_type="application/json")
    assert r.status_code == 400
    assert r.headers[ERROR] == "error.invalidpayload"


@pytest.mark.django_db
def test_update_unknown_id_gets_a_generated_id(client):
    existing = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json").json()
    wanted = existing["id"] + 1000
    r = client.put(COLLECTION_URL, data={**PAYLOAD, "id": wanted}, content_type="application/json")
    assert r.status_code == 200
    oid = r.json()["id"]
    assert oid != wanted
    assert r.headers[PARAMS] == str(oid)
    assert not FoodOrderModel.objects.filter(id=wanted).exists()

    # the sequence is untouched, so the next insert does not collide
    nxt = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    assert nxt.status_code == 201
    assert FoodOrderModel.objects.count() == 3


@pytest.mark.django_db
@pytest.mark.parametrize(
    "override",
    [
        {"id": 10**20},
        {"food_joint_id": 2**63},
        {"total_cents": 2**31},
        {"lines": [{"food_id": 10**19, "quantity": 1}]},
        {"lines": [{"food_id": 1, "quantity": 10**12}]},
    ],
    ids=["id", "food-joint", "total", "food-id", "quantity"],
)
def test_out_of_range_numbers_return_400(client, override):
    r = client.put(COLLECTION_URL, data={**PAYLOAD, **override}, content_type="application/json")
    assert r.status_code == 400
    assert r.headers[ERROR] == "error.invalidpayload"
    assert FoodOrderModel.objects.count() == 0


@pytest.mark.django_db
def test_create_rolls_back_when_search_index_is_down(client, settings, monkeypatch):
    import httpx

    settings.USE_HTTP_SEARCH_INDEX = True
    settings.SEARCH_INDEX_BASE_URL = "http://search"
    settings.HTTP_RETRY_MAX = 0

    def fake_request(self, method, url, **kw):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.Client, "request", fake_request, raising=True)
    r = client.post(COLLECTION_URL, data=PAYLOAD, content_type="application/json")
    assert r.status_code == 503
    assert FoodOrderModel.objects.count() == 0
