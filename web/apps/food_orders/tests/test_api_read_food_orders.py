"""API tests for listing, fetching and deleting food orders."""

import pytest

from apps.food_orders.models import FoodOrderModel, OrderLineModel, TicketModel

LIST_URL = "/api/food-orders"
DETAIL_URL = "/api/food-orders/{oid}"


def _seed_order(with_ticket=False, **fields):
    o = FoodOrderModel.objects.create(**{"state": "CREATED", "payment_info": "cash", "total_cents": 500, **fields})
    OrderLineModel.objects.create(food_order=o, food_id=1, name="Soup", quantity=1, unit_price_cents=500)
    if with_ticket:
        TicketModel.objects.create(number=f"T{o.id:07d}", food_order=o, food_joint_id=o.food_joint_id or 1)
    return o


@pytest.mark.django_db
def test_get_order_by_id_returns_200_and_payload(client):
    o = _seed_order(food_joint_id=2, with_ticket=True)
    r = client.get(DETAIL_URL.format(oid=o.id))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == o.id
    assert body["state"] == "CREATED"
    assert body["total_cents"] == 500
    assert body["food_joint_id"] == 2
    assert body["ticket_id"] == o.ticket.id
    assert body["lines"] == [{"food_id": 1, "quantity": 1, "name": "Soup", "unit_price_cents": 500}]
    assert body["created_at"]


@pytest.mark.django_db
def test_get_order_not_found_returns_404_with_empty_body(client):
    r = client.get(DETAIL_URL.format(oid=999999))
    assert r.status_code == 404
    assert r.content == b""


@pytest.mark.django_db
def test_list_returns_all_orders(client):
    a = _seed_order()
    b = _seed_order(with_ticket=True)
    r = client.get(LIST_URL)
    assert r.status_code == 200
    assert [o["id"] for o in r.json()] == [a.id, b.id]


@pytest.mark.django_db
def test_list_ticket_is_null_returns_only_unticketed(client):
    a = _seed_order()
    _seed_order(with_ticket=True)
    c = _seed_order()
    r = client.get(LIST_URL, {"filter": "ticket-is-null"})
    assert r.status_code == 200
    assert [o["id"] for o in r.json()] == [a.id, c.id]
    assert all(o["ticket_id"] is None for o in r.json())


@pytest.mark.django_db
@pytest.mark.parametrize("flt", ["", "ticket-is-not-null", "TICKET-IS-NULL"])
def test_list_other_filters_return_everything(client, flt):
    _seed_order()
    _seed_order(with_ticket=True)
    r = client.get(LIST_URL, {"filter": flt})
    assert len(r.json()) == 2


@pytest.mark.django_db
def test_list_empty_is_valid(client):
    r = client.get(LIST_URL)
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.django_db
def test_delete_returns_200_with_deletion_alert(client):
    o = _seed_order(with_ticket=True)
    r = client.delete(DETAIL_URL.format(oid=o.id))
    assert r.status_code == 200
    assert r.content == b""
    assert r.headers["X-foodOrdersApp-alert"] == "foodOrdersApp.foodOrder.deleted"
    assert r.headers["X-foodOrdersApp-params"] == str(o.id)
    assert not FoodOrderModel.objects.filter(id=o.id).exists()
    assert not TicketModel.objects.exists()
    assert not OrderLineModel.objects.exists()


@pytest.mark.django_db
def test_delete_unknown_id_still_returns_200(client):
    r = client.delete(DETAIL_URL.format(oid=424242))
    assert r.status_code == 200
    assert r.headers["X-foodOrdersApp-params"] == "424242"


@pytest.mark.django_db
def test_non_integer_id_is_not_routed(client):
    r = client.get("/api/food-orders/abc")
    assert r.status_code == 404


@pytest.mark.django_db
def test_ids_beyond_bigint_are_not_found(client):
    huge = 10**20
    assert client.get(DETAIL_URL.format(oid=huge)).status_code == 404
    r = client.delete(DETAIL_URL.format(oid=huge))
    assert r.status_code == 200
    assert r.headers["X-foodOrdersApp-params"] == str(huge)
