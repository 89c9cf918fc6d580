import pytest

HEALTH_URL = "/health/"


@pytest.mark.django_db
def test_health_ok_with_database_index(client):
    r = client.get(HEALTH_URL)
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["components"] == {"db": {"ok": True}, "search": {"ok": True}}


@pytest.mark.django_db
def test_health_503_when_search_service_down(client, settings, monkeypatch):
    import httpx

    settings.USE_HTTP_SEARCH_INDEX = True
    settings.SEARCH_INDEX_BASE_URL = "http://search"
    settings.HTTP_RETRY_MAX = 0

    def fake_request(self, method, url, **kw):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.Client, "request", fake_request, raising=True)
    r = client.get(HEALTH_URL)
    assert r.status_code == 503
    assert r.json()["components"]["search"]["ok"] is False
