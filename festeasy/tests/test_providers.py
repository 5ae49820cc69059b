from unittest.mock import patch

from fastapi.testclient import TestClient

from festeasy.app import app, run
from festeasy.marketplace.catalog import list_categories, search_providers

client = TestClient(app)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@patch("festeasy.app.uvicorn.run")
def test_run_serves_app_with_uvicorn(mock_run, monkeypatch):
    monkeypatch.setenv("APP_HOST", "127.0.0.1")
    monkeypatch.setenv("APP_PORT", "9001")

    run()

    mock_run.assert_called_once_with("festeasy.app:app", host="127.0.0.1", port=9001, reload=False)


def test_providers_returns_full_catalog():
    resp = client.get("/providers")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 8
    assert [p["id"] for p in body[:3]] == ["1", "2", "3"]


def test_providers_filter_by_category():
    resp = client.get("/providers", params={"category": "Music"})
    body = resp.json()
    assert len(body) > 0
    for provider in body:
        assert provider["category"] == "Music"


def test_providers_all_category_disables_filter():
    assert len(client.get("/providers", params={"category": "all"}).json()) == 8


def test_providers_search_is_case_insensitive():
    resp = client.get("/providers", params={"search": "CATERING"})
    ids = [p["id"] for p in resp.json()]
    assert "1" in ids


def test_providers_search_matches_description():
    ids = [p.id for p in search_providers(search="taco")]
    assert ids == ["4"]


def test_providers_search_and_category_combine():
    assert search_providers(search="sound", category="Food") == []
    assert [p.id for p in search_providers(search="SOUND", category="Music")] == ["2"]


def test_providers_unknown_search_returns_empty():
    resp = client.get("/providers", params={"search": "Nonexistent12345"})
    assert resp.status_code == 200
    assert resp.json() == []


def test_provider_detail():
    resp = client.get("/providers/2")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Sound & Lights Pro"
    assert body["services"] == ["DJ", "Professional sound", "LED lighting"]
    assert body["distance"] == 1.8


def test_provider_detail_missing_values():
    chef = client.get("/providers/7").json()
    assert chef["rating"] is None
    assert chef["reviews"] == 0
    trio = client.get("/providers/8").json()
    assert trio["services"] == []


def test_provider_detail_not_found():
    assert client.get("/providers/999").status_code == 404


def test_metadata_lists_categories_and_locations():
    body = client.get("/metadata").json()
    assert body["categories"] == ["all", "Food", "Music", "Decoration"]
    assert "Polanco" in body["locations"]
    assert body["locations"] == sorted(body["locations"])


def test_list_categories_starts_with_all():
    assert list_categories()[0] == "all"
