from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from sales_core.errors import FeedUnavailableError


@pytest.fixture(autouse=True)
def _fresh_dataset_cache():
    api_main._load_dashboard_data_cached.cache_clear()
    yield
    api_main._load_dashboard_data_cached.cache_clear()


@pytest.fixture
def client(monkeypatch, example_records):
    data_ctx = {
        "source": "remote",
        "records": example_records,
        "rejected": (),
        "options": {
            "cities": ["LA", "NY"],
            "products": ["Gadget", "Widget"],
            "sales_reps": ["Alice", "Bob"],
            "min_date": "2023-01-05",
            "max_date": "2023-02-01",
        },
    }
    monkeypatch.setattr(api_main, "load_dashboard_data", lambda settings=None: data_ctx)
    return TestClient(api_main.app)


def test_meta_options(client):
    resp = client.get("/meta/options")
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "remote"
    assert body["sales_reps"] == ["Alice", "Bob"]
    assert body["rejected_count"] == 0


def test_overview_with_empty_filter(client):
    resp = client.post("/overview", json={}, params={"top_n": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["kpis"]["total_sales"] == 115.0
    assert body["kpis"]["distinct_cities"] == 2
    assert body["top_products"][0]["product"] == "Widget"
    assert body["top_products"][0]["quantity"] == 15


def test_overview_no_matches_is_not_an_error(client):
    resp = client.post("/overview", json={"city": "Boston"})
    assert resp.status_code == 200
    assert resp.json()["empty"] is True


def test_invalid_filter_returns_422(client):
    resp = client.post("/overview", json={"start_date": "2023-03-01", "end_date": "2023-01-01"})
    assert resp.status_code == 422
    assert resp.json()["type"] == "InvalidFilterError"


def test_performance(client):
    resp = client.post("/performance", json={"city": "NY"}, params={"metric": "sales", "view": "sales_rep"})
    assert resp.status_code == 200
    assert [(r["sales_rep"], r["sales"]) for r in resp.json()["top"]] == [("Alice", 50.0), ("Bob", 25.0)]


def test_heatmap(client):
    resp = client.post("/heatmap", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["rows"] == ["Alice", "Bob"]
    assert body["intensity"] == [[1.0, 0.8], [0.5, 0.0]]


def test_export_csv(client):
    resp = client.post("/export", json={"product": "Gadget"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.text == (
        "transaction_id,date,city,product,sku,sales_rep,quantity,price\n"
        "3,2023-02-01,LA,Gadget,G-1,Alice,2,20.00\n"
    )


def test_export_uses_configured_delimiter(client, monkeypatch):
    monkeypatch.setenv("SALES_EXPORT_DELIMITER", "|")
    resp = client.post("/export", json={"product": "Gadget"})
    assert resp.text.splitlines()[1] == "3|2023-02-01|LA|Gadget|G-1|Alice|2|20.00"


def test_feed_failure_returns_503(monkeypatch):
    def failing_load(settings=None):
        raise FeedUnavailableError("feed down")

    monkeypatch.setattr(api_main, "load_dashboard_data", failing_load)
    resp = TestClient(api_main.app).post("/overview", json={})
    assert resp.status_code == 503
    assert resp.json() == {"error": "feed down", "type": "FeedUnavailableError"}


def test_dataset_is_loaded_once_across_requests(monkeypatch, example_records):
    calls = []

    def counting_load(settings=None):
        calls.append(settings)
        return {"source": "remote", "records": example_records, "rejected": (), "options": {}}

    monkeypatch.setattr(api_main, "load_dashboard_data", counting_load)
    client = TestClient(api_main.app)
    assert client.post("/overview", json={}).status_code == 200
    assert client.post("/heatmap", json={"city": "NY"}).status_code == 200
    assert client.post("/export", json={}).status_code == 200
    assert len(calls) == 1


def test_failed_load_is_not_cached(monkeypatch, example_records):
    outcomes = [FeedUnavailableError("feed down")]

    def flaky_load(settings=None):
        if outcomes:
            raise outcomes.pop()
        return {"source": "remote", "records": example_records, "rejected": (), "options": {}}

    monkeypatch.setattr(api_main, "load_dashboard_data", flaky_load)
    client = TestClient(api_main.app)
    assert client.post("/overview", json={}).status_code == 503
    assert client.post("/overview", json={}).status_code == 200
