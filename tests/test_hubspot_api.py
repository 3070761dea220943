"""
tests/test_hubspot_api.py

HubSpot proxy and sync endpoints with an offline client.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from db.repositories.metric_store import MetricStore


def test_pipeline(client: TestClient) -> None:
    body = client.get("/hubspot/pipeline").json()

    assert body["success"] is True
    assert body["data"]["totalDeals"] == 2
    assert body["data"]["winRate"] == 50


def test_deals_count(client: TestClient) -> None:
    body = client.get("/hubspot/deals").json()

    assert body["count"] == 2


def test_all(client: TestClient) -> None:
    data = client.get("/hubspot/all").json()["data"]

    assert data["revenue"]["currentQuarterRevenue"] == 1000
    assert len(data["contacts"]) == 3
    assert len(data["companies"]) == 1


def test_sync_pipeline_writes_rows(client: TestClient, store: MetricStore) -> None:
    response = client.post("/hubspot/sync", json={"dataType": "pipeline"})

    assert response.status_code == 200
    body = response.json()
    assert body["quarter"] == "Q2"
    assert body["year"] == 2024
    assert body["recordsWritten"] == 3
    rows = store.metrics_for_quarter("Q2", 2024)
    assert {row.metric_name for row in rows} == {"Pipeline Value", "Active Deals", "Win Rate"}
    assert all(row.source_file_id is None for row in rows)


def test_sync_with_override(client: TestClient, store: MetricStore) -> None:
    response = client.post("/hubspot/sync", json={"dataType": "contacts", "quarter": "q3", "year": 2025})

    assert response.status_code == 200
    rows = store.metrics_for_quarter("Q3", 2025)
    assert [(row.metric_name, row.metric_value) for row in rows] == [("Total Contacts", 3.0)]


def test_sync_rejects_unknown_type(client: TestClient, stub_hubspot) -> None:
    response = client.post("/hubspot/sync", json={"dataType": "tickets"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid data type")
    assert stub_hubspot.calls == []


def test_sync_rejects_bad_year_before_fetching(client: TestClient, stub_hubspot, store: MetricStore) -> None:
    response = client.post("/hubspot/sync", json={"dataType": "deals", "year": 1990})

    assert response.status_code == 400
    assert stub_hubspot.calls == []
    assert store.query_metrics() == []
