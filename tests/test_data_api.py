"""
tests/test_data_api.py

Metric query, comparison and configuration endpoints.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config import AppSettings
from app.domain.metrics import MetricRecordInput
from app.main import create_app
from db.repositories.errors import StorageError
from db.repositories.metric_store import MetricStore


def _record(name: str, value: float, quarter: str, year: int, **extra: object) -> MetricRecordInput:
    return MetricRecordInput(quarter=quarter, year=year, metric_name=name, metric_value=value, **extra)  # type: ignore[arg-type]


@pytest.fixture()
def seeded(store: MetricStore) -> MetricStore:
    store.insert_metrics(
        None,
        [
            _record("NRR", 108, "Q3", 2023, metric_unit="%", category="Growth"),
            _record("NRR", 102, "Q4", 2023, metric_unit="%", category="Growth"),
            _record("NRR", 105, "Q1", 2024, metric_unit="%", category="Growth", target_value=110, status="amber"),
            _record("CAC", 2580, "Q4", 2023, metric_unit="USD", category="Financial"),
            _record("CAC", 2340, "Q1", 2024, metric_unit="USD", category="Financial", status="red"),
        ],
    )
    return store


def test_health(client: TestClient) -> None:
    body = client.get("/health").json()

    assert body["status"] == "OK"
    assert body["version"]


def test_missing_store_is_service_unavailable() -> None:
    app = create_app(metric_store=None, settings=AppSettings(environment="test"))
    # No lifespan: the store is never opened.
    response = TestClient(app).get("/data/quarterly")

    assert response.status_code == 503
    assert response.json()["success"] is False


def test_quarterly_filters(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/quarterly", params={"quarter": "Q1", "year": 2024}).json()

    assert body["success"] is True
    assert body["count"] == 2
    assert [row["metric_name"] for row in body["data"]] == ["CAC", "NRR"]


def test_quarterly_all_rows_newest_first(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/quarterly").json()

    assert body["count"] == 5
    assert body["data"][0]["year"] == 2024
    assert body["data"][-1]["quarter"] == "Q3"


def test_metrics_by_category(client: TestClient, seeded: MetricStore) -> None:
    growth = client.get("/data/metrics/Growth").json()
    everything = client.get("/data/metrics/all", params={"year": 2023}).json()

    assert growth["count"] == 3
    assert everything["count"] == 3


def test_quarters(client: TestClient, seeded: MetricStore) -> None:
    keys = client.get("/data/quarters").json()["quarters"]
    available = client.get("/data/quarters/available").json()["quarters"]

    assert keys == ["2023-Q3", "2023-Q4", "2024-Q1"]
    assert available[0] == {"quarter": "Q1", "year": 2024}


def test_comparison(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/comparison", params={"quarters": "2023-Q4,2024-Q1"}).json()

    assert body["quarters"] == ["2023-Q4", "2024-Q1"]
    by_name = {metric["metric_name"]: metric for metric in body["data"]}
    assert by_name["CAC"]["quarters"]["2024-Q1"]["value"] == 2340


def test_comparison_bad_key(client: TestClient, seeded: MetricStore) -> None:
    response = client.get("/data/comparison", params={"quarters": "2024Q1"})

    assert response.status_code == 400


def test_summary(client: TestClient, seeded: MetricStore) -> None:
    summary = client.get("/data/summary").json()["summary"]

    assert summary["totalMetrics"] == 5
    assert summary["uniqueMetrics"] == 2
    assert summary["latestQuarter"] == "2024-Q1"
    assert summary["years"] == [2023, 2024]


def test_trend(client: TestClient, seeded: MetricStore) -> None:
    trend = client.get("/data/trend/cac").json()["trend"]

    assert trend["data_points"] == 2
    assert trend["trend_direction"] == "decreasing"
    assert trend["change_percentage"] == pytest.approx(-9.302, abs=1e-3)


def test_trend_data_window(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/trend-data/NRR", params={"quarters": 2}).json()

    assert body["metric"] == "NRR"
    assert [row["quarter"] for row in body["data"]] == ["Q4", "Q1"]


def test_historical_paging(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/historical", params={"limit": 2, "offset": 0}).json()

    assert body["count"] == 2
    assert body["total"] == 5
    assert body["limit"] == 2


def test_historical_zero_limit_returns_everything(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/historical", params={"limit": 0}).json()

    assert body["count"] == 5
    assert body["total"] == 5


def test_historical_for_metric(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/historical/NRR").json()

    assert [row["metric_value"] for row in body["data"]] == [105, 102, 108]


def test_qoq(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/qoq/NRR", params={"quarter": "Q1", "year": 2024}).json()

    assert body["currentQuarter"] == "2024-Q1"
    assert body["comparison"]["change"] == pytest.approx(3.0)
    assert body["comparison"]["changePercent"] == pytest.approx(2.941, abs=1e-3)
    assert body["comparison"]["previous"]["quarter"] == "Q4"


def test_qoq_requires_quarter_and_year(client: TestClient, seeded: MetricStore) -> None:
    response = client.get("/data/qoq/NRR", params={"quarter": "Q1"})

    assert response.status_code == 400
    assert response.json()["error"] == "Quarter and year are required"


def test_qoq_rejects_bad_quarter(client: TestClient, seeded: MetricStore) -> None:
    response = client.get("/data/qoq/NRR", params={"quarter": "Q5", "year": 2024})

    assert response.status_code == 400


def test_quarter_view(client: TestClient, seeded: MetricStore) -> None:
    body = client.get("/data/quarter/q4/2023").json()

    assert body["quarter"] == "Q4"
    assert body["year"] == 2023
    assert [row["metric_name"] for row in body["data"]] == ["CAC", "NRR"]


def test_config_round_trip(client: TestClient) -> None:
    saved = client.post("/data/config", json={"configName": "layout", "configData": {"columns": 3}})
    client.post("/data/config", json={"configName": "layout", "configData": {"theme": "dark"}})

    assert saved.status_code == 200
    assert client.get("/data/config/layout").json()["config"] == {"theme": "dark"}


def test_empty_config_replaces_existing(client: TestClient) -> None:
    client.post("/data/config", json={"configName": "layout", "configData": {"columns": 3}})

    response = client.post("/data/config", json={"configName": "layout", "configData": {}})

    assert response.status_code == 200
    assert client.get("/data/config/layout").json()["config"] == {}


def test_config_requires_name_and_data(client: TestClient) -> None:
    response = client.post("/data/config", json={"configName": "layout"})

    assert response.status_code == 400
    assert response.json()["error"] == "Config name and data are required"


def test_unknown_config(client: TestClient) -> None:
    body = client.get("/data/config/missing").json()

    assert body == {"success": True, "config": None}


def _failing_query(*_args: object, **_kwargs: object) -> None:
    raise StorageError("connection reset")


def test_storage_failure_maps_to_500(client: TestClient, store: MetricStore, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(store, "query_metrics", _failing_query)

    response = client.get("/data/quarterly")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Storage operation failed",
        "message": "connection reset",
    }


def test_storage_failure_message_hidden_outside_development(
    store: MetricStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(store, "query_metrics", _failing_query)
    app = create_app(metric_store=store, settings=AppSettings(environment="production"))

    with TestClient(app) as production_client:
        response = production_client.get("/data/quarterly")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Storage operation failed"}
