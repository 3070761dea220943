"""
tests/test_hubspot_connector.py

HubSpot aggregation maths and the HTTP client against a fake session.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any

import pytest
import requests

from app.config import ExternalHTTPSettings, HubSpotSettings
from app.connectors.hubspot_connector import HubSpotClient, compute_pipeline_metrics, compute_revenue_metrics
from app.domain.errors import ExternalServiceError


def _deal(amount: Any, stage: str, closedate: str | None = None) -> dict[str, Any]:
    properties: dict[str, Any] = {"amount": amount, "dealstage": stage}
    if closedate is not None:
        properties["closedate"] = closedate
    return {"id": "d", "properties": properties}


def _response(status_code: int, payload: Any) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    response.url = "https://api.hubapi.test/crm/v3/objects/deals"
    return response


class FakeSession(requests.Session):
    def __init__(self, response: requests.Response | Exception) -> None:
        super().__init__()
        self._response = response
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, **kwargs):  # type: ignore[override]
        self.calls.append({"method": method, "url": url, **kwargs})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _client(session: requests.Session, api_key: str | None = "token") -> HubSpotClient:
    return HubSpotClient(
        settings=HubSpotSettings(api_key=api_key, base_url="https://api.hubapi.test", page_limit=50),
        http_settings=ExternalHTTPSettings(timeout_seconds=5.0),
        session=session,
    )


class TestPipelineMetrics:
    def test_aggregates(self) -> None:
        metrics = compute_pipeline_metrics(
            [
                _deal("1000", "closedwon"),
                _deal("500", "closedlost"),
                _deal("2500", "qualifiedtobuy"),
                _deal(None, "appointmentscheduled"),
            ]
        )

        assert metrics.total_deals == 4
        assert metrics.total_pipeline_value == 4000
        assert metrics.won_deals == 1
        assert metrics.won_revenue == 1000
        assert metrics.active_deals == 2
        assert metrics.active_pipeline_value == 2500
        assert metrics.average_deal_size == 1000
        assert metrics.win_rate == 25

    def test_no_deals(self) -> None:
        metrics = compute_pipeline_metrics([])

        assert metrics.win_rate == 0
        assert metrics.average_deal_size == 0


class TestRevenueMetrics:
    def test_q1_previous_quarter_is_prior_q4(self) -> None:
        metrics = compute_revenue_metrics(
            [
                _deal("300", "closedwon", "2024-02-01T10:00:00Z"),
                _deal("200", "closedwon", "2023-11-15T00:00:00Z"),
                _deal("100", "closedwon", "2023-05-01T00:00:00Z"),
                _deal("999", "closedlost", "2024-01-05T00:00:00Z"),
                _deal("50", "decisionmakerboughtin"),
            ],
            [{"id": "c1"}, {"id": "c2"}],
            today=date(2024, 3, 15),
        )

        assert metrics.current_quarter_revenue == 300
        assert metrics.previous_quarter_revenue == 200
        assert metrics.year_to_date_revenue == 300
        assert metrics.total_revenue == 600
        assert metrics.average_deal_size == 200
        assert metrics.revenue_growth == pytest.approx(50.0)
        assert metrics.total_companies == 2
        assert metrics.active_deals == 1

    def test_growth_is_zero_without_previous_revenue(self) -> None:
        metrics = compute_revenue_metrics(
            [_deal("300", "closedwon", "2024-08-01T00:00:00Z")],
            [],
            today=date(2024, 8, 2),
        )

        assert metrics.current_quarter_revenue == 300
        assert metrics.revenue_growth == 0

    def test_unparseable_close_date_still_counts_in_total(self) -> None:
        metrics = compute_revenue_metrics([_deal("40", "closedwon", "not-a-date")], [], today=date(2024, 1, 1))

        assert metrics.total_revenue == 40
        assert metrics.current_quarter_revenue == 0


class TestHubSpotClient:
    def test_missing_api_key(self) -> None:
        session = FakeSession(_response(200, {"results": []}))

        with pytest.raises(ExternalServiceError, match="HubSpot API key not configured"):
            _client(session, api_key=None).get_deals()
        assert session.calls == []

    def test_lists_objects_with_bearer_token(self) -> None:
        session = FakeSession(_response(200, {"results": [{"id": "1", "properties": {}}]}))

        deals = _client(session).get_deals()

        assert deals == [{"id": "1", "properties": {}}]
        call = session.calls[0]
        assert call["url"] == "https://api.hubapi.test/crm/v3/objects/deals"
        assert call["headers"]["Authorization"] == "Bearer token"
        assert call["params"]["limit"] == 50
        assert "dealstage" in call["params"]["properties"]
        assert call["timeout"] == 5.0

    def test_upstream_error_message_is_preserved(self) -> None:
        session = FakeSession(_response(401, {"message": "Authentication credentials not found."}))

        with pytest.raises(ExternalServiceError) as exc_info:
            _client(session).get_contacts()

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Authentication credentials not found."

    def test_timeout_is_not_retried(self) -> None:
        session = FakeSession(requests.Timeout("slow"))

        with pytest.raises(ExternalServiceError, match="timed out"):
            _client(session).get_companies()
        assert len(session.calls) == 1
