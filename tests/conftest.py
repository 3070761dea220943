"""
tests/conftest.py

Shared fixtures: an in-memory SQLite metric store and an API client wired to
it with offline collaborators.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.config import AppSettings, HubSpotSettings
from app.main import create_app
from app.services.hubspot_sync_service import HubSpotSyncService, get_hubspot_sync_service
from app.services.insight_service import InsightService, get_insight_service
from app.services.upload_service import UploadService, get_upload_service
from db.repositories.metric_store import MetricStore
from db.repositories.storage import LocalFileStorage
from db.session import build_session_factory, create_db_engine
from llm_synthesis.adapter import MockLLMAdapter


class StubHubSpotClient:
    """Offline stand-in returning canned CRM objects."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.deals = [
            {"id": "1", "properties": {"amount": "1000", "dealstage": "closedwon", "closedate": "2024-02-10T00:00:00Z"}},
            {"id": "2", "properties": {"amount": "3000", "dealstage": "appointmentscheduled"}},
        ]

    def get_deals(self) -> list[dict]:
        self.calls.append("deals")
        return self.deals

    def get_contacts(self) -> list[dict]:
        self.calls.append("contacts")
        return [{"id": "c1"}, {"id": "c2"}, {"id": "c3"}]

    def get_companies(self) -> list[dict]:
        self.calls.append("companies")
        return [{"id": "co1"}]

    def get_pipeline_metrics(self):
        from app.connectors.hubspot_connector import compute_pipeline_metrics

        self.calls.append("pipeline")
        return compute_pipeline_metrics(self.deals)

    def get_revenue_metrics(self):
        from datetime import date

        from app.connectors.hubspot_connector import compute_revenue_metrics

        self.calls.append("revenue")
        return compute_revenue_metrics(self.deals, [{"id": "co1"}], today=date(2024, 3, 1))


@pytest.fixture()
def store() -> Iterator[MetricStore]:
    engine = create_db_engine("sqlite:///:memory:")
    metric_store = MetricStore(build_session_factory(engine), engine=engine)
    metric_store.create_schema()
    yield metric_store
    metric_store.close()


@pytest.fixture()
def upload_storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture()
def stub_hubspot() -> StubHubSpotClient:
    return StubHubSpotClient()


@pytest.fixture()
def client(
    store: MetricStore,
    upload_storage: LocalFileStorage,
    stub_hubspot: StubHubSpotClient,
) -> Iterator[TestClient]:
    app = create_app(metric_store=store, settings=AppSettings(environment="test"))
    app.dependency_overrides[get_upload_service] = lambda: UploadService(
        storage=upload_storage,
        max_bytes=64 * 1024,
    )
    app.dependency_overrides[get_insight_service] = lambda: InsightService(adapter=MockLLMAdapter())
    app.dependency_overrides[get_hubspot_sync_service] = lambda: HubSpotSyncService(
        client=stub_hubspot,  # type: ignore[arg-type]
        settings=HubSpotSettings(sync_quarter="Q2", sync_year=2024),
    )
    with TestClient(app) as test_client:
        yield test_client
