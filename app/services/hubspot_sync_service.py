"""
app/services/hubspot_sync_service.py

Copies HubSpot aggregates into the metric store as synthetic quarterly rows.

Rows pass through the same row validator as uploads; the quarter and year
default to the configured sync values (``HUBSPOT_SYNC_QUARTER`` and
``HUBSPOT_SYNC_YEAR`` or the current calendar year).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Any, Callable

from app.config import HubSpotSettings, get_external_http_settings, get_hubspot_settings, get_validation_settings
from app.connectors.hubspot_connector import HubSpotClient
from app.domain.metrics import MetricRecordInput
from app.validators.row_validator import MetricRowValidator
from db.repositories.metric_store import MetricStore

logger = logging.getLogger(__name__)

SYNC_DATA_TYPES: tuple[str, ...] = ("pipeline", "revenue", "deals", "contacts", "companies")

# (metric_name, unit, category)
_MetricSpec = tuple[str, str, str]


class InvalidSyncRequestError(ValueError):
    """Raised for an unknown data type or an invalid quarter/year override."""


@dataclass(frozen=True)
class SyncResult:
    data_type: str
    quarter: str
    year: int
    data: Any
    record_ids: list[int]


class HubSpotSyncService:
    """
    Fetches one HubSpot data type and appends its derived metric rows.
    """

    def __init__(
        self,
        *,
        client: HubSpotClient,
        settings: HubSpotSettings,
        validator: MetricRowValidator | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._client = client
        self._settings = settings
        self._validator = validator or MetricRowValidator()
        self._today = today

    @property
    def client(self) -> HubSpotClient:
        return self._client

    def sync(
        self,
        *,
        store: MetricStore,
        data_type: str,
        quarter: str | None = None,
        year: int | None = None,
    ) -> SyncResult:
        if data_type not in SYNC_DATA_TYPES:
            raise InvalidSyncRequestError(
                "Invalid data type. Must be: pipeline, revenue, deals, contacts, or companies"
            )

        target_quarter = (quarter or self._settings.sync_quarter).strip().upper()
        target_year = year if year is not None else (self._settings.sync_year or self._today().year)
        # Reject a bad quarter/year before any outbound call.
        self._validated_record(("HubSpot Sync", "", ""), 0.0, target_quarter, target_year)

        data, values = self._fetch(data_type)
        records = [
            self._validated_record(spec, value, target_quarter, target_year)
            for spec, value in values
        ]
        record_ids = store.insert_metrics(None, records)
        logger.info(
            "HubSpot sync data_type=%s quarter=%s year=%s rows=%d",
            data_type,
            target_quarter,
            target_year,
            len(record_ids),
        )
        return SyncResult(
            data_type=data_type,
            quarter=target_quarter,
            year=target_year,
            data=data,
            record_ids=record_ids,
        )

    def _fetch(self, data_type: str) -> tuple[Any, list[tuple[_MetricSpec, float]]]:
        if data_type == "pipeline":
            pipeline = self._client.get_pipeline_metrics()
            return pipeline.to_dict(), [
                (("Pipeline Value", "USD", "Sales"), pipeline.total_pipeline_value),
                (("Active Deals", "Count", "Sales"), pipeline.active_deals),
                (("Win Rate", "%", "Sales"), pipeline.win_rate),
            ]
        if data_type == "revenue":
            revenue = self._client.get_revenue_metrics()
            return revenue.to_dict(), [
                (("Current Quarter Revenue", "USD", "Financial"), revenue.current_quarter_revenue),
                (("Year to Date Revenue", "USD", "Financial"), revenue.year_to_date_revenue),
                (("Revenue Growth", "%", "Financial"), revenue.revenue_growth),
            ]
        if data_type == "deals":
            deals = self._client.get_deals()
            return deals, [(("Total Deals", "Count", "Sales"), len(deals))]
        if data_type == "contacts":
            contacts = self._client.get_contacts()
            return contacts, [(("Total Contacts", "Count", "Marketing"), len(contacts))]

        companies = self._client.get_companies()
        return companies, [(("Total Companies", "Count", "Sales"), len(companies))]

    def _validated_record(
        self,
        spec: _MetricSpec,
        value: float,
        quarter: str,
        year: int,
    ) -> MetricRecordInput:
        metric_name, unit, category = spec
        result = self._validator.validate(
            {
                "quarter": quarter,
                "year": year,
                "metric_name": metric_name,
                "metric_value": value,
                "metric_unit": unit,
                "category": category,
            },
            row_number=1,
        )
        if result.record is None:
            raise InvalidSyncRequestError(result.error.message if result.error else "Invalid sync row.")
        return result.record


@lru_cache(maxsize=1)
def get_hubspot_sync_service() -> HubSpotSyncService:
    """
    Build and cache the sync service with env-driven settings.
    """
    settings = get_hubspot_settings()
    validation_settings = get_validation_settings()
    return HubSpotSyncService(
        client=HubSpotClient(settings=settings, http_settings=get_external_http_settings()),
        settings=settings,
        validator=MetricRowValidator(
            min_year=validation_settings.min_year,
            max_year=validation_settings.max_year,
        ),
    )
