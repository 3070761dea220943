"""
app/connectors/hubspot_connector.py

HubSpot CRM connector: fetches deals, contacts and companies and derives
pipeline and revenue aggregates from them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Callable

import requests

from app.config import ExternalHTTPSettings, HubSpotSettings
from app.connectors.base import BaseConnector
from app.domain.errors import ExternalServiceError

logger = logging.getLogger(__name__)

DEAL_PROPERTIES = ("dealname", "amount", "dealstage", "closedate", "createdate", "pipeline")
CONTACT_PROPERTIES = ("firstname", "lastname", "email", "company", "createdate", "lastmodifieddate")
COMPANY_PROPERTIES = ("name", "domain", "industry", "annualrevenue", "createdate", "lastmodifieddate")

WON_STAGES = frozenset({"closedwon", "closed-won"})
CLOSED_STAGES = WON_STAGES | frozenset({"closedlost", "closed-lost"})


@dataclass(frozen=True)
class PipelineMetrics:
    total_deals: int = 0
    total_pipeline_value: float = 0.0
    won_deals: int = 0
    won_revenue: float = 0.0
    active_deals: int = 0
    active_pipeline_value: float = 0.0
    average_deal_size: float = 0.0
    win_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RevenueMetrics:
    current_quarter_revenue: float = 0.0
    previous_quarter_revenue: float = 0.0
    year_to_date_revenue: float = 0.0
    total_revenue: float = 0.0
    average_deal_size: float = 0.0
    revenue_growth: float = 0.0
    total_companies: int = 0
    active_deals: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class HubSpotClient(BaseConnector):
    """
    Read-only HubSpot CRM v3 client.
    """

    def __init__(
        self,
        *,
        settings: HubSpotSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(source="hubspot", http_settings=http_settings, session=session)
        self._api_key = settings.api_key
        self._base_url = settings.base_url.rstrip("/")
        self._page_limit = settings.page_limit
        self._today = today

    # ------------------------------------------------------------------
    # Raw objects
    # ------------------------------------------------------------------

    def get_deals(self) -> list[dict[str, Any]]:
        return self._list_objects("deals", DEAL_PROPERTIES)

    def get_contacts(self) -> list[dict[str, Any]]:
        return self._list_objects("contacts", CONTACT_PROPERTIES)

    def get_companies(self) -> list[dict[str, Any]]:
        return self._list_objects("companies", COMPANY_PROPERTIES)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_pipeline_metrics(self) -> PipelineMetrics:
        return compute_pipeline_metrics(self.get_deals())

    def get_revenue_metrics(self) -> RevenueMetrics:
        deals = self.get_deals()
        companies = self.get_companies()
        return compute_revenue_metrics(deals, companies, today=self._today())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _list_objects(self, object_type: str, properties: tuple[str, ...]) -> list[dict[str, Any]]:
        if not self._api_key:
            raise ExternalServiceError(self.source, "HubSpot API key not configured")

        payload = self._request_json(
            method="GET",
            url=f"{self._base_url}/crm/v3/objects/{object_type}",
            params={"properties": ",".join(properties), "limit": self._page_limit},
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
        )
        if not isinstance(payload, dict):
            raise ExternalServiceError(self.source, f"unexpected {object_type} payload shape.")
        results = payload.get("results") or []
        logger.debug("Fetched %d HubSpot %s", len(results), object_type)
        return list(results)


def compute_pipeline_metrics(deals: list[dict[str, Any]]) -> PipelineMetrics:
    total_value = 0.0
    won_deals = 0
    won_revenue = 0.0
    active_deals = 0
    active_value = 0.0

    for deal in deals:
        properties = deal.get("properties") or {}
        amount = _parse_amount(properties.get("amount"))
        stage = _stage(properties)

        total_value += amount
        if stage in WON_STAGES:
            won_deals += 1
            won_revenue += amount
        if stage not in CLOSED_STAGES:
            active_deals += 1
            active_value += amount

    total_deals = len(deals)
    return PipelineMetrics(
        total_deals=total_deals,
        total_pipeline_value=total_value,
        won_deals=won_deals,
        won_revenue=won_revenue,
        active_deals=active_deals,
        active_pipeline_value=active_value,
        average_deal_size=total_value / total_deals if total_deals else 0.0,
        win_rate=won_deals / total_deals * 100 if total_deals else 0.0,
    )


def compute_revenue_metrics(
    deals: list[dict[str, Any]],
    companies: list[dict[str, Any]],
    *,
    today: date,
) -> RevenueMetrics:
    """
    Won-deal revenue bucketed by close date relative to ``today``.

    The quarter before Q1 is Q4 of the previous year. Growth is 0 when the
    previous quarter had no revenue.
    """

    current_quarter = (today.month - 1) // 3 + 1
    current_year = today.year
    if current_quarter == 1:
        previous_quarter, previous_year = 4, current_year - 1
    else:
        previous_quarter, previous_year = current_quarter - 1, current_year

    current_revenue = 0.0
    previous_revenue = 0.0
    ytd_revenue = 0.0
    total_revenue = 0.0
    won_deals = 0
    active_deals = 0

    for deal in deals:
        properties = deal.get("properties") or {}
        amount = _parse_amount(properties.get("amount"))
        stage = _stage(properties)

        if stage not in CLOSED_STAGES:
            active_deals += 1
        if stage not in WON_STAGES:
            continue

        won_deals += 1
        total_revenue += amount
        close_date = _parse_close_date(properties.get("closedate"))
        if close_date is None:
            continue

        deal_quarter = (close_date.month - 1) // 3 + 1
        if close_date.year == current_year:
            ytd_revenue += amount
            if deal_quarter == current_quarter:
                current_revenue += amount
        if close_date.year == previous_year and deal_quarter == previous_quarter:
            previous_revenue += amount

    growth = 0.0
    if previous_revenue > 0:
        growth = (current_revenue - previous_revenue) / previous_revenue * 100

    return RevenueMetrics(
        current_quarter_revenue=current_revenue,
        previous_quarter_revenue=previous_revenue,
        year_to_date_revenue=ytd_revenue,
        total_revenue=total_revenue,
        average_deal_size=total_revenue / won_deals if won_deals else 0.0,
        revenue_growth=growth,
        total_companies=len(companies),
        active_deals=active_deals,
    )


def _stage(properties: dict[str, Any]) -> str:
    return str(properties.get("dealstage") or "").strip().lower()


def _parse_amount(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _parse_close_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return BaseConnector.parse_iso_datetime(str(value)).date()
    except ValueError:
        logger.warning("Ignoring unparseable HubSpot closedate %r", value)
        return None
