"""
app/schemas/hubspot.py

Request and response schemas for HubSpot CRM endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.schemas.base import CamelModel


class PipelineMetricsResponse(CamelModel):
    total_deals: int
    total_pipeline_value: float
    won_deals: int
    won_revenue: float
    active_deals: int
    active_pipeline_value: float
    average_deal_size: float
    win_rate: float


class RevenueMetricsResponse(CamelModel):
    current_quarter_revenue: float
    previous_quarter_revenue: float
    year_to_date_revenue: float
    total_revenue: float
    average_deal_size: float
    revenue_growth: float
    total_companies: int
    active_deals: int


class PipelineDataResponse(CamelModel):
    success: bool = True
    data: PipelineMetricsResponse
    timestamp: datetime


class RevenueDataResponse(CamelModel):
    success: bool = True
    data: RevenueMetricsResponse
    timestamp: datetime


class HubSpotObjectsResponse(CamelModel):
    success: bool = True
    data: list[dict[str, Any]]
    count: int
    timestamp: datetime


class HubSpotAllData(CamelModel):
    pipeline: PipelineMetricsResponse
    revenue: RevenueMetricsResponse
    deals: list[dict[str, Any]]
    contacts: list[dict[str, Any]]
    companies: list[dict[str, Any]]


class HubSpotSyncRequest(CamelModel):
    data_type: str | None = None
    quarter: str | None = None
    year: int | None = None


class HubSpotSyncResponse(CamelModel):
    success: bool = True
    message: str
    quarter: str
    year: int
    records_written: int
    data: Any
    timestamp: datetime


class HubSpotAllResponse(CamelModel):
    success: bool = True
    data: HubSpotAllData
    timestamp: datetime
