"""
app/schemas/metrics.py

Request and response schemas for metric query endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import CamelModel


class MetricRecordResponse(BaseModel):
    """
    One stored metric row.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    quarter: str
    year: int
    metric_name: str
    metric_value: float
    metric_unit: str | None = None
    category: str | None = None
    target_value: float | None = None
    status: str | None = None
    description: str | None = None
    source_file_id: int | None = None
    created_at: datetime | None = None


class MetricListResponse(BaseModel):
    success: bool = True
    data: list[MetricRecordResponse] = Field(default_factory=list)
    count: int = Field(..., ge=0)


class QuarterMetricsResponse(MetricListResponse):
    quarter: str
    year: int


class HistoricalPageResponse(MetricListResponse):
    total: int = Field(..., ge=0)
    offset: int = Field(0, ge=0)
    limit: int | None = None


class TrendDataResponse(MetricListResponse):
    metric: str


class QuarterValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: float
    quarter: str
    year: int


class MetricComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    metric_name: str
    metric_unit: str | None = None
    category: str | None = None
    quarters: dict[str, QuarterValueResponse] = Field(default_factory=dict)


class ComparisonResponse(BaseModel):
    success: bool = True
    data: list[MetricComparisonResponse] = Field(default_factory=list)
    quarters: list[str] = Field(default_factory=list)


class QuartersResponse(BaseModel):
    success: bool = True
    quarters: list[str] = Field(default_factory=list)


class AvailableQuarterResponse(BaseModel):
    quarter: str
    year: int


class AvailableQuartersResponse(BaseModel):
    success: bool = True
    quarters: list[AvailableQuarterResponse] = Field(default_factory=list)


class SummaryBody(CamelModel):
    total_metrics: int
    unique_metrics: int
    categories: list[str]
    quarters: list[str]
    years: list[int]
    latest_quarter: str | None = None


class SummaryResponse(BaseModel):
    success: bool = True
    summary: SummaryBody


class TrendBody(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    metric_name: str
    data_points: int
    values: list[dict[str, Any]]
    trend_direction: str
    change_percentage: float | None = None


class TrendResponse(BaseModel):
    success: bool = True
    trend: TrendBody


class QoQBody(CamelModel):
    current: MetricRecordResponse | None = None
    previous: MetricRecordResponse | None = None
    change: float | None = None
    change_percent: float | None = None


class QoQResponse(CamelModel):
    success: bool = True
    metric: str
    current_quarter: str
    comparison: QoQBody


class ConfigSaveRequest(CamelModel):
    config_name: str | None = None
    config_data: dict[str, Any] | None = None


class ConfigSaveResponse(BaseModel):
    success: bool = True
    message: str = "Configuration saved successfully"


class ConfigResponse(BaseModel):
    success: bool = True
    config: dict[str, Any] | None = None
