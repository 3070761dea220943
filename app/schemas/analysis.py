"""
app/schemas/analysis.py

Response schemas for narrative insight endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from app.schemas.base import CamelModel


class LatestInsightsResponse(CamelModel):
    success: bool = True
    insights: str | None = None
    qoq_data: Any = None
    current_quarter: Any = None
    timestamp: datetime | None = None
    updated_at: datetime | None = None
    message: str | None = None


class GeneratedInsightsResponse(CamelModel):
    success: bool = True
    insights: str
    usage: dict[str, Any] | None = None
    timestamp: datetime


class KeyMetricResponse(CamelModel):
    metric_name: str
    value: float
    unit: str | None = None
    target: float | None = None
    status: str | None = None


class DashboardDataResponse(CamelModel):
    success: bool = True
    quarter: str | None = None
    data: dict[str, KeyMetricResponse] = Field(default_factory=dict)
    timestamp: datetime
