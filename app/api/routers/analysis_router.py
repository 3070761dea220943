"""
app/api/routers/analysis_router.py

Narrative insight endpoints backed by the insight cache.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.api.dependencies import get_metric_store
from app.schemas.analysis import (
    DashboardDataResponse,
    GeneratedInsightsResponse,
    KeyMetricResponse,
    LatestInsightsResponse,
)
from app.services.insight_service import InsightService, get_insight_service
from app.services.metric_analysis_service import extract_key_metrics
from db.repositories.metric_store import MetricStore
from llm_synthesis.schema import GenerateInsightsRequest

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.get("/insights", response_model=LatestInsightsResponse)
def get_latest_insights(
    store: MetricStore = Depends(get_metric_store),
    insight_service: InsightService = Depends(get_insight_service),
) -> LatestInsightsResponse:
    snapshot = insight_service.latest(store)
    if snapshot is None:
        return LatestInsightsResponse(
            insights=None,
            message="No insights available. Generate insights to get started.",
        )
    return LatestInsightsResponse(
        insights=snapshot.insights_text,
        qoq_data=snapshot.qoq_data,
        current_quarter=snapshot.current_quarter,
        timestamp=snapshot.created_at,
        updated_at=snapshot.updated_at,
    )


@router.post("/insights", response_model=GeneratedInsightsResponse)
def generate_insights(
    payload: GenerateInsightsRequest | None = None,
    store: MetricStore = Depends(get_metric_store),
    insight_service: InsightService = Depends(get_insight_service),
) -> GeneratedInsightsResponse:
    """
    Generate a new narrative. The snapshot save is best-effort.
    """

    generated = insight_service.generate(store=store, request=payload or GenerateInsightsRequest())
    return GeneratedInsightsResponse(
        insights=generated.text,
        usage=generated.usage,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/dashboard-data", response_model=DashboardDataResponse)
def get_dashboard_data(store: MetricStore = Depends(get_metric_store)) -> DashboardDataResponse:
    key_metrics = extract_key_metrics(store)
    return DashboardDataResponse(
        quarter=key_metrics.quarter.key if key_metrics.quarter else None,
        data={key: KeyMetricResponse(**metric) for key, metric in key_metrics.metrics.items()},
        timestamp=datetime.now(timezone.utc),
    )
