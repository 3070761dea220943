"""
app/api/routers/data_router.py

Metric query, comparison and dashboard configuration endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_metric_store
from app.domain.metrics import QuarterRef
from app.schemas.metrics import (
    AvailableQuarterResponse,
    AvailableQuartersResponse,
    ComparisonResponse,
    ConfigResponse,
    ConfigSaveRequest,
    ConfigSaveResponse,
    HistoricalPageResponse,
    MetricComparisonResponse,
    MetricListResponse,
    MetricRecordResponse,
    QoQBody,
    QoQResponse,
    QuarterMetricsResponse,
    QuartersResponse,
    SummaryBody,
    SummaryResponse,
    TrendBody,
    TrendDataResponse,
    TrendResponse,
)
from app.services.metric_analysis_service import analyze_trend, build_summary
from db.repositories.metric_store import DEFAULT_TREND_POINTS, MetricStore

router = APIRouter(prefix="/data", tags=["data"])


def _records(rows: list) -> list[MetricRecordResponse]:
    return [MetricRecordResponse.model_validate(row) for row in rows]


def _quarter_ref(quarter: str, year: int) -> QuarterRef:
    try:
        return QuarterRef.of(quarter, year)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/quarterly", response_model=MetricListResponse)
def get_quarterly(
    quarter: str | None = Query(default=None, description="Q1..Q4"),
    year: int | None = Query(default=None),
    store: MetricStore = Depends(get_metric_store),
) -> MetricListResponse:
    rows = store.query_metrics(quarter=quarter, year=year)
    return MetricListResponse(data=_records(rows), count=len(rows))


@router.get("/comparison", response_model=ComparisonResponse)
def get_comparison(
    quarters: str | None = Query(default=None, description="Comma-separated YYYY-Qn keys"),
    store: MetricStore = Depends(get_metric_store),
) -> ComparisonResponse:
    keys = [key.strip() for key in quarters.split(",") if key.strip()] if quarters else []
    try:
        comparison = store.compare_across_quarters(keys)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return ComparisonResponse(
        data=[MetricComparisonResponse.model_validate(metric) for metric in comparison.metrics],
        quarters=comparison.quarter_keys,
    )


@router.get("/quarters", response_model=QuartersResponse)
def get_quarters(store: MetricStore = Depends(get_metric_store)) -> QuartersResponse:
    refs = store.available_quarters()
    return QuartersResponse(quarters=[ref.key for ref in sorted(refs)])


@router.get("/quarters/available", response_model=AvailableQuartersResponse)
def get_available_quarters(store: MetricStore = Depends(get_metric_store)) -> AvailableQuartersResponse:
    return AvailableQuartersResponse(
        quarters=[
            AvailableQuarterResponse(quarter=ref.quarter, year=ref.year)
            for ref in store.available_quarters()
        ]
    )


@router.get("/metrics/{category}", response_model=MetricListResponse)
def get_metrics_by_category(
    category: str,
    quarter: str | None = Query(default=None),
    year: int | None = Query(default=None),
    store: MetricStore = Depends(get_metric_store),
) -> MetricListResponse:
    """
    Rows of one category; ``all`` disables the category filter.
    """

    rows = store.query_metrics(
        quarter=quarter,
        year=year,
        category=None if category == "all" else category,
    )
    return MetricListResponse(data=_records(rows), count=len(rows))


@router.get("/summary", response_model=SummaryResponse)
def get_summary(store: MetricStore = Depends(get_metric_store)) -> SummaryResponse:
    summary = build_summary(store.query_metrics())
    return SummaryResponse(summary=SummaryBody.model_validate(summary))


@router.get("/trend/{metric_name}", response_model=TrendResponse)
def get_trend(metric_name: str, store: MetricStore = Depends(get_metric_store)) -> TrendResponse:
    trend = analyze_trend(metric_name, store.metric_history(metric_name))
    return TrendResponse(trend=TrendBody.model_validate(trend))


@router.get("/trend-data/{metric_name}", response_model=TrendDataResponse)
def get_trend_data(
    metric_name: str,
    quarters: int = Query(default=DEFAULT_TREND_POINTS, ge=1, le=100),
    store: MetricStore = Depends(get_metric_store),
) -> TrendDataResponse:
    rows = store.trend_series(metric_name, quarters)
    return TrendDataResponse(metric=metric_name, data=_records(rows), count=len(rows))


@router.get("/historical", response_model=HistoricalPageResponse)
def get_all_historical(
    limit: int | None = Query(default=None, ge=0),
    offset: int = Query(default=0, ge=0),
    store: MetricStore = Depends(get_metric_store),
) -> HistoricalPageResponse:
    rows, total = store.historical(limit=limit, offset=offset)
    return HistoricalPageResponse(
        data=_records(rows),
        count=len(rows),
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get("/historical/{metric_name}", response_model=MetricListResponse)
def get_metric_historical(
    metric_name: str,
    limit: int | None = Query(default=None, ge=0),
    store: MetricStore = Depends(get_metric_store),
) -> MetricListResponse:
    rows, _total = store.historical(metric_name, limit=limit)
    return MetricListResponse(data=_records(rows), count=len(rows))


@router.get("/qoq/{metric_name}", response_model=QoQResponse)
def get_quarter_over_quarter(
    metric_name: str,
    quarter: str | None = Query(default=None),
    year: int | None = Query(default=None),
    store: MetricStore = Depends(get_metric_store),
) -> QoQResponse:
    if not quarter or year is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quarter and year are required",
        )
    ref = _quarter_ref(quarter, year)
    comparison = store.quarter_over_quarter(metric_name, ref.quarter, ref.year)
    return QoQResponse(
        metric=metric_name,
        current_quarter=ref.key,
        comparison=QoQBody(
            current=MetricRecordResponse.model_validate(comparison.current) if comparison.current else None,
            previous=MetricRecordResponse.model_validate(comparison.previous) if comparison.previous else None,
            change=comparison.change,
            change_percent=comparison.change_percent,
        ),
    )


@router.get("/quarter/{quarter}/{year}", response_model=QuarterMetricsResponse)
def get_quarter_metrics(
    quarter: str,
    year: int,
    store: MetricStore = Depends(get_metric_store),
) -> QuarterMetricsResponse:
    ref = _quarter_ref(quarter, year)
    rows = store.metrics_for_quarter(ref.quarter, ref.year)
    return QuarterMetricsResponse(quarter=ref.quarter, year=ref.year, data=_records(rows), count=len(rows))


@router.post("/config", response_model=ConfigSaveResponse)
def save_config(
    payload: ConfigSaveRequest,
    store: MetricStore = Depends(get_metric_store),
) -> ConfigSaveResponse:
    if not payload.config_name or payload.config_data is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Config name and data are required",
        )
    store.upsert_config(payload.config_name, payload.config_data)
    return ConfigSaveResponse()


@router.get("/config/{config_name}", response_model=ConfigResponse)
def get_config(config_name: str, store: MetricStore = Depends(get_metric_store)) -> ConfigResponse:
    return ConfigResponse(config=store.get_config(config_name))
