"""
app/services/metric_analysis_service.py

Derived views over stored metric rows: trend direction, dashboard summary and
the key metrics of the latest quarter.

No SQL lives here; rows come from ``MetricStore``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from app.domain.metrics import QuarterRef, TrendAnalysis, normalize_metric_key
from db.models.quarterly_metric import QuarterlyMetric
from db.repositories.metric_store import MetricStore

logger = logging.getLogger(__name__)

TREND_THRESHOLD_PERCENT = 5.0


@dataclass(frozen=True)
class DashboardSummary:
    total_metrics: int
    unique_metrics: int
    categories: list[str]
    quarters: list[str]
    years: list[int]
    latest_quarter: str | None


@dataclass(frozen=True)
class KeyMetrics:
    """
    Metrics of the most recent stored quarter keyed by normalised metric key.
    """

    quarter: QuarterRef | None
    metrics: dict[str, dict[str, Any]]


def analyze_trend(metric_name: str, rows: Sequence[QuarterlyMetric]) -> TrendAnalysis:
    """
    Classify a chronological series as increasing, decreasing or stable.

    The change is measured from the first to the last point; beyond +/-5 %
    the series is trending. A first value of 0 leaves the percentage unset
    and the direction stable.
    """

    values = [
        {"quarter": row.quarter_key, "value": row.metric_value, "unit": row.metric_unit}
        for row in rows
    ]
    direction = "stable"
    change_percentage: float | None = None

    if len(rows) >= 2:
        first_value = rows[0].metric_value
        last_value = rows[-1].metric_value
        if first_value != 0:
            change_percentage = (last_value - first_value) / first_value * 100
            if change_percentage > TREND_THRESHOLD_PERCENT:
                direction = "increasing"
            elif change_percentage < -TREND_THRESHOLD_PERCENT:
                direction = "decreasing"

    return TrendAnalysis(
        metric_name=metric_name,
        data_points=len(rows),
        values=values,
        trend_direction=direction,
        change_percentage=change_percentage,
    )


def build_summary(rows: Sequence[QuarterlyMetric]) -> DashboardSummary:
    categories: dict[str, None] = {}
    quarter_refs: set[QuarterRef] = set()
    for row in rows:
        if row.category:
            categories.setdefault(row.category, None)
        quarter_refs.add(QuarterRef.of(row.quarter, row.year))

    ordered = sorted(quarter_refs)
    return DashboardSummary(
        total_metrics=len(rows),
        unique_metrics=len({row.metric_name for row in rows}),
        categories=list(categories),
        quarters=[ref.key for ref in ordered],
        years=sorted({ref.year for ref in ordered}),
        latest_quarter=ordered[-1].key if ordered else None,
    )


def extract_key_metrics(store: MetricStore) -> KeyMetrics:
    """
    Collect the latest quarter's metrics. Where a metric appears more than
    once in that quarter the most recently inserted row wins.
    """

    quarters = store.available_quarters()
    if not quarters:
        return KeyMetrics(quarter=None, metrics={})

    latest = quarters[0]
    rows = sorted(
        store.metrics_for_quarter(latest.quarter, latest.year),
        key=lambda row: (row.created_at, row.id),
    )
    metrics: dict[str, dict[str, Any]] = {}
    for row in rows:
        metrics[normalize_metric_key(row.metric_name)] = {
            "metric_name": row.metric_name,
            "value": row.metric_value,
            "unit": row.metric_unit,
            "target": row.target_value,
            "status": row.status,
        }
    return KeyMetrics(quarter=latest, metrics=metrics)
