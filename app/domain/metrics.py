"""
app/domain/metrics.py

Domain types shared by ingestion, storage and the HTTP layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

QUARTERS: tuple[str, ...] = ("Q1", "Q2", "Q3", "Q4")
METRIC_STATUSES: frozenset[str] = frozenset({"green", "amber", "red"})

_QUARTER_KEY_PATTERN = re.compile(r"^\s*(\d{4})-(Q[1-4])\s*$", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_metric_key(metric_name: str) -> str:
    """
    Lower-case alphanumeric projection used for metric lookups.

    ``"eNPS (Employee Engagement)"`` -> ``"enpsemployeeengagement"``.
    """

    return _NON_ALNUM.sub("", metric_name.lower())


def quarter_index(quarter: str) -> int:
    """Fiscal position of a quarter label, 1 for Q1 through 4 for Q4."""

    return QUARTERS.index(quarter) + 1


@dataclass(frozen=True, order=True)
class QuarterRef:
    """
    One fiscal quarter. Ordering follows the calendar: (year, quarter index).
    """

    year: int
    index: int

    @classmethod
    def of(cls, quarter: str, year: int) -> "QuarterRef":
        normalized = quarter.strip().upper()
        if normalized not in QUARTERS:
            raise ValueError(f"Invalid quarter '{quarter}'. Must be one of {', '.join(QUARTERS)}.")
        return cls(year=int(year), index=quarter_index(normalized))

    @classmethod
    def parse_key(cls, key: str) -> "QuarterRef":
        """Parse a ``"{year}-{quarter}"`` key such as ``"2024-Q3"``."""

        match = _QUARTER_KEY_PATTERN.match(key)
        if match is None:
            raise ValueError(f"Invalid quarter key '{key}'. Expected format YYYY-Qn.")
        return cls.of(match.group(2), int(match.group(1)))

    @property
    def quarter(self) -> str:
        return QUARTERS[self.index - 1]

    @property
    def key(self) -> str:
        return f"{self.year}-{self.quarter}"

    def previous(self) -> "QuarterRef":
        if self.index == 1:
            return QuarterRef(year=self.year - 1, index=4)
        return QuarterRef(year=self.year, index=self.index - 1)


@dataclass(frozen=True)
class MetricRecordInput:
    """
    Validated metric row ready for persistence.

    ``source_file_id`` and ``created_at`` are assigned by the store.
    """

    quarter: str
    year: int
    metric_name: str
    metric_value: float
    metric_unit: str | None = None
    category: str | None = None
    description: str | None = None
    target_value: float | None = None
    status: str | None = None

    @property
    def quarter_key(self) -> str:
        return f"{self.year}-{self.quarter}"


@dataclass(frozen=True)
class DatasetStats:
    """
    Upload confirmation statistics computed over validated rows.
    """

    total_rows: int
    quarters: list[str]
    metrics: list[str]
    categories: list[str]
    value_min: float
    value_max: float


@dataclass(frozen=True)
class QuarterValue:
    value: float
    quarter: str
    year: int


@dataclass
class MetricComparison:
    """
    One metric across several quarters, keyed by ``"{year}-{quarter}"``.
    """

    metric_name: str
    metric_unit: str | None
    category: str | None
    quarters: dict[str, QuarterValue] = field(default_factory=dict)


@dataclass(frozen=True)
class QuarterComparison:
    metrics: list[MetricComparison]
    quarter_keys: list[str]


@dataclass(frozen=True)
class QoQComparison:
    """
    Quarter-over-quarter result. ``current`` and ``previous`` are stored rows
    (or ``None``); ``change`` and ``change_percent`` are ``None`` whenever they
    cannot be computed.
    """

    current: Any
    previous: Any
    change: float | None
    change_percent: float | None


@dataclass(frozen=True)
class TrendAnalysis:
    metric_name: str
    data_points: int
    values: list[dict[str, Any]]
    trend_direction: str
    change_percentage: float | None = None
