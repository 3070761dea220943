"""Typed payloads exchanged with the narrative generator."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.domain.metrics import QUARTERS


class CurrentQuarterRef(BaseModel):
    """Quarter the narrative is generated for."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    quarter: str
    year: int

    @field_validator("quarter")
    @classmethod
    def _normalize_quarter(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in QUARTERS:
            raise ValueError("quarter must be one of Q1, Q2, Q3, Q4")
        return normalized


class QoQSide(BaseModel):
    """One side (current or previous) of a quarter-over-quarter comparison."""

    model_config = ConfigDict(extra="allow")

    metric_value: Optional[float] = None
    metric_unit: Optional[str] = None
    quarter: Optional[str] = None
    year: Optional[int] = None


class QoQComparisonPayload(BaseModel):
    """Client-supplied comparison for one metric."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    change: Optional[float] = None
    change_percent: Optional[float] = None
    current: Optional[QoQSide] = None
    previous: Optional[QoQSide] = None


class GenerateInsightsRequest(BaseModel):
    """Body of ``POST /analysis/insights``."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    qoq_comparisons: Optional[Dict[str, QoQComparisonPayload]] = None
    current_quarter: Optional[CurrentQuarterRef] = None

    def qoq_document(self) -> Optional[Dict[str, Any]]:
        """Comparisons as stored in the insight snapshot (camelCase keys)."""

        if self.qoq_comparisons is None:
            return None
        return {
            metric: comparison.model_dump(by_alias=True, mode="json")
            for metric, comparison in self.qoq_comparisons.items()
        }


class NarrativeCompletion(BaseModel):
    """Text returned by the narrative generator plus token usage."""

    model_config = ConfigDict(frozen=True)

    text: str
    usage: Optional[Dict[str, Any]] = None
