"""
app/validators/row_validator.py

Row-level validation and type coercion for metric uploads and CRM syncs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from app.domain.errors import (
    InvalidEnumError,
    InvalidNumberError,
    InvalidRangeError,
    MissingFieldError,
    RowValidationError,
)
from app.domain.metrics import METRIC_STATUSES, QUARTERS, MetricRecordInput

REQUIRED_FIELDS: tuple[str, ...] = ("quarter", "year", "metric_name", "metric_value")
OPTIONAL_FIELDS: tuple[str, ...] = ("metric_unit", "category", "description", "target_value", "status")


@dataclass(frozen=True)
class RowValidationResult:
    """
    Outcome of validating one raw row: exactly one of ``record`` or ``error``
    is set. ``warnings`` may be non-empty on success (e.g. a dropped status).
    """

    row_number: int
    record: MetricRecordInput | None = None
    error: RowValidationError | None = None
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.record is not None


class MetricRowValidator:
    """
    Validates and normalises one raw metric row.
    """

    def __init__(self, *, min_year: int = 2020, max_year: int = 2030) -> None:
        self._min_year = min_year
        self._max_year = max_year

    def validate(self, row: Mapping[str, Any], row_number: int) -> RowValidationResult:
        missing = [name for name in REQUIRED_FIELDS if self._is_blank(row.get(name))]
        if missing:
            return RowValidationResult(
                row_number=row_number,
                error=MissingFieldError(missing, row_number=row_number),
            )

        try:
            quarter = self._parse_quarter(row["quarter"], row_number)
            year = self._parse_year(row["year"], row_number)
            metric_value = self._parse_number(row["metric_value"], "metric_value", row_number)
            target_value = None
            if not self._is_blank(row.get("target_value")):
                target_value = self._parse_number(row["target_value"], "target_value", row_number)
        except RowValidationError as exc:
            return RowValidationResult(row_number=row_number, error=exc)

        status, warnings = self._parse_status(row.get("status"), row_number)

        return RowValidationResult(
            row_number=row_number,
            record=MetricRecordInput(
                quarter=quarter,
                year=year,
                metric_name=str(row["metric_name"]).strip(),
                metric_value=metric_value,
                metric_unit=self._parse_optional_string(row.get("metric_unit")),
                category=self._parse_optional_string(row.get("category")),
                description=self._parse_optional_string(row.get("description")),
                target_value=target_value,
                status=status,
            ),
            warnings=warnings,
        )

    def _parse_quarter(self, value: Any, row_number: int) -> str:
        quarter = str(value).strip().upper()
        if quarter not in QUARTERS:
            raise InvalidEnumError(
                f"Invalid quarter format: {value}. Must be Q1, Q2, Q3, or Q4",
                row_number=row_number,
                column="quarter",
                value=self._stringify_value(value),
            )
        return quarter

    def _parse_year(self, value: Any, row_number: int) -> int:
        year = self._coerce_int(value)
        if year is None or not self._min_year <= year <= self._max_year:
            raise InvalidRangeError(
                f"Invalid year: {value}. Must be between {self._min_year}-{self._max_year}",
                row_number=row_number,
                column="year",
                value=self._stringify_value(value),
            )
        return year

    def _parse_number(self, value: Any, column: str, row_number: int) -> float:
        number: float | None
        if isinstance(value, bool):
            number = None
        elif isinstance(value, (int, float)):
            number = float(value)
        else:
            try:
                number = float(str(value).strip())
            except ValueError:
                number = None

        if number is None or not math.isfinite(number):
            label = "metric value" if column == "metric_value" else "target value"
            raise InvalidNumberError(
                f"Invalid {label}: {value}. Must be a number",
                row_number=row_number,
                column=column,
                value=self._stringify_value(value),
            )
        return number

    def _parse_status(self, value: Any, row_number: int) -> tuple[str | None, tuple[str, ...]]:
        if self._is_blank(value):
            return None, ()
        normalized = str(value).strip().lower()
        if normalized in METRIC_STATUSES:
            return normalized, ()
        return None, (
            f"Row {row_number}: Invalid status value: {value}. Must be green, amber, or red",
        )

    def _parse_optional_string(self, value: Any) -> str | None:
        if self._is_blank(value):
            return None
        return str(value).strip()

    @staticmethod
    def _coerce_int(value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None

        raw = str(value).strip()
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            parsed = float(raw)
        except ValueError:
            return None
        return int(parsed) if parsed.is_integer() else None

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, float) and math.isnan(value):
            return True
        return str(value).strip() == ""

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
