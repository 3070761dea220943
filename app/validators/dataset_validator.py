"""
app/validators/dataset_validator.py

Whole-file validation: runs the row validator over every parsed record and
computes the statistics returned with an upload confirmation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from app.domain.errors import EmptyDatasetError, NoValidRowsError, RowValidationError
from app.domain.metrics import DatasetStats, MetricRecordInput
from app.validators.row_validator import MetricRowValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationWarning:
    row_number: int
    message: str


@dataclass(frozen=True)
class DatasetValidationResult:
    """
    Surviving records in input order plus everything that was dropped or
    adjusted along the way.
    """

    records: list[MetricRecordInput]
    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[RowValidationError] = field(default_factory=list)


class DatasetValidator:
    """
    Applies row validation to a parsed dataset.

    Raises ``EmptyDatasetError`` before any row check when the dataset has no
    records and ``NoValidRowsError`` when every row was rejected.
    """

    def __init__(
        self,
        *,
        row_validator: MetricRowValidator | None = None,
        log_validation_errors: bool = True,
    ) -> None:
        self._row_validator = row_validator or MetricRowValidator()
        self._log_validation_errors = log_validation_errors

    def validate(self, rows: Sequence[Mapping[str, Any]]) -> DatasetValidationResult:
        if not rows:
            raise EmptyDatasetError()

        records: list[MetricRecordInput] = []
        warnings: list[ValidationWarning] = []
        errors: list[RowValidationError] = []

        for row_number, row in enumerate(rows, start=1):
            result = self._row_validator.validate(row, row_number)
            if result.error is not None:
                errors.append(result.error)
                warnings.append(ValidationWarning(row_number=row_number, message=str(result.error)))
                if self._log_validation_errors:
                    logger.warning("Row validation failed: %s", result.error)
                continue

            for message in result.warnings:
                warnings.append(ValidationWarning(row_number=row_number, message=message))
                if self._log_validation_errors:
                    logger.warning("Row validation warning: %s", message)
            if result.record is not None:
                records.append(result.record)

        if not records:
            raise NoValidRowsError(errors)

        return DatasetValidationResult(records=records, warnings=warnings, errors=errors)


def compute_stats(records: Sequence[MetricRecordInput]) -> DatasetStats:
    """
    Summarise validated records. ``quarters`` keeps first-seen order.
    """

    if not records:
        raise EmptyDatasetError()

    quarters: dict[str, None] = {}
    metrics: dict[str, None] = {}
    categories: dict[str, None] = {}
    for record in records:
        quarters.setdefault(record.quarter_key, None)
        metrics.setdefault(record.metric_name, None)
        if record.category is not None:
            categories.setdefault(record.category, None)

    values = [record.metric_value for record in records]
    return DatasetStats(
        total_rows=len(records),
        quarters=list(quarters),
        metrics=list(metrics),
        categories=list(categories),
        value_min=min(values),
        value_max=max(values),
    )
