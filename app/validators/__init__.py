"""
app/validators package marker.
"""

from app.validators.dataset_validator import DatasetValidationResult, DatasetValidator, compute_stats
from app.validators.row_validator import MetricRowValidator, RowValidationResult

__all__ = [
    "DatasetValidationResult",
    "DatasetValidator",
    "MetricRowValidator",
    "RowValidationResult",
    "compute_stats",
]
