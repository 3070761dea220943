"""
app/domain package marker.
"""

from app.domain.metrics import MetricRecordInput, QuarterRef

__all__ = [
    "MetricRecordInput",
    "QuarterRef",
]
