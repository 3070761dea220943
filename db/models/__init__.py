"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.dashboard_config import DashboardConfig
from db.models.insight import InsightSnapshot
from db.models.quarterly_metric import QuarterlyMetric
from db.models.uploaded_file import FileStatus, UploadedFile

__all__ = [
    "DashboardConfig",
    "FileStatus",
    "InsightSnapshot",
    "QuarterlyMetric",
    "UploadedFile",
]
