"""
db/models/quarterly_metric.py

QuarterlyMetric model — one observation of one named metric in one fiscal quarter.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, utcnow

if TYPE_CHECKING:
    from db.models.uploaded_file import UploadedFile


class QuarterlyMetric(Base):
    """
    Append-only metric observation.

    ``(quarter, year, metric_name)`` is intentionally not unique: every upload
    or CRM sync appends rows and older rows stay as history. ``metric_key`` is
    the lower-cased alphanumeric form of ``metric_name`` used for
    case/punctuation-insensitive lookups.
    """

    __tablename__ = "quarterly_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    source_file_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=True,
        comment="Owning upload; NULL for CRM-synced rows",
    )
    quarter: Mapped[str] = mapped_column(String(2), nullable=False, comment="Q1..Q4")
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    metric_name: Mapped[str] = mapped_column(String(255), nullable=False)
    metric_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Normalised lookup key derived from metric_name",
    )
    metric_value: Mapped[float] = mapped_column(Float, nullable=False)
    metric_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str | None] = mapped_column(String(10), nullable=True, comment="green, amber or red")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    source_file: Mapped["UploadedFile | None"] = relationship("UploadedFile", back_populates="metrics")

    __table_args__ = (
        Index("ix_quarterly_metrics_year_quarter", "year", "quarter"),
        Index("ix_quarterly_metrics_metric_key", "metric_key"),
        Index("ix_quarterly_metrics_source_file_id", "source_file_id"),
    )

    @property
    def quarter_key(self) -> str:
        return f"{self.year}-{self.quarter}"

    def __repr__(self) -> str:
        return (
            f"<QuarterlyMetric id={self.id} {self.quarter_key} "
            f"metric_name={self.metric_name!r} value={self.metric_value}>"
        )
