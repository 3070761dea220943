"""
db/models/insight.py

Generated narrative summaries and the comparison data they were built from.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONDocument, TimestampMixin


class InsightSnapshot(Base, TimestampMixin):
    """
    One generated narrative. Every generation inserts a new row; the most
    recently created row is the one served as "latest".
    """

    __tablename__ = "insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    insights_text: Mapped[str] = mapped_column(Text, nullable=False)
    qoq_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Quarter-over-quarter comparisons fed to the narrative generator",
    )
    current_quarter: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Quarter identifier the narrative was generated for",
    )

    __table_args__ = (Index("ix_insights_created_at", "created_at"),)
