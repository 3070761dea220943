"""
db/models/dashboard_config.py

Named dashboard configuration documents.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONDocument, TimestampMixin


class DashboardConfig(Base, TimestampMixin):
    __tablename__ = "dashboard_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    config_name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    config_data: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        comment="Whole configuration document; replaced on every save",
    )
