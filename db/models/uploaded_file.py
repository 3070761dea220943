"""
db/models/uploaded_file.py

UploadedFile model — metadata of one ingested spreadsheet.
Each file owns the quarterly metric rows that were parsed out of it.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, utcnow

if TYPE_CHECKING:
    from db.models.quarterly_metric import QuarterlyMetric


class FileStatus:
    UPLOADED = "uploaded"


class UploadedFile(Base):
    """
    One uploaded CSV/Excel file.

    ``stored_name`` is the path of the bytes relative to the upload storage
    root; ``original_name`` is the client-supplied filename.
    """

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    stored_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Storage-relative path of the saved bytes",
    )
    original_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Filename as uploaded by the client",
    )
    file_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="csv, xlsx or xls",
    )
    size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=FileStatus.UPLOADED,
        server_default=FileStatus.UPLOADED,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    metrics: Mapped[list["QuarterlyMetric"]] = relationship(
        "QuarterlyMetric",
        back_populates="source_file",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_files_uploaded_at", "uploaded_at"),)

    def __repr__(self) -> str:
        return (
            f"<UploadedFile id={self.id} original_name={self.original_name!r} "
            f"file_type={self.file_type!r}>"
        )
