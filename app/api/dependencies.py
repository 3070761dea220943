"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and collaborator lookup.
"""

from __future__ import annotations

from fastapi import File, HTTPException, Request, UploadFile, status

from app.domain.errors import UnsupportedFormatError
from app.parsers.file_parser import ensure_supported_extension
from db.repositories.metric_store import MetricStore


def get_metric_store(request: Request) -> MetricStore:
    """
    Return the process-wide metric store opened by the application lifespan.
    """

    store: MetricStore | None = getattr(request.app.state, "metric_store", None)
    if store is None or not store.is_open:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metric store is not available.",
        )
    return store


def get_spreadsheet_upload(file: UploadFile | None = File(default=None)) -> UploadFile:
    """
    Validate that a file was sent and that its extension is supported.

    Runs before any bytes are read or stored.
    """

    if file is None or not (file.filename or "").strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    try:
        ensure_supported_extension(file.filename or "")
    except UnsupportedFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return file
