"""
app/api/routers/upload_router.py

Spreadsheet upload, template download and uploaded-file management endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status

from app.api.dependencies import get_metric_store, get_spreadsheet_upload
from app.domain.errors import UploadTooLargeError
from app.parsers.template import TEMPLATE_BASENAME, template_csv, template_xlsx
from app.schemas.upload import (
    DeleteFileResponse,
    FileListResponse,
    UploadedFileResponse,
    UploadResponse,
    UploadStatsResponse,
    UploadWarningResponse,
    ValueRangeResponse,
)
from app.services.upload_service import UploadService, get_upload_service
from db.repositories.metric_store import MetricStore

router = APIRouter(prefix="/upload", tags=["upload"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/file", response_model=UploadResponse)
def upload_file(
    file: UploadFile = Depends(get_spreadsheet_upload),
    store: MetricStore = Depends(get_metric_store),
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """
    Ingest one CSV/XLSX/XLS file of quarterly metrics.
    """

    try:
        content = file.file.read(upload_service.max_bytes + 1)
        if len(content) > upload_service.max_bytes:
            raise UploadTooLargeError(len(content), upload_service.max_bytes)
        outcome = upload_service.ingest(
            store=store,
            file_name=file.filename or "",
            content=content,
        )
    finally:
        file.file.close()

    stats = outcome.stats
    return UploadResponse(
        file_id=outcome.file.id,
        filename=outcome.file.original_name,
        stats=UploadStatsResponse(
            total_rows=stats.total_rows,
            quarters=stats.quarters,
            metrics=stats.metrics,
            categories=stats.categories,
            value_range=ValueRangeResponse(min=stats.value_min, max=stats.value_max),
        ),
        processed_rows=outcome.processed_rows,
        warnings=[
            UploadWarningResponse(row_number=warning.row_number, message=warning.message)
            for warning in outcome.warnings
        ],
    )


@router.get("/files", response_model=FileListResponse)
def list_files(store: MetricStore = Depends(get_metric_store)) -> FileListResponse:
    return FileListResponse(
        files=[UploadedFileResponse.model_validate(uploaded) for uploaded in store.list_files()]
    )


@router.get("/template/{template_format}")
def download_template(template_format: str) -> Response:
    normalized = template_format.strip().lower()
    if normalized == "csv":
        return Response(
            content=template_csv(),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_BASENAME}.csv"'},
        )
    if normalized == "xlsx":
        return Response(
            content=template_xlsx(),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_BASENAME}.xlsx"'},
        )
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid format. Supported: csv, xlsx",
    )


@router.delete("/file/{file_id}", response_model=DeleteFileResponse)
def delete_file(
    file_id: int,
    store: MetricStore = Depends(get_metric_store),
    upload_service: UploadService = Depends(get_upload_service),
) -> DeleteFileResponse:
    deleted = upload_service.delete_file(store=store, file_id=file_id)
    if deleted is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return DeleteFileResponse()
