"""
app/schemas/upload.py

Response schemas for spreadsheet upload endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import CamelModel


class ValueRangeResponse(BaseModel):
    min: float
    max: float


class UploadStatsResponse(CamelModel):
    total_rows: int = Field(..., ge=0)
    quarters: list[str]
    metrics: list[str]
    categories: list[str]
    value_range: ValueRangeResponse


class UploadWarningResponse(CamelModel):
    row_number: int
    message: str


class UploadResponse(CamelModel):
    """
    API response model for one processed upload.
    """

    success: bool = True
    message: str = "File uploaded and processed successfully"
    file_id: int
    filename: str
    stats: UploadStatsResponse
    processed_rows: int = Field(..., ge=0)
    warnings: list[UploadWarningResponse] = Field(default_factory=list)


class UploadedFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    stored_name: str
    original_name: str
    file_type: str
    size_bytes: int | None = None
    status: str
    uploaded_at: datetime | None = None


class FileListResponse(BaseModel):
    success: bool = True
    files: list[UploadedFileResponse] = Field(default_factory=list)


class DeleteFileResponse(BaseModel):
    success: bool = True
    message: str = "File deleted successfully"
