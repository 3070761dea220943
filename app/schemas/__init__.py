"""
app/schemas package marker.
"""

from app.schemas.base import CamelModel, ErrorResponse
from app.schemas.upload import UploadResponse, UploadStatsResponse

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "UploadResponse",
    "UploadStatsResponse",
]
