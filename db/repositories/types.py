"""
Typed DTOs used by repository upload/storage flows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredUpload:
    """
    Metadata produced by the storage backend after saving a file.
    """

    original_name: str
    stored_name: str
    file_type: str
    size_bytes: int
    checksum: str
    stored_at: datetime
