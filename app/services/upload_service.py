"""
app/services/upload_service.py

Service layer for spreadsheet upload orchestration.

Flow for one upload:

    1. extension and size checks (nothing is stored on failure)
    2. bytes saved to file storage
    3. parse -> dataset validation -> statistics
    4. file row + metric rows inserted in one transaction

Any failure after step 2 deletes the stored bytes before the error
propagates, so a rejected upload leaves neither rows nor files behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache

from app.config import get_upload_settings, get_validation_settings
from app.domain.errors import UploadTooLargeError
from app.domain.metrics import DatasetStats
from app.parsers.file_parser import ensure_supported_extension, parse_file
from app.validators.dataset_validator import DatasetValidator, ValidationWarning, compute_stats
from app.validators.row_validator import MetricRowValidator
from db.models.uploaded_file import UploadedFile
from db.repositories.errors import FileStorageError
from db.repositories.metric_store import MetricStore
from db.repositories.storage import FileStorageBackend, LocalFileStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadOutcome:
    file: UploadedFile
    stats: DatasetStats
    processed_rows: int
    warnings: list[ValidationWarning] = field(default_factory=list)


class UploadService:
    """
    Coordinates file storage, parsing, validation and persistence.
    """

    def __init__(
        self,
        *,
        storage: FileStorageBackend,
        max_bytes: int,
        validator: DatasetValidator | None = None,
    ) -> None:
        self._storage = storage
        self._max_bytes = max_bytes
        self._validator = validator or DatasetValidator()

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def ingest(self, *, store: MetricStore, file_name: str, content: bytes) -> UploadOutcome:
        """
        Store, parse, validate and persist one uploaded spreadsheet.

        Raises the file/dataset level ingestion errors, ``StorageError`` and
        ``UploadTooLargeError`` unchanged.
        """

        extension = ensure_supported_extension(file_name)
        if len(content) > self._max_bytes:
            raise UploadTooLargeError(len(content), self._max_bytes)

        stored = self._storage.save(file_name=file_name, content=content)
        try:
            rows = parse_file(self._storage.path_for(stored.stored_name), extension)
            result = self._validator.validate(rows)
            stats = compute_stats(result.records)
            uploaded = store.ingest_upload(
                stored_name=stored.stored_name,
                original_name=file_name,
                file_type=extension.lstrip("."),
                size_bytes=stored.size_bytes,
                records=result.records,
            )
        except Exception:
            self._discard(stored.stored_name)
            raise

        logger.info(
            "Upload processed file_id=%s name=%s rows=%d warnings=%d",
            uploaded.id,
            file_name,
            len(result.records),
            len(result.warnings),
        )
        return UploadOutcome(
            file=uploaded,
            stats=stats,
            processed_rows=len(result.records),
            warnings=result.warnings,
        )

    def delete_file(self, *, store: MetricStore, file_id: int) -> UploadedFile | None:
        """
        Delete a file row (cascading to its metrics) and its stored bytes.
        Returns ``None`` when the file does not exist.
        """

        deleted = store.delete_file(file_id)
        if deleted is None:
            return None
        self._storage.delete(stored_name=deleted.stored_name)
        return deleted

    def _discard(self, stored_name: str) -> None:
        try:
            self._storage.delete(stored_name=stored_name)
        except FileStorageError as exc:
            logger.warning("Failed to remove rejected upload %s: %s", stored_name, exc)


@lru_cache(maxsize=1)
def get_upload_service() -> UploadService:
    """
    Build and cache the upload service with env-driven settings.
    """
    upload_settings = get_upload_settings()
    validation_settings = get_validation_settings()
    return UploadService(
        storage=LocalFileStorage(upload_settings.storage_dir),
        max_bytes=upload_settings.max_bytes,
        validator=DatasetValidator(
            row_validator=MetricRowValidator(
                min_year=validation_settings.min_year,
                max_year=validation_settings.max_year,
            ),
            log_validation_errors=validation_settings.log_validation_errors,
        ),
    )
