"""
app/domain/errors.py

Error taxonomy for ingestion and external collaborators.

Row-level errors are returned by the row validator inside a result object and
only cost the caller one row. File- and dataset-level errors are raised and
abort the whole upload. Storage failures live in ``db.repositories.errors``.
"""

from __future__ import annotations

from collections.abc import Sequence


# ---------------------------------------------------------------------------
# Row level (recoverable: the row is dropped, the upload continues)
# ---------------------------------------------------------------------------


class RowValidationError(ValueError):
    """
    Base class for one rejected row.
    """

    kind = "row_error"

    def __init__(
        self,
        message: str,
        *,
        row_number: int,
        column: str | None = None,
        value: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.row_number = row_number
        self.column = column
        self.value = value

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


class MissingFieldError(RowValidationError):
    kind = "missing_field"

    def __init__(self, missing_fields: Sequence[str], *, row_number: int) -> None:
        self.missing_fields = tuple(missing_fields)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing_fields)}",
            row_number=row_number,
        )


class InvalidEnumError(RowValidationError):
    kind = "invalid_enum"


class InvalidRangeError(RowValidationError):
    kind = "invalid_range"


class InvalidNumberError(RowValidationError):
    kind = "invalid_number"


# ---------------------------------------------------------------------------
# File level (abort the upload)
# ---------------------------------------------------------------------------


class FileIngestionError(Exception):
    """Base class for errors that reject a whole upload."""


class UnsupportedFormatError(FileIngestionError):
    def __init__(self, extension: str, supported: Sequence[str]) -> None:
        self.extension = extension
        self.supported = tuple(supported)
        super().__init__(
            f"File type {extension or '(none)'} is not allowed. "
            f"Supported types: {', '.join(self.supported)}"
        )


class ParseError(FileIngestionError):
    """Raised when a file cannot be read as the format its extension claims."""


class UploadTooLargeError(FileIngestionError):
    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(f"File exceeds the maximum upload size of {max_bytes} bytes")


# ---------------------------------------------------------------------------
# Dataset level (abort the upload)
# ---------------------------------------------------------------------------


class EmptyDatasetError(FileIngestionError):
    def __init__(self) -> None:
        super().__init__("No data found in file")


class NoValidRowsError(FileIngestionError):
    def __init__(self, errors: Sequence[RowValidationError] = ()) -> None:
        self.errors = tuple(errors)
        super().__init__("No valid data rows found")


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------


class ExternalServiceError(RuntimeError):
    """
    Raised when the CRM or narrative-generation service fails. Never retried.
    """

    def __init__(self, service: str, message: str, *, status_code: int | None = None) -> None:
        self.service = service
        self.message = message
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
