"""
Repository-layer exceptions for metric storage and upload file flows.
"""

from __future__ import annotations


class StorageError(Exception):
    """Raised when the metric store cannot read or write the database."""


class FileStorageError(StorageError):
    """Raised when storing or deleting uploaded file bytes fails."""
