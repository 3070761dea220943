"""
Repository layer exports.
"""

from db.repositories.errors import FileStorageError, StorageError
from db.repositories.metric_store import MetricStore
from db.repositories.storage import FileStorageBackend, LocalFileStorage
from db.repositories.types import StoredUpload

__all__ = [
    "MetricStore",
    "StoredUpload",
    "FileStorageBackend",
    "LocalFileStorage",
    "StorageError",
    "FileStorageError",
]
