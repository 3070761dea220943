"""
Storage backend abstractions for uploaded spreadsheet files.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError
from db.repositories.types import StoredUpload


class FileStorageBackend(Protocol):
    """
    Abstract storage backend used by the upload service.
    """

    def save(self, *, file_name: str, content: bytes) -> StoredUpload:
        ...

    def delete(self, *, stored_name: str) -> None:
        ...

    def path_for(self, stored_name: str) -> Path:
        ...


def _sanitize_file_name(file_name: str) -> str:
    safe_name = Path(file_name).name.strip()
    if not safe_name:
        raise FileStorageError("Invalid file name.")
    return safe_name


class LocalFileStorage:
    """
    Local filesystem storage backend.

    Files land under ``<root>/<YYYY>/<MM>/<uuid>_<name>``; the relative part
    is the ``stored_name`` kept in the ``files`` table.
    """

    def __init__(self, root_dir: str | Path = "data/uploads") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def path_for(self, stored_name: str) -> Path:
        root = self._root_dir.resolve()
        target = (root / Path(stored_name)).resolve()
        if root != target and root not in target.parents:
            raise FileStorageError("Stored file path escapes the storage root.")
        return target

    def save(self, *, file_name: str, content: bytes) -> StoredUpload:
        safe_file_name = _sanitize_file_name(file_name)
        stored_at = datetime.now(timezone.utc)

        relative_path = (
            Path(stored_at.strftime("%Y"))
            / stored_at.strftime("%m")
            / f"{uuid.uuid4().hex}_{safe_file_name}"
        )
        absolute_path = self._root_dir / relative_path

        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write uploaded file to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        return StoredUpload(
            original_name=safe_file_name,
            stored_name=relative_path.as_posix(),
            file_type=Path(safe_file_name).suffix.lower().lstrip("."),
            size_bytes=len(content),
            checksum=hashlib.sha256(content).hexdigest(),
            stored_at=stored_at,
        )

    def delete(self, *, stored_name: str) -> None:
        target = self.path_for(stored_name)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise FileStorageError("Failed to delete uploaded file from storage.") from exc
