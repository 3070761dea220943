"""
app/parsers/file_parser.py

Format adapters turning an uploaded spreadsheet into an ordered list of raw
records (one mapping per data row, keyed by the header row).
"""

from __future__ import annotations

import csv
import io
import logging
import math
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from app.domain.errors import ParseError, UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".csv", ".xlsx", ".xls")

RawRecord = dict[str, Any]

_EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def file_extension(file_name: str) -> str:
    return Path(file_name).suffix.lower()


def ensure_supported_extension(file_name: str) -> str:
    """
    Return the lower-cased extension of ``file_name`` or raise
    ``UnsupportedFormatError``.
    """

    extension = file_extension(file_name)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)
    return extension


def parse_csv(content: bytes) -> list[RawRecord]:
    """
    Parse UTF-8 CSV bytes (BOM tolerated). Fully blank lines are skipped.
    """

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"CSV file is not valid UTF-8: {exc}") from exc

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        headers = reader.fieldnames
        if not headers:
            return []

        records: list[RawRecord] = []
        for raw_row in reader:
            record = {
                str(key).strip(): value
                for key, value in raw_row.items()
                if key is not None
            }
            if _is_blank_record(record):
                continue
            records.append(record)
    except csv.Error as exc:
        raise ParseError(f"CSV parsing failed: {exc}") from exc
    return records


def parse_excel(content: bytes, extension: str = ".xlsx") -> list[RawRecord]:
    """
    Parse the first worksheet of an XLSX/XLS workbook.

    Empty cells become ``None``; fully empty rows are skipped.
    """

    engine = _EXCEL_ENGINES.get(extension)
    if engine is None:
        raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)

    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=object, engine=engine)
    except Exception as exc:
        # openpyxl and xlrd raise their own exception types for corrupt workbooks.
        raise ParseError(f"Excel parsing failed: {exc}") from exc

    frame = frame.dropna(how="all")
    frame.columns = [str(column).strip() for column in frame.columns]

    records: list[RawRecord] = []
    for raw_row in frame.to_dict(orient="records"):
        record = {key: _clean_cell(value) for key, value in raw_row.items()}
        if _is_blank_record(record):
            continue
        records.append(record)
    return records


_PARSERS: dict[str, Callable[[bytes], list[RawRecord]]] = {
    ".csv": parse_csv,
    ".xlsx": lambda content: parse_excel(content, ".xlsx"),
    ".xls": lambda content: parse_excel(content, ".xls"),
}


def parse_bytes(content: bytes, extension: str) -> list[RawRecord]:
    parser = _PARSERS.get(extension.lower())
    if parser is None:
        raise UnsupportedFormatError(extension, SUPPORTED_EXTENSIONS)
    records = parser(content)
    logger.debug("Parsed %d raw records from %s content", len(records), extension)
    return records


def parse_file(path: str | Path, extension: str | None = None) -> list[RawRecord]:
    """
    Read and parse a stored upload. The format tag defaults to the file's
    own extension.
    """

    file_path = Path(path)
    tag = (extension or file_path.suffix).lower()
    if tag not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(tag, SUPPORTED_EXTENSIONS)
    try:
        content = file_path.read_bytes()
    except OSError as exc:
        raise ParseError(f"Unable to read uploaded file: {exc}") from exc
    return parse_bytes(content, tag)


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _is_blank_record(record: RawRecord) -> bool:
    for value in record.values():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return False
    return True
