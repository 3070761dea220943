"""
app/parsers package marker.
"""

from app.parsers.file_parser import SUPPORTED_EXTENSIONS, ensure_supported_extension, parse_bytes, parse_file

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "ensure_supported_extension",
    "parse_bytes",
    "parse_file",
]
