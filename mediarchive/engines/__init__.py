"""Checksum and tag reading engines."""
from .checksum import file_checksum, quick_checksum
from .tags import ExifToolTagReader, PillowTagReader, create_tag_reader

__all__ = [
    "file_checksum",
    "quick_checksum",
    "ExifToolTagReader",
    "PillowTagReader",
    "create_tag_reader",
]
