"""Filesystem dates and media kind by extension."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.metadata import FILE_DATETIME_KEY, FILE_NAME_KEY, FileMetadata
from .base import BaseMetadataLoader

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext

# Files at or below this size are always overwritten when override is requested
MIN_COMPARABLE_SIZE = 1024


def file_creation_time(path: Path) -> datetime:
    """Creation time where the platform records it, else modification time."""
    stat = path.stat()
    timestamp = getattr(stat, "st_birthtime", None) or stat.st_mtime
    return datetime.fromtimestamp(timestamp)


class DefaultMetadataLoader(BaseMetadataLoader):
    name = "Default"

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        created = file_creation_time(path)
        metadata[FILE_DATETIME_KEY] = created
        metadata[FILE_NAME_KEY] = path.name
        # Keep tokens from an earlier Exif loader
        metadata.set_date_tokens(metadata.file_datetime or created)
        if metadata.media_kind is None:
            metadata.set_media_kind_by_file_name(path.name)
        return True

    def prepare(self, context: FileArchiveContext) -> bool:
        """Only overwrite when the existing file differs in size."""
        if context.override_destination:
            existing = context.existing_destination
            source_size = context.source_size
            context.override_destination = (
                existing is not None
                and source_size > MIN_COMPARABLE_SIZE
                and existing.stat().st_size != source_size
            )
        return True
