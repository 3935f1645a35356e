"""Camera tags and capture date from an external tag reader."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..core.metadata import (
    EXIF_DATETIME_KEY,
    IMAGE_RAW_MEDIA_KIND,
    MEDIA_KIND_KEY,
    UNKNOWN_VALUE,
    FileMetadata,
)
from ..core.protocols import TagReader
from ..engines.tags import create_tag_reader
from .base import BaseMetadataLoader

logger = logging.getLogger(__name__)

CAMERA_MAKER_KEY = "CameraMaker"
CAMERA_MODEL_KEY = "CameraModel"
LENS_MODEL_KEY = "LensModel"
COPYRIGHT_KEY = "Copyright"
ARTIST_KEY = "Artist"

RAW_IMAGE_TYPES = frozenset({"ARW", "CRW", "CR2", "NEF", "ORF", "RAF", "RW2", "CRX", "DNG"})

# Still image block, its sub block, then video containers
DATE_GROUPS = ("IFD0", "ExifIFD", "QuickTime", "Keys")
DATE_TAGS = ("ModifyDate", "DateTimeOriginal", "CreateDate", "CreationDate")

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse an EXIF style date (``YYYY:MM:DD HH:MM:SS`` plus optional suffix).

    Returns:
        Naive local datetime, or None for missing, zeroed or malformed values.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or len(value) < 19:
        return None
    try:
        return datetime.strptime(value[:19], EXIF_DATE_FORMAT)
    except ValueError:
        return None


def _first_tag(tags: dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = tags.get(key)
        if value not in (None, ""):
            return str(value)
    return None


class ExifMetadataLoader(BaseMetadataLoader):
    """Reads maker, model, lens, copyright, artist, capture date and media kind.

    Never vetoes: missing tags become ``Unknown``.
    """

    name = "Exif"

    def __init__(self, tag_reader: Optional[TagReader] = None):
        self._tag_reader = tag_reader
        self._owns_reader = tag_reader is None

    @property
    def tag_reader(self) -> TagReader:
        if self._tag_reader is None:
            self._tag_reader = create_tag_reader()
            logger.debug("Using tag reader %s", type(self._tag_reader).__name__)
        return self._tag_reader

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        tags = self.tag_reader.read_tags(path)

        metadata[CAMERA_MAKER_KEY] = _first_tag(
            tags, "IFD0:Make", "Keys:AndroidManufacturer", "QuickTime:Make"
        ) or UNKNOWN_VALUE
        metadata[CAMERA_MODEL_KEY] = _first_tag(
            tags, "IFD0:Model", "Keys:AndroidModel", "QuickTime:Model"
        ) or UNKNOWN_VALUE
        metadata[LENS_MODEL_KEY] = _first_tag(tags, "ExifIFD:LensModel") or UNKNOWN_VALUE
        metadata[COPYRIGHT_KEY] = _first_tag(tags, "IFD0:Copyright") or UNKNOWN_VALUE
        metadata[ARTIST_KEY] = _first_tag(tags, "IFD0:Artist") or UNKNOWN_VALUE

        media_kind = self._media_kind(tags)
        if media_kind:
            metadata[MEDIA_KIND_KEY] = media_kind

        taken = self._capture_datetime(tags)
        if taken is not None:
            metadata[EXIF_DATETIME_KEY] = taken
            metadata.set_date_tokens(taken)

        return True

    @staticmethod
    def _media_kind(tags: dict[str, Any]) -> Optional[str]:
        file_type = _first_tag(tags, "File:FileType")
        if file_type and file_type.upper() in RAW_IMAGE_TYPES:
            return IMAGE_RAW_MEDIA_KIND
        mime_type = _first_tag(tags, "File:MIMEType")
        if mime_type:
            return mime_type.split("/", 1)[0]
        return None

    @staticmethod
    def _capture_datetime(tags: dict[str, Any]) -> Optional[datetime]:
        for group in DATE_GROUPS:
            for tag in DATE_TAGS:
                taken = parse_exif_datetime(tags.get(f"{group}:{tag}"))
                if taken is not None:
                    return taken
        return None

    def close(self, context) -> None:
        if context is None and self._owns_reader and self._tag_reader is not None:
            self._tag_reader.close()
            self._tag_reader = None
