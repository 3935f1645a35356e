"""Per-file metadata bag populated by loaders and read by template resolution."""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, TypeVar, Union

UNKNOWN_VALUE = "Unknown"

# Well-known keys (also usable as {TOKEN} names in templates)
FILE_NAME_KEY = "FileName"
FILE_DATETIME_KEY = "FileDatetime"
EXIF_DATETIME_KEY = "ExifDateTime"
CHECKSUM_KEY = "Checksum"
FILE_SIZE_KEY = "FileSize"
EXISTING_NAME_KEY = "ExistingPicName"
FILE_YEAR_KEY = "FileYear"
FILE_MONTH_KEY = "FileMonth"
FILE_DAY_KEY = "FileDay"
MEDIA_KIND_KEY = "MediaKind"

IMAGE_MEDIA_KIND = "image"
IMAGE_RAW_MEDIA_KIND = "image-raw"
VIDEO_MEDIA_KIND = "video"

MEDIA_KIND_BY_EXTENSION = {
    ".cr2": IMAGE_RAW_MEDIA_KIND,
    ".dng": IMAGE_RAW_MEDIA_KIND,
    ".orf": IMAGE_RAW_MEDIA_KIND,
    ".arw": IMAGE_RAW_MEDIA_KIND,
    ".mov": VIDEO_MEDIA_KIND,
    ".mp4": VIDEO_MEDIA_KIND,
}

MetadataValue = Union[datetime, int, float, str, bool, None]

T = TypeVar("T")

_TOKEN_PATTERN = re.compile(r"\{(.*?)\}")


def media_kind_for(path: Path | str) -> Optional[str]:
    """Media kind implied by a file extension, if known."""
    return MEDIA_KIND_BY_EXTENSION.get(Path(path).suffix.lower())


def _is_kind(value: Any, kind: type) -> bool:
    # bool is an int subclass but never a numeric metadata value
    if kind is int and isinstance(value, bool):
        return False
    return isinstance(value, kind)


class FileMetadata:
    """Mapping of attribute name to value for one candidate file.

    Created empty (or seeded with fixed token values) per file, written
    only by metadata loaders.
    """

    def __init__(self, values: Optional[Mapping[str, MetadataValue]] = None):
        self._values: dict[str, MetadataValue] = dict(values or {})

    def __getitem__(self, key: str) -> MetadataValue:
        return self._values.get(key)

    def __setitem__(self, key: str, value: MetadataValue) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FileMetadata({self._values!r})"

    def items(self):
        return self._values.items()

    def get(self, key: str, default: MetadataValue = None) -> MetadataValue:
        value = self._values.get(key)
        return default if value is None else value

    def get_first(self, kind: type[T], *keys: str, default: Optional[T] = None) -> Optional[T]:
        """Return the first value among ``keys`` that is present and of type ``kind``.

        Args:
            kind: Expected value type.
            *keys: Keys to try, in order.
            default: Returned when no key matches.
        """
        for key in keys:
            value = self._values.get(key)
            if value is not None and _is_kind(value, kind):
                return value  # type: ignore[return-value]
        return default

    def text(self, key: str) -> Optional[str]:
        """String form of a value, as substituted into templates."""
        value = self._values.get(key)
        if value is None:
            return None
        return str(value)

    # --- Well-known accessors ---

    @property
    def file_datetime(self) -> Optional[datetime]:
        """Best capture timestamp: EXIF first, then filesystem."""
        return self.get_first(datetime, EXIF_DATETIME_KEY, FILE_DATETIME_KEY)

    @property
    def media_kind(self) -> Optional[str]:
        return self.get_first(str, MEDIA_KIND_KEY)

    @property
    def checksum(self) -> Optional[str]:
        return self.get_first(str, CHECKSUM_KEY)

    @property
    def file_size(self) -> Optional[int]:
        return self.get_first(int, FILE_SIZE_KEY)

    @property
    def existing_name(self) -> Optional[str]:
        return self.get_first(str, EXISTING_NAME_KEY)

    def set_date_tokens(self, value: datetime) -> None:
        """Populate year/month/day tokens from a timestamp."""
        self._values[FILE_YEAR_KEY] = value.year
        self._values[FILE_MONTH_KEY] = f"{value.month:02d}"
        self._values[FILE_DAY_KEY] = f"{value.day:02d}"

    def set_media_kind_by_file_name(self, file_name: str) -> None:
        media_kind = media_kind_for(file_name)
        if media_kind:
            self._values[MEDIA_KIND_KEY] = media_kind


def resolve_tokens(template: str, metadata: Optional[FileMetadata]) -> str:
    """Replace every ``{TOKEN}`` with the metadata value's string form.

    Tokens without a value are left in place.
    """
    if metadata is None or "{" not in template or "}" not in template:
        return template

    def replace(match: re.Match[str]) -> str:
        value = metadata.text(match.group(1))
        return match.group(0) if value is None else value

    return _TOKEN_PATTERN.sub(replace, template)
