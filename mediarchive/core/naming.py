"""Social export filename convention.

Files exported from the social platform are named
``username_timestamp_contentId_userId.ext`` (or, for some older exports,
``username_contentId_userId.ext``). Usernames may themselves contain
underscores and dots, so the name is decoded from the right.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

SEPARATOR = "_"
METADATA_EXTENSION = ".metadata.json"

# Names ending with these are sidecars or archives, never media.
NON_MEDIA_EXTENSIONS = (".json", ".xz", ".zip", ".gz", ".7z", ".rar")

# 2010-01-01T00:00:00Z. A content id above this (and not in the future)
# is really a timestamp from a name that lacks the content id segment.
MIN_TIMESTAMP = 1262304000

_INSTAGRAM_MARKER = "_n."
_DUPLICATE_MARKER = " (1)."
_MAX_INT64 = 2**63 - 1
_MAX_DIGITS = len(str(_MAX_INT64))


def _parse_int(text: str) -> int:
    if not text or len(text) > _MAX_DIGITS or not text.isascii() or not text.isdigit():
        return 0
    value = int(text)
    return value if value <= _MAX_INT64 else 0


def _trim_extension_noise(text: str) -> str:
    # "9157100311 (2)" -> "9157100311"
    end = 0
    while end < len(text) and text[end].isdigit():
        end += 1
    return text[:end] if end else text


@dataclass(frozen=True, slots=True)
class SocialFile:
    """Identity decoded from a social export file name."""
    full_path: Optional[str] = None
    file_name: Optional[str] = None
    username: Optional[str] = None
    user_id: int = 0
    content_id: int = 0
    timestamp: int = 0
    is_metadata: bool = False

    @property
    def is_valid(self) -> bool:
        if not self.file_name or not self.username:
            return False
        if self.user_id <= 100 or self.content_id <= 1000:
            return False
        if not self.is_metadata and self.file_name.lower().endswith(NON_MEDIA_EXTENSIONS):
            return False
        return True

    @classmethod
    def parse(cls, path: str) -> SocialFile:
        """Decode a file path. Never raises; undecodable names give ``SocialFile()``."""
        full_path = path
        file_name = PurePath(path).name
        name = file_name

        is_metadata = name.lower().endswith(METADATA_EXTENSION)
        if is_metadata:
            name = name[: -len(METADATA_EXTENSION)]

        dot_index = name.rfind(_INSTAGRAM_MARKER)
        if dot_index < 10:
            dot_index = name.rfind(_DUPLICATE_MARKER)
        if dot_index == -1:
            dot_index = name.rfind(".")
        if dot_index == -1:
            dot_index = len(name)
        name = name[:dot_index]

        user_id_index = name.rfind(SEPARATOR)
        if user_id_index == -1:
            return cls()
        user_id_text = _trim_extension_noise(name[user_id_index + 1:])
        name = name[:user_id_index]

        content_id_index = name.rfind(SEPARATOR)
        if content_id_index == -1:
            return cls()
        content_id_text = name[content_id_index + 1:]
        name = name[:content_id_index]

        user_id = _parse_int(user_id_text)
        content_id = _parse_int(content_id_text)

        timestamp_index = name.rfind(SEPARATOR)
        if timestamp_index != -1:
            return cls(
                full_path=full_path,
                file_name=file_name,
                username=name[:timestamp_index],
                user_id=user_id,
                content_id=content_id,
                timestamp=_parse_int(name[timestamp_index + 1:]),
                is_metadata=is_metadata,
            )

        # username_contentId_userId
        timestamp = 0
        shifted = MIN_TIMESTAMP < content_id <= int(time.time())
        if shifted:
            timestamp, content_id, user_id = content_id, user_id, 0

        result = cls(
            full_path=full_path,
            file_name=file_name,
            username=name,
            user_id=user_id,
            content_id=content_id,
            timestamp=timestamp,
            is_metadata=is_metadata,
        )
        if shifted or result.is_valid:
            return result
        return cls()


def picture_id(path: str) -> int:
    """Stable 64-bit FNV-1a id of a path string."""
    value = 14695981039346656037
    for char in path:
        value = ((value ^ ord(char)) * 1099511628211) & 0xFFFFFFFFFFFFFFFF
    return value
