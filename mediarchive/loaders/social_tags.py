"""Descriptive tags from social export ``.metadata.json`` sidecars."""
from __future__ import annotations

import json
import logging
import lzma
from pathlib import Path
from typing import Any, Optional

from ..core.metadata import FileMetadata
from ..core.naming import METADATA_EXTENSION
from .base import BaseMetadataLoader

logger = logging.getLogger(__name__)

TAGS_KEY = "Tags"


def find_metadata_sidecar(path: Path) -> Optional[Path]:
    """Find the sidecar for a media file (or the file itself if it is one)."""
    if path.name.lower().endswith(METADATA_EXTENSION) and path.is_file():
        return path
    for suffix in (METADATA_EXTENSION, METADATA_EXTENSION + ".xz"):
        sidecar = path.with_name(path.name + suffix)
        if sidecar.is_file():
            return sidecar
    return None


def load_sidecar(path: Path) -> Any:
    """Parse a plain or xz compressed JSON sidecar."""
    if path.suffix.lower() == ".xz":
        with lzma.open(path, "rt", encoding="utf-8") as f:
            return json.load(f)
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def describe_sidecar(document: Any) -> str:
    """One line description of a sidecar document; empty when unsuccessful."""
    document = _lower_keys(document)
    if not isinstance(document, dict) or not document.get("success"):
        return ""
    table = (document.get("data") or {}).get("table")
    if not isinstance(table, dict):
        return ""
    return (
        f"{table.get('people', '')}\t({table.get('race', '')}) in\t{table.get('clothing', '')}."
        f"\t{table.get('emotions', '')}. \t{table.get('objects', '')}"
    )


class SocialTagsMetadataLoader(BaseMetadataLoader):
    """Stores the sidecar description under ``Tags``. Never vetoes."""

    name = "IGTags"

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        sidecar = find_metadata_sidecar(path)
        if sidecar is None:
            return True
        try:
            metadata[TAGS_KEY] = describe_sidecar(load_sidecar(sidecar))
        except (OSError, ValueError, lzma.LZMAError) as e:
            logger.warning("Unreadable sidecar %s: %s", sidecar, e)
        return True
