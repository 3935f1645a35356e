"""Directory scanning service."""
from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

logger = logging.getLogger(__name__)

# A directory holding this file is never scanned nor evicted
SENTINEL_FILE_NAME = ".nomedia"

# Source selector expanding to the media folders of mounted cameras and cards
CAMERAS_SOURCE = "CAMERAS"

CAMERA_MEDIA_FOLDERS = ("DCIM", "private/M4ROOT/CLIP")
DEFAULT_MOUNT_PATTERNS = ("/media/*/*", "/run/media/*/*", "/Volumes/*", "/mnt/*")


def is_excluded(directory: Path) -> bool:
    """Check if a directory carries the sentinel file."""
    return (directory / SENTINEL_FILE_NAME).is_file()


class DirectoryScanner:
    """Enumerates source files in a stable order.

    Files of a directory come first (sorted by name), then its
    subdirectories (sorted by name) when scanning recursively.
    """

    def __init__(self, follow_symlinks: bool = False):
        """Initialize the scanner.

        Args:
            follow_symlinks: Whether to follow symbolic links.
        """
        self._follow_symlinks = follow_symlinks

    def scan(self, source: Path, recursive: bool = False) -> Iterator[Path]:
        """Yield candidate files under ``source``.

        Raises:
            ValueError: If the source folder does not exist.
        """
        if not source.is_dir():
            raise ValueError(f"Source folder does not exist: {source}")
        yield from self._scan_directory(source, recursive)

    def _scan_directory(self, directory: Path, recursive: bool) -> Iterator[Path]:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except PermissionError:
            logger.warning("Cannot read directory %s", directory)
            return

        subdirectories = []
        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue
            if entry.is_file():
                if entry.name != SENTINEL_FILE_NAME:
                    yield entry
            elif entry.is_dir():
                subdirectories.append(entry)

        if not recursive:
            return
        for subdirectory in subdirectories:
            if is_excluded(subdirectory):
                logger.debug("Skipping excluded directory %s", subdirectory)
                continue
            yield from self._scan_directory(subdirectory, recursive)

    def count_files(self, source: Path, recursive: bool = False) -> int:
        """Count files without keeping them."""
        return sum(1 for _ in self.scan(source, recursive))


def find_camera_folders(mount_patterns: Optional[Iterable[str]] = None) -> list[Path]:
    """Find camera media folders on mounted volumes.

    Args:
        mount_patterns: Glob patterns of volume roots (absolute).

    Returns:
        Existing media folders, sorted.
    """
    found: set[Path] = set()
    for pattern in mount_patterns or DEFAULT_MOUNT_PATTERNS:
        for volume in map(Path, glob.glob(pattern)):
            for media_folder in CAMERA_MEDIA_FOLDERS:
                candidate = volume / media_folder
                if candidate.is_dir():
                    found.add(candidate)
    return sorted(found)


def expand_sources(sources: Iterable[str]) -> list[Path]:
    """Expand the ``CAMERAS`` selector; other sources are taken as paths."""
    expanded: list[Path] = []
    for source in sources:
        if source == CAMERAS_SOURCE:
            cameras = find_camera_folders()
            logger.info("Found %d camera folder(s)", len(cameras))
            expanded.extend(cameras)
        else:
            expanded.append(Path(source))
    return expanded
