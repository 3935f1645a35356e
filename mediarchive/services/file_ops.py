"""File operations service: transfers, free space and eviction walking."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Iterator, Optional

from .scanner import SENTINEL_FILE_NAME, is_excluded

logger = logging.getLogger(__name__)

FreeSpaceReader = Callable[[Path], int]

# Leftovers that do not keep a directory alive
JUNK_FILE_NAMES = frozenset({"thumbs.db", "desktop.ini"})


def disk_free_space(path: Path) -> int:
    """Free bytes on the volume holding ``path`` (or its nearest existing parent)."""
    while not path.exists() and path.parent != path:
        path = path.parent
    return shutil.disk_usage(path).free


def is_junk(path: Path) -> bool:
    if path.name == SENTINEL_FILE_NAME:
        return False
    return path.name.startswith(".") or path.name.lower() in JUNK_FILE_NAMES


class FileManager:
    """Performs (or, in dry-run mode, skips) filesystem mutations."""

    def __init__(self, dry_run: bool = False, free_space_reader: Optional[FreeSpaceReader] = None):
        """Initialize file manager.

        Args:
            dry_run: If True, don't touch the filesystem.
            free_space_reader: Returns free bytes for a path; defaults to disk usage.
        """
        self._dry_run = dry_run
        self._free_space_reader = free_space_reader or disk_free_space

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def copy_file(self, source: Path, target: Path) -> None:
        """Copy a file with metadata preservation.

        Raises:
            FileExistsError: If the target exists.
            OSError: On any copy failure.
        """
        if self._dry_run:
            return
        if target.exists():
            raise FileExistsError(f"Destination already exists: {target}")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)

    def move_file(self, source: Path, target: Path) -> None:
        """Move a file.

        Raises:
            FileExistsError: If the target exists.
            OSError: On any move failure.
        """
        if self._dry_run:
            return
        if target.exists():
            raise FileExistsError(f"Destination already exists: {target}")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))

    def delete_file(self, path: Path) -> None:
        if self._dry_run:
            return
        path.unlink(missing_ok=True)

    def free_space(self, path: Path) -> int:
        return self._free_space_reader(path)

    def iter_eviction_candidates(self, root: Path) -> Iterator[Path]:
        """Yield files that may be evicted, oldest layout first.

        Only subdirectories of ``root`` are walked, in name order; files of
        a directory come before its subdirectories. Directories holding the
        sentinel file are skipped entirely.
        """
        try:
            subdirectories = sorted((d for d in root.iterdir() if d.is_dir()), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", root, e)
            return
        for directory in subdirectories:
            yield from self._iter_directory(directory)

    def _iter_directory(self, directory: Path) -> Iterator[Path]:
        if is_excluded(directory):
            return
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return
        for entry in entries:
            if entry.is_file() and not entry.is_symlink() and entry.name != SENTINEL_FILE_NAME:
                yield entry
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                yield from self._iter_directory(entry)

    def prune_empty_parents(self, path: Path, root: Path) -> list[Path]:
        """Remove directories left with nothing but junk, walking up from ``path``.

        Stops at the first directory that still holds real content, and
        never removes ``root`` itself.

        Returns:
            Removed directories.
        """
        removed: list[Path] = []
        if self._dry_run:
            return removed

        directory = path.parent
        while directory != root and root in directory.parents:
            try:
                entries = list(directory.iterdir())
                if any(not (entry.is_file() and is_junk(entry)) for entry in entries):
                    break
                for entry in entries:
                    entry.unlink()
                directory.rmdir()
            except OSError as e:
                logger.warning("Cannot prune %s: %s", directory, e)
                break
            removed.append(directory)
            directory = directory.parent
        return removed
