"""Folder archiver: enumerates sources and streams one result per file.

Per file:
1. Build a FileArchiveContext (filter, loaders, destination, exists check)
2. Apply the destination decision (delete source / already exists / write)
3. Reclaim destination space if the config asks for it
4. Copy or move

Results are produced lazily; per-file failures become ERROR results and
never stop the run.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..core.config import ArchiveConfig
from ..core.models import ArchiveResult, ArchiveStats, FileResult
from ..loaders.registry import LoaderRegistry, default_registry
from .context import FileArchiveContext
from .file_ops import FileManager, FreeSpaceReader
from .scanner import DirectoryScanner

logger = logging.getLogger(__name__)


class FolderArchiver:
    """Archives source folders into a destination according to one config.

    Owns the loader registry for the run: ``close()`` (or leaving the
    ``with`` block) signals end of run to every loader, which commits the
    checksum store.
    """

    def __init__(
        self,
        config: ArchiveConfig,
        registry: Optional[LoaderRegistry] = None,
        free_space_reader: Optional[FreeSpaceReader] = None,
        scanner: Optional[DirectoryScanner] = None,
    ):
        """Initialize the archiver.

        Args:
            config: Effective run config.
            registry: Loader registry; the built-in one when None.
            free_space_reader: Free bytes for a destination path.
            scanner: Source enumerator.

        Raises:
            ConfigError: If the config names an unknown loader.
        """
        self._config = config
        self._registry = registry or default_registry()
        self._loaders = self._registry.resolve(config.loader_names)
        self._file_manager = FileManager(
            dry_run=bool(config.dry_run),
            free_space_reader=free_space_reader,
        )
        self._scanner = scanner or DirectoryScanner()
        self._folder_stats: dict[Path, ArchiveStats] = {}
        self._closed = False

        # Dry-run eviction bookkeeping
        self._evicted: set[Path] = set()
        self._simulated_reclaimed = 0

    @property
    def config(self) -> ArchiveConfig:
        return self._config

    @property
    def dry_run(self) -> bool:
        return self._file_manager.dry_run

    @property
    def stats(self) -> ArchiveStats:
        """Counters summed over every folder archived so far."""
        total = ArchiveStats()
        for folder_stats in self._folder_stats.values():
            total.add(folder_stats)
        return total

    def folder_stats(self, source: Path) -> ArchiveStats:
        return self._folder_stats.get(source, ArchiveStats())

    def archive(self, source: Path, destination: Path) -> Iterator[ArchiveResult]:
        """Archive one source folder.

        Args:
            source: Folder to archive.
            destination: Destination root.

        Returns:
            Lazy sequence of results, in enumeration order.

        Raises:
            ValueError: If the source folder does not exist (raised immediately).
        """
        if not source.is_dir():
            raise ValueError(f"Source folder does not exist: {source}")
        return self._archive_folder(source, destination)

    def archive_all(self, sources: Iterable[Path], destination: Path) -> Iterator[ArchiveResult]:
        """Archive several source folders one after the other.

        Raises:
            ValueError: If any source folder does not exist (raised immediately).
        """
        sources = list(sources)
        for source in sources:
            if not source.is_dir():
                raise ValueError(f"Source folder does not exist: {source}")
        return self._archive_folders(sources, destination)

    def _archive_folders(self, sources: list[Path], destination: Path) -> Iterator[ArchiveResult]:
        for source in sources:
            yield from self._archive_folder(source, destination)

    def _archive_folder(self, source: Path, destination: Path) -> Iterator[ArchiveResult]:
        stats = self._folder_stats.setdefault(source, ArchiveStats())
        started = time.monotonic()
        logger.info("Archiving %s -> %s (dry_run=%s)", source, destination, self.dry_run)
        try:
            for path in self._scanner.scan(source, recursive=bool(self._config.recursive)):
                stats.total_files += 1
                for result in self._process_file(path, destination):
                    stats.record(result)
                    yield result
        finally:
            stats.elapsed_seconds += time.monotonic() - started
            logger.info("Finished %s: %s", source, stats.summary())

    def _process_file(self, path: Path, destination: Path) -> Iterator[ArchiveResult]:
        try:
            context = FileArchiveContext(path, destination, self._config, self._loaders)
        except Exception as e:
            logger.exception("Failed to prepare %s", path)
            yield ArchiveResult(FileResult.ERROR, message=str(e), error=e, path=path)
            return

        with context:
            if not context.is_valid:
                existing_name = context.metadata.existing_name
                if existing_name:
                    yield ArchiveResult(FileResult.ALREADY_EXISTS, context, message=existing_name, path=path)
                else:
                    yield ArchiveResult(FileResult.INVALID, context, path=path)
                return

            try:
                yield from self._apply(context)
            except Exception as e:
                logger.exception("Failed to archive %s", path)
                yield ArchiveResult(FileResult.ERROR, context, message=str(e), error=e, path=path)

    def _apply(self, context: FileArchiveContext) -> Iterator[ArchiveResult]:
        source = context.source_path
        target = context.destination_path
        updated = False

        if context.destination_exists:
            if context.delete_source_if_dest_exists:
                size = context.source_size
                self._file_manager.delete_file(source)
                logger.debug("Deleted source %s (archived as %s)", source, context.existing_destination)
                yield ArchiveResult(FileResult.SOURCE_DELETED, context, path=source, size=size)
                return
            if not context.override_destination:
                yield ArchiveResult(FileResult.ALREADY_EXISTS, context, path=source)
                return
            updated = True

        yield from self._ensure_free_space(context)

        if updated:
            self._file_manager.delete_file(context.existing_destination)

        # Nothing is transferred in dry-run mode
        size = 0 if self.dry_run else context.source_size
        if context.move_files:
            self._file_manager.move_file(source, target)
            kind = FileResult.MOVED_UPDATED if updated else FileResult.MOVED
        else:
            self._file_manager.copy_file(source, target)
            kind = FileResult.COPIED_UPDATED if updated else FileResult.COPIED
        logger.debug("%s %s -> %s", kind.value, source, target)
        yield ArchiveResult(kind, context, path=target, size=size)

    def _ensure_free_space(self, context: FileArchiveContext) -> Iterator[ArchiveResult]:
        """Evict destination files until the incoming file fits the space policy."""
        config = context.config
        if not (config.rotate or config.min_drive_size):
            return

        root = context.destination_root
        source_size = context.source_size
        required = config.min_drive_size or source_size
        free = self._file_manager.free_space(root) + self._simulated_reclaimed
        if free > required:
            return

        target = required - free + source_size
        logger.info("Low space on %s (%d free, %d required): reclaiming %d bytes",
                    root, free, required, target)

        reclaimed = 0
        for path in self._file_manager.iter_eviction_candidates(root):
            if path in self._evicted:
                continue
            try:
                size = path.stat().st_size
                self._file_manager.delete_file(path)
            except OSError as e:
                logger.warning("Cannot evict %s: %s", path, e)
                continue

            reclaimed += size
            if self.dry_run:
                self._evicted.add(path)
                self._simulated_reclaimed += size
            else:
                self._file_manager.prune_empty_parents(path, root)
            yield ArchiveResult(FileResult.DESTINATION_DELETED, context, path=path, size=size)

            if reclaimed > target:
                break

        if reclaimed <= target:
            logger.warning("Could only reclaim %d of %d bytes on %s", reclaimed, target, root)

    def close(self) -> None:
        """Signal end of run to all loaders (commits the checksum store)."""
        if self._closed:
            return
        self._closed = True
        self._registry.close_all()

    def __enter__(self) -> FolderArchiver:
        return self

    def __exit__(self, *args) -> None:
        self.close()
