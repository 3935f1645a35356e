"""Persistent content checksum duplicate detection."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from ..core.metadata import CHECKSUM_KEY, EXISTING_NAME_KEY, FILE_SIZE_KEY, FileMetadata
from ..engines.checksum import file_checksum, quick_checksum
from ..persistence.checksum_store import ChecksumStore
from .base import BaseMetadataLoader

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext

logger = logging.getLogger(__name__)


class ChecksumMetadataLoader(BaseMetadataLoader):
    """Hashes the source and checks it against the destination's checksum store.

    The store is opened lazily on the first ``prepare`` for a destination
    root and kept open, with uncommitted inserts, until ``close(None)``.
    """

    name = "ChkSum"
    checksum_function: Callable[[Path], tuple[str, int]] = staticmethod(file_checksum)

    def __init__(self):
        self._stores: dict[Path, ChecksumStore] = {}
        # Records inserted for files still in flight
        self._pending: dict[FileArchiveContext, tuple[ChecksumStore, str]] = {}

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        checksum, size = self.checksum_function(path)
        metadata[CHECKSUM_KEY] = checksum
        metadata[FILE_SIZE_KEY] = size
        return True

    def store_for(self, destination_root: Path, dry_run: bool = False) -> ChecksumStore:
        store = self._stores.get(destination_root)
        if store is None:
            store = ChecksumStore.for_destination(destination_root, dry_run=dry_run)
            self._stores[destination_root] = store
        return store

    def prepare(self, context: FileArchiveContext) -> bool:
        metadata = context.metadata
        checksum, size = metadata.checksum, metadata.file_size
        if checksum is None or size is None:
            return False

        store = self.store_for(context.destination_root, dry_run=context.dry_run)
        existing = store.find_duplicate(checksum, size)
        if existing is not None:
            metadata[EXISTING_NAME_KEY] = existing.name
            if not context.config.ignore_duplicates:
                logger.debug("%s duplicates %s", context.source_path, existing.name)
                return False

        timestamp = metadata.file_datetime
        if timestamp is None:
            return False

        name = context.relative_destination
        store.insert(name, checksum, size, timestamp)
        self._pending[context] = (store, name)
        return True

    def close(self, context: Optional[FileArchiveContext]) -> None:
        """Forget a file's record if it never reached the destination; flush stores at end of run."""
        if context is not None:
            pending = self._pending.pop(context, None)
            if pending is None or context.dry_run:
                return
            store, name = pending
            if context.destination_path is None or not context.destination_path.is_file():
                logger.debug("Dropping checksum record %s: file was not archived", name)
                store.remove(name)
            return
        for root, store in self._stores.items():
            logger.debug("Closing checksum store for %s", root)
            store.close()
        self._stores.clear()


class ChecksumLiteMetadataLoader(ChecksumMetadataLoader):
    """Same as ChkSum but hashes only the head and tail of each file."""

    name = "ChkSumLite"
    checksum_function = staticmethod(quick_checksum)
