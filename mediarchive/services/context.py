"""Per-file archive context: loaders, destination resolution, overwrite policy."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..core.config import ArchiveConfig, ExistsCheck
from ..core.metadata import FileMetadata, resolve_tokens
from ..core.protocols import DestinationExistsCheck, MetadataLoader
from ..loaders.social import CONTENT_ID_KEY, USER_ID_KEY

logger = logging.getLogger(__name__)


class PathExistsCheck:
    """The destination exists when a file sits at the computed path."""

    def find_existing(self, context: FileArchiveContext) -> Optional[Path]:
        path = context.destination_path
        if path is not None and path.is_file():
            return path
        return None


class SocialFileExistsCheck:
    """Matches any archived file carrying the same content id and user id.

    Searches the destination folder and its immediate subfolders whose
    name ends with the user id, so renamed exports are still found.
    """

    def find_existing(self, context: FileArchiveContext) -> Optional[Path]:
        exact = PathExistsCheck().find_existing(context)
        if exact is not None:
            return exact

        content_id = context.metadata.get_first(int, CONTENT_ID_KEY)
        user_id = context.metadata.get_first(int, USER_ID_KEY)
        if not content_id or not user_id or context.destination_path is None:
            return None

        folder = context.destination_path.parent
        if not folder.is_dir():
            return None

        folders = [folder]
        folders.extend(sorted(
            d for d in folder.iterdir() if d.is_dir() and d.name.endswith(str(user_id))
        ))
        pattern = f"*_{content_id}_{user_id}.*"
        for directory in folders:
            for match in sorted(directory.glob(pattern)):
                if match.is_file():
                    return match
        return None


def exists_check_for(config: ArchiveConfig) -> DestinationExistsCheck:
    """Pick the exists-check strategy configured for a run."""
    match config.destination_exists_check:
        case ExistsCheck.SOCIAL:
            return SocialFileExistsCheck()
        case _:
            return PathExistsCheck()


class FileArchiveContext:
    """Everything decided about one source file before it is transferred.

    Construction runs the whole pipeline: source filter, loader extraction,
    media kind specialisation, destination resolution, exists check and
    loader preparation. ``is_valid`` is False when any step rejects the
    file. Nothing is written to disk.

    Use as a context manager so loaders get their per-file ``close``. If
    construction raises, the loaders are closed before the error propagates.
    """

    def __init__(
        self,
        source_path: Path,
        destination_root: Path,
        config: ArchiveConfig,
        loaders: Sequence[MetadataLoader] = (),
    ):
        self.source_path = source_path
        self.destination_root = destination_root
        self.config = config
        self.loaders = list(loaders)
        self.metadata = FileMetadata(config.token_values)

        self.destination_path: Optional[Path] = None
        self.existing_destination: Optional[Path] = None
        self.move_files = False
        self.override_destination = False
        self.delete_source_if_dest_exists = False
        self.dry_run = bool(config.dry_run)
        self._source_size: Optional[int] = None

        try:
            self.is_valid = self._build()
        except Exception:
            self.is_valid = False
            self.close()
            raise

    def _build(self) -> bool:
        if not self.config.matches_source(self.source_path):
            logger.debug("Filtered out: %s", self.source_path)
            return False

        for loader in self.loaders:
            if not loader.extract(self):
                logger.debug("%s rejected %s", loader.name, self.source_path)
                return False

        self.config = self.config.for_media_kind(self.metadata.media_kind)
        self.dry_run = bool(self.config.dry_run)
        self.destination_path = self._resolve_destination()
        self.existing_destination = exists_check_for(self.config).find_existing(self)

        self.move_files = bool(self.config.move_files)
        self.override_destination = bool(self.config.override_destination)
        self.delete_source_if_dest_exists = bool(self.config.delete_source_if_dest_exists)

        for loader in self.loaders:
            if not loader.prepare(self):
                logger.debug("%s vetoed %s", loader.name, self.source_path)
                return False
        return True

    def _resolve_destination(self) -> Path:
        subfolder = resolve_tokens(self.config.subfolder_template or "", self.metadata)
        file_name = ""
        if self.config.file_name_template:
            file_name = resolve_tokens(self.config.file_name_template, self.metadata)
        return self.destination_root / subfolder / (file_name or self.source_path.name)

    @property
    def destination_exists(self) -> bool:
        return self.existing_destination is not None

    @property
    def source_size(self) -> int:
        if self._source_size is None:
            self._source_size = self.source_path.stat().st_size
        return self._source_size

    @property
    def relative_destination(self) -> str:
        """Destination path relative to the destination root, posix style."""
        if self.destination_path is None:
            return ""
        return self.destination_path.relative_to(self.destination_root).as_posix()

    def close(self) -> None:
        for loader in self.loaders:
            loader.close(self)

    def __enter__(self) -> FileArchiveContext:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileArchiveContext({self.source_path} -> {self.destination_path}, valid={self.is_valid})"
