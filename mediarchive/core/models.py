"""Domain models - per-file results and run statistics."""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext


class FileResult(Enum):
    """Outcome of archiving one file."""
    MOVED = "moved"
    COPIED = "copied"
    COPIED_UPDATED = "copied_updated"
    MOVED_UPDATED = "moved_updated"
    SOURCE_DELETED = "source_deleted"
    DESTINATION_DELETED = "destination_deleted"
    ERROR = "error"
    INVALID = "invalid"              # filter mismatch or loader veto
    ALREADY_EXISTS = "already_exists"  # in destination, possibly under another name


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    """Immutable outcome for one file (or one evicted destination file)."""
    kind: FileResult
    context: Optional[FileArchiveContext] = None
    message: Optional[str] = None
    error: Optional[BaseException] = None
    path: Optional[Path] = None
    size: int = 0

    @property
    def is_transfer(self) -> bool:
        return self.kind in (
            FileResult.MOVED,
            FileResult.COPIED,
            FileResult.MOVED_UPDATED,
            FileResult.COPIED_UPDATED,
        )

    @property
    def source_path(self) -> Optional[Path]:
        return self.context.source_path if self.context else None

    @property
    def destination_path(self) -> Optional[Path]:
        return self.context.destination_path if self.context else None


@dataclass(slots=True)
class ArchiveStats:
    """Mutable counters for an archive run."""
    total_files: int = 0
    copied: int = 0
    moved: int = 0
    updated: int = 0
    source_deleted: int = 0
    destination_deleted: int = 0
    duplicated: int = 0
    invalid: int = 0
    failed: int = 0
    transferred_bytes: int = 0
    source_deleted_bytes: int = 0
    reclaimed_bytes: int = 0
    elapsed_seconds: float = 0.0

    @property
    def processed(self) -> int:
        """Files that changed something: transfers and source deletions."""
        return self.copied + self.moved + self.updated + self.source_deleted

    @property
    def valid_files(self) -> int:
        return self.total_files - self.invalid

    def record(self, result: ArchiveResult) -> None:
        """Record a result."""
        if result.is_transfer:
            self.transferred_bytes += result.size
        match result.kind:
            case FileResult.COPIED:
                self.copied += 1
            case FileResult.MOVED:
                self.moved += 1
            case FileResult.COPIED_UPDATED | FileResult.MOVED_UPDATED:
                self.updated += 1
            case FileResult.SOURCE_DELETED:
                self.source_deleted += 1
                self.source_deleted_bytes += result.size
            case FileResult.DESTINATION_DELETED:
                self.destination_deleted += 1
                self.reclaimed_bytes += result.size
            case FileResult.ALREADY_EXISTS:
                self.duplicated += 1
            case FileResult.INVALID:
                self.invalid += 1
            case FileResult.ERROR:
                self.failed += 1

    def add(self, other: ArchiveStats) -> None:
        """Sum another run's counters into this one."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total_files,
            "processed": self.processed,
            "copied": self.copied,
            "moved": self.moved,
            "updated": self.updated,
            "source_deleted": self.source_deleted,
            "destination_deleted": self.destination_deleted,
            "duplicated": self.duplicated,
            "invalid": self.invalid,
            "failed": self.failed,
            "transferred_bytes": self.transferred_bytes,
            "reclaimed_bytes": self.reclaimed_bytes,
        }
