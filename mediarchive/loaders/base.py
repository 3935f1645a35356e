"""Base class for metadata loaders."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..core.metadata import FileMetadata

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext


class BaseMetadataLoader:
    """No-op loader: accepts every file.

    Subclasses override ``extract_path`` and, when they refine decisions
    once the destination is known, ``prepare``.
    """

    name = "Base"

    def prepare(self, context: FileArchiveContext) -> bool:
        return True

    def close(self, context: Optional[FileArchiveContext]) -> None:
        pass

    def extract(self, context: FileArchiveContext) -> bool:
        return self.extract_path(context.source_path, context.metadata)

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
