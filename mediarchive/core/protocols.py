"""Protocol definitions (interfaces) for the pluggable parts of an archive run."""
from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Protocol

from .metadata import FileMetadata

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext


class MetadataLoader(Protocol):
    """Interface for metadata loader plugins.

    Lifecycle per file:
    - ``extract(context)`` while the context is built (may veto)
    - ``prepare(context)`` once the destination is known (may veto)
    - ``close(context)`` when the context is disposed

    ``close(None)`` is called once at the end of the whole run to flush
    shared resources.

    Implementations:
    - DefaultMetadataLoader: filesystem dates, media kind by extension
    - ExifMetadataLoader: camera tags and capture date
    - SocialMetadataLoader: social export filename convention
    - ChecksumMetadataLoader: persistent content duplicate index
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name."""
        ...

    @abstractmethod
    def prepare(self, context: FileArchiveContext) -> bool:
        """Refine context decisions once the destination is resolved. False vetoes."""
        ...

    @abstractmethod
    def close(self, context: Optional[FileArchiveContext]) -> None:
        """Per-file cleanup, or end-of-run flush when ``context`` is None."""
        ...

    @abstractmethod
    def extract(self, context: FileArchiveContext) -> bool:
        """Populate the context's metadata. False vetoes the file."""
        ...

    @abstractmethod
    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        """Populate ``metadata`` for ``path`` without a context."""
        ...


class TagReader(Protocol):
    """Opaque tag extraction capability: path -> tags, never raises.

    Tags are keyed ``Group:TagName`` using ExifTool family 1 group names
    (``IFD0``, ``ExifIFD``, ``QuickTime``, ``Keys``, ``File``).
    """

    @abstractmethod
    def read_tags(self, path: Path) -> dict[str, Any]:
        """Read tags from a file. Returns an empty dict on any failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release resources (e.g., an exiftool process)."""
        ...


class DestinationExistsCheck(Protocol):
    """Strategy deciding whether a file is already archived."""

    @abstractmethod
    def find_existing(self, context: FileArchiveContext) -> Optional[Path]:
        """Return the already archived file for this context, or None."""
        ...
