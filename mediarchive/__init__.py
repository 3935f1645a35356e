"""Policy driven media archiving package.

Scans source folders, classifies files through pluggable metadata loaders,
resolves templated destinations, detects duplicates and transfers files.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import ArchiveConfig, ConfigError, ExistsCheck, load_run_config
from .core.models import ArchiveResult, ArchiveStats, FileResult
from .core.metadata import FileMetadata, resolve_tokens
from .core.naming import SocialFile, picture_id
from .core.protocols import DestinationExistsCheck, MetadataLoader, TagReader

# Engine exports
from .engines.tags import ExifToolTagReader, PillowTagReader, create_tag_reader

# Loader exports
from .loaders.registry import LoaderRegistry, default_registry

# Service exports
from .services.archiver import FolderArchiver
from .services.context import FileArchiveContext
from .services.scanner import DirectoryScanner, find_camera_folders

# Persistence exports
from .persistence.checksum_store import ChecksumStore

__all__ = [
    # Core
    "ArchiveConfig",
    "ConfigError",
    "ExistsCheck",
    "load_run_config",
    "ArchiveResult",
    "ArchiveStats",
    "FileResult",
    "FileMetadata",
    "resolve_tokens",
    "SocialFile",
    "picture_id",
    "DestinationExistsCheck",
    "MetadataLoader",
    "TagReader",
    # Engines
    "ExifToolTagReader",
    "PillowTagReader",
    "create_tag_reader",
    # Loaders
    "LoaderRegistry",
    "default_registry",
    # Services
    "FolderArchiver",
    "FileArchiveContext",
    "DirectoryScanner",
    "find_camera_folders",
    # Persistence
    "ChecksumStore",
]
