"""Core domain models, configuration and protocols."""
from .protocols import (
    MetadataLoader,
    TagReader,
    DestinationExistsCheck,
)
from .models import (
    FileResult,
    ArchiveResult,
    ArchiveStats,
)
from .metadata import FileMetadata, resolve_tokens
from .config import ArchiveConfig, ConfigError, ExistsCheck, load_run_config
from .naming import SocialFile, picture_id

__all__ = [
    # Protocols
    "MetadataLoader",
    "TagReader",
    "DestinationExistsCheck",
    # Models
    "FileResult",
    "ArchiveResult",
    "ArchiveStats",
    "FileMetadata",
    "resolve_tokens",
    # Config
    "ArchiveConfig",
    "ConfigError",
    "ExistsCheck",
    "load_run_config",
    # Naming
    "SocialFile",
    "picture_id",
]
