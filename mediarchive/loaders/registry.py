"""Name -> loader registry owned by an archive run."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ..core.config import ConfigError
from ..core.protocols import MetadataLoader, TagReader
from .checksum import ChecksumLiteMetadataLoader, ChecksumMetadataLoader
from .default import DefaultMetadataLoader
from .exif import ExifMetadataLoader
from .social import SocialMetadataLoader
from .social_tags import SocialTagsMetadataLoader

logger = logging.getLogger(__name__)

LoaderFactory = Callable[[], MetadataLoader]


class LoaderRegistry:
    """Builds loaders by name, once per registry."""

    def __init__(self, factories: Optional[dict[str, LoaderFactory]] = None):
        self._factories: dict[str, LoaderFactory] = dict(factories or {})
        self._instances: dict[str, MetadataLoader] = {}

    def register(self, name: str, factory: LoaderFactory) -> None:
        self._factories[name] = factory

    def names(self) -> list[str]:
        return list(self._factories)

    def get(self, name: str) -> MetadataLoader:
        """Get (building on first use) the loader registered as ``name``.

        Raises:
            ConfigError: If no loader has that name.
        """
        loader = self._instances.get(name)
        if loader is not None:
            return loader

        factory = self._factories.get(name)
        if factory is None:
            raise ConfigError(
                f"Unknown metadata loader '{name}'. Available: {', '.join(self._factories)}"
            )
        loader = self._instances[name] = factory()
        return loader

    def resolve(self, names: Iterable[str]) -> list[MetadataLoader]:
        """Loaders for ``names`` in the given order."""
        return [self.get(name) for name in names]

    def close_all(self) -> None:
        """Signal end of run to every loader built so far."""
        for name, loader in self._instances.items():
            try:
                loader.close(None)
            except Exception:
                logger.exception("Loader %s failed to close", name)


def default_registry(tag_reader: Optional[TagReader] = None) -> LoaderRegistry:
    """Registry with the built-in loaders.

    Args:
        tag_reader: Tag reader for the Exif loader; picked automatically when None.
    """
    return LoaderRegistry({
        "Default": DefaultMetadataLoader,
        "Exif": lambda: ExifMetadataLoader(tag_reader),
        "IG": SocialMetadataLoader,
        "IGTags": SocialTagsMetadataLoader,
        "ChkSum": ChecksumMetadataLoader,
        "ChkSumLite": ChecksumLiteMetadataLoader,
    })
