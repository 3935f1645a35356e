"""Metadata loaders and their registry."""
from .base import BaseMetadataLoader
from .checksum import ChecksumLiteMetadataLoader, ChecksumMetadataLoader
from .default import DefaultMetadataLoader
from .exif import ExifMetadataLoader, parse_exif_datetime
from .registry import LoaderRegistry, default_registry
from .social import SocialMetadataLoader
from .social_tags import SocialTagsMetadataLoader

__all__ = [
    "BaseMetadataLoader",
    "DefaultMetadataLoader",
    "ExifMetadataLoader",
    "parse_exif_datetime",
    "SocialMetadataLoader",
    "SocialTagsMetadataLoader",
    "ChecksumMetadataLoader",
    "ChecksumLiteMetadataLoader",
    "LoaderRegistry",
    "default_registry",
]
