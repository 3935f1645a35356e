"""Social export filename convention loader."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..core.metadata import FILE_NAME_KEY, FileMetadata
from ..core.naming import SocialFile
from .base import BaseMetadataLoader

if TYPE_CHECKING:
    from ..services.context import FileArchiveContext

USER_ID_KEY = "UserId"
CONTENT_ID_KEY = "ContentId"
POST_TIMESTAMP_KEY = "PostTimestamp"
USER_NAME_KEY = "UserName"


class SocialMetadataLoader(BaseMetadataLoader):
    """Decodes ``username_timestamp_contentId_userId`` names. Vetoes anything else."""

    name = "IG"

    def extract_path(self, path: Path, metadata: FileMetadata) -> bool:
        social_file = SocialFile.parse(str(path))
        if not social_file.is_valid:
            return False

        metadata[USER_ID_KEY] = social_file.user_id
        metadata[CONTENT_ID_KEY] = social_file.content_id
        metadata[POST_TIMESTAMP_KEY] = social_file.timestamp
        metadata[USER_NAME_KEY] = social_file.username
        metadata[FILE_NAME_KEY] = social_file.file_name
        return True

    def prepare(self, context: FileArchiveContext) -> bool:
        """Only delete the source when the archived copy is at least as large."""
        if context.delete_source_if_dest_exists:
            existing = context.existing_destination
            context.delete_source_if_dest_exists = (
                existing is not None and existing.stat().st_size >= context.source_size
            )
        return True
