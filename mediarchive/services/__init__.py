"""Services: per-file context, scanning, file operations and the folder archiver."""
from .archiver import FolderArchiver
from .context import FileArchiveContext, PathExistsCheck, SocialFileExistsCheck, exists_check_for
from .file_ops import FileManager, disk_free_space
from .scanner import (
    CAMERAS_SOURCE,
    SENTINEL_FILE_NAME,
    DirectoryScanner,
    expand_sources,
    find_camera_folders,
)

__all__ = [
    "FolderArchiver",
    "FileArchiveContext",
    "PathExistsCheck",
    "SocialFileExistsCheck",
    "exists_check_for",
    "FileManager",
    "disk_free_space",
    "CAMERAS_SOURCE",
    "SENTINEL_FILE_NAME",
    "DirectoryScanner",
    "expand_sources",
    "find_camera_folders",
]
