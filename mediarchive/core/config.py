"""Archive configuration: pydantic models, layered merge and named presets."""
from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .metadata import IMAGE_RAW_MEDIA_KIND, VIDEO_MEDIA_KIND


DEST_CONFIG_FILE_NAME = "archive-config.json"


class ConfigError(ValueError):
    """Raised for unusable configuration: bad documents, unknown names, invalid nesting."""


class ExistsCheck(str, Enum):
    """How to decide whether the destination file already exists."""
    DEFAULT = "default"  # file exists at the computed path
    SOCIAL = "social"    # any file carrying the same content id and user id


# Fields that are inherited field-wise by every merge, nested or not.
_INHERITED_FIELDS = (
    "dry_run",
    "report_progress",
    "min_drive_size",
    "rotate",
    "move_files",
    "override_destination",
    "ignore_duplicates",
    "delete_source_if_dest_exists",
    "subfolder_template",
    "file_name_template",
    "source_file_name_pattern",
    "recursive",
    "destination_exists_check",
    "token_values",
)


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class ArchiveConfig(BaseModel):
    """Run level (or media kind level) archive settings.

    Every field is optional: ``None`` means "not specified here" so that
    configs can be layered with :meth:`merge`. Document keys use the
    PascalCase aliases.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    dry_run: Optional[bool] = Field(default=None, alias="DryRun")
    report_progress: Optional[bool] = Field(default=None, alias="ReportProgress")

    min_drive_size: Optional[int] = Field(default=None, alias="MinDriveSize", ge=0)
    rotate: Optional[bool] = Field(default=None, alias="Rotate")

    move_files: Optional[bool] = Field(default=None, alias="MoveFiles")
    override_destination: Optional[bool] = Field(default=None, alias="OverrideDestination")
    ignore_duplicates: Optional[bool] = Field(default=None, alias="IgnoreDuplicates")
    delete_source_if_dest_exists: Optional[bool] = Field(default=None, alias="DeleteSourceFileIfDestExists")

    subfolder_template: Optional[str] = Field(default=None, alias="SubfolderTemplate")
    file_name_template: Optional[str] = Field(default=None, alias="FileNameTemplate")
    source_file_name_pattern: Optional[str] = Field(default=None, alias="SourceFileNameRegExPattern")

    recursive: Optional[bool] = Field(default=None, alias="Recursive")
    destination_exists_check: Optional[ExistsCheck] = Field(default=None, alias="DestinationExistsCheck")

    metadata_loaders: Optional[str] = Field(default=None, alias="MetadataLoaders")
    token_values: Optional[dict[str, Any]] = Field(default=None, alias="TokenValues")
    media_configs: Optional[dict[str, ArchiveConfig]] = Field(default=None, alias="MediaConfigs")

    @field_validator("source_file_name_pattern")
    @classmethod
    def compile_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}") from e
        return value

    @property
    def loader_names(self) -> list[str]:
        """Configured loader names in pipeline order."""
        if not self.metadata_loaders:
            return []
        return [name.strip() for name in self.metadata_loaders.split(",") if name.strip()]

    def matches_source(self, path: Path) -> bool:
        """Check the source file name filter (no filter matches everything)."""
        if not self.source_file_name_pattern:
            return True
        return re.search(self.source_file_name_pattern, str(path)) is not None

    def check_media_configs(self) -> None:
        """Reject media kind configs that declare loaders or further nesting.

        Raises:
            ConfigError: If any nested config is invalid.
        """
        for kind, media_config in (self.media_configs or {}).items():
            if media_config.media_configs is not None or media_config.metadata_loaders is not None:
                raise ConfigError(
                    "Invalid config: media specific configs cannot have other media "
                    f"specific configs or metadata loaders specified (media kind '{kind}')."
                )

    def merge(
        self,
        other: ArchiveConfig,
        fallback: Optional[ArchiveConfig] = None,
        nested: bool = False,
    ) -> ArchiveConfig:
        """Create a new config layering ``other`` over ``self`` over ``fallback``.

        Args:
            other: Config whose specified values win.
            fallback: Config consulted when neither ``other`` nor ``self`` has a value.
            nested: Merge at media kind level; loaders and media configs are dropped.

        Returns:
            The merged config.

        Raises:
            ConfigError: If either side carries invalid media kind configs.
        """
        values: dict[str, Any] = {}
        for name in _INHERITED_FIELDS:
            values[name] = _first_present(
                getattr(other, name),
                getattr(self, name),
                getattr(fallback, name) if fallback is not None else None,
            )

        if not nested:
            values["metadata_loaders"] = _first_present(other.metadata_loaders, self.metadata_loaders)
            values["media_configs"] = self._merge_media_configs(other)

        return ArchiveConfig.model_validate(values)

    def _merge_media_configs(self, other: ArchiveConfig) -> Optional[dict[str, ArchiveConfig]]:
        self.check_media_configs()
        other.check_media_configs()

        if self.media_configs is None and other.media_configs is None:
            return None

        mine = self.media_configs or {}
        theirs = other.media_configs or {}
        merged: dict[str, ArchiveConfig] = {}
        for kind in [*mine, *(k for k in theirs if k not in mine)]:
            if kind in mine and kind in theirs:
                merged[kind] = mine[kind].merge(theirs[kind], nested=True)
            else:
                merged[kind] = (mine.get(kind) or theirs[kind]).model_copy(deep=True)
        return merged

    def for_media_kind(self, media_kind: Optional[str]) -> ArchiveConfig:
        """Specialise this config for a media kind, if a media config exists for it."""
        media_config = (self.media_configs or {}).get(media_kind or "")
        if media_config is None:
            return self
        return self.merge(media_config, nested=True)

    def summary(self) -> dict[str, str]:
        """Specified values keyed by document name, for display."""
        return {
            key: str(value)
            for key, value in self.model_dump(by_alias=True, exclude_none=True, mode="json").items()
            if key != "MediaConfigs"
        }

    @classmethod
    def load(cls, path_or_name: str | Path) -> ArchiveConfig:
        """Load a config document from a file, or a named preset.

        Args:
            path_or_name: Path to a JSON document, or a preset name.

        Returns:
            The loaded config.

        Raises:
            ConfigError: If the document is malformed or the preset is unknown.
        """
        path = Path(path_or_name)
        if path.is_file():
            try:
                config = cls.model_validate_json(path.read_bytes())
            except (OSError, ValidationError) as e:
                raise ConfigError(f"Cannot load config file '{path}': {e}") from e
            config.check_media_configs()
            return config

        preset = PRESETS.get(str(path_or_name))
        if preset is None:
            raise ConfigError(f"Config '{path_or_name}' not found.")
        return preset.model_copy(deep=True)


def load_run_config(path_or_name: str | Path, destination: Path) -> ArchiveConfig:
    """Load the selected config and layer the destination local config on top.

    Args:
        path_or_name: Config document path or preset name.
        destination: Destination root, searched for ``archive-config.json``.

    Returns:
        The effective run config.
    """
    config = ArchiveConfig.load(path_or_name)
    dest_config_path = destination / DEST_CONFIG_FILE_NAME
    if dest_config_path.is_file():
        config = config.merge(ArchiveConfig.load(dest_config_path))
    return config


# ============ Presets ============

_RAW_PIC = ArchiveConfig(
    move_files=False,
    override_destination=True,
    delete_source_if_dest_exists=False,
    recursive=True,
    subfolder_template="RAW/{FileYear}/{FileMonth}/{FileYear}-{FileMonth}-{FileDay}",
    source_file_name_pattern=r"(?i)\.(arw|dng|cr2|orf)$",
    file_name_template="{FileName}",
)

_VIDEO = ArchiveConfig(
    move_files=False,
    override_destination=True,
    delete_source_if_dest_exists=False,
    recursive=True,
    subfolder_template="Video/{FileYear}/{FileMonth}",
    source_file_name_pattern=r"(?i)\.(mov|mp4)$",
    file_name_template="{FileName}",
)

PRESETS: dict[str, ArchiveConfig] = {
    "Default": ArchiveConfig(
        move_files=False,
        override_destination=False,
        delete_source_if_dest_exists=False,
        file_name_template="{FileName}",
        metadata_loaders="Default",
    ),
    "IG": ArchiveConfig(
        move_files=True,
        override_destination=True,
        delete_source_if_dest_exists=True,
        recursive=False,
        subfolder_template="{UserId}",
        file_name_template="{FileName}",
        destination_exists_check=ExistsCheck.SOCIAL,
        metadata_loaders="IG,Default",
    ),
    "Pic": ArchiveConfig(
        move_files=False,
        override_destination=True,
        delete_source_if_dest_exists=False,
        recursive=True,
        subfolder_template="JPG/{FileYear}/{FileMonth}/{FileYear}-{FileMonth}-{FileDay}",
        source_file_name_pattern=r"(?i)\.(jpe?g|png|gif|bmp)$",
        file_name_template="{FileName}",
        metadata_loaders="Default,Exif,ChkSum",
    ),
    "RawPic": _RAW_PIC.model_copy(update={"metadata_loaders": "Default,Exif,ChkSum"}),
    "Video": _VIDEO.model_copy(update={"metadata_loaders": "Default,Exif,ChkSum"}),
    "RPV": ArchiveConfig(
        move_files=False,
        override_destination=True,
        delete_source_if_dest_exists=False,
        recursive=True,
        source_file_name_pattern=r"(?i)\.(arw|dng|cr2|orf|mov|mp4)$",
        subfolder_template="NoMediaKind",
        file_name_template="{FileName}",
        metadata_loaders="Default,Exif,ChkSum",
        media_configs={
            IMAGE_RAW_MEDIA_KIND: _RAW_PIC,
            VIDEO_MEDIA_KIND: _VIDEO,
        },
    ),
}
