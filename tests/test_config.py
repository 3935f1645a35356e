"""Unit tests for config module."""
import json

import pytest
from pathlib import Path

from mediarchive.core.config import (
    DEST_CONFIG_FILE_NAME,
    PRESETS,
    ArchiveConfig,
    ConfigError,
    ExistsCheck,
    load_run_config,
)


def dump(config: ArchiveConfig) -> dict:
    return config.model_dump(by_alias=True, exclude_none=True)


class TestArchiveConfigMerge:
    """Tests for ArchiveConfig.merge."""

    def test_merge_is_idempotent(self):
        """merge(A, A) == A."""
        config = PRESETS["RPV"]
        assert dump(config.merge(config)) == dump(config)

    def test_merge_combines_fields(self):
        """Fields specified on either side are kept."""
        merged = ArchiveConfig(move_files=True).merge(ArchiveConfig(override_destination=True))
        assert dump(merged) == {"MoveFiles": True, "OverrideDestination": True}

    def test_other_wins(self):
        """The merged-in config wins over self."""
        base = ArchiveConfig(move_files=False, subfolder_template="a")
        merged = base.merge(ArchiveConfig(move_files=True))

        assert merged.move_files is True
        assert merged.subfolder_template == "a"

    def test_false_is_a_value(self):
        """Only None counts as absent."""
        merged = ArchiveConfig(move_files=True).merge(ArchiveConfig(move_files=False))
        assert merged.move_files is False

    def test_fallback(self):
        """The fallback fills fields neither side specifies."""
        merged = ArchiveConfig(move_files=True).merge(
            ArchiveConfig(),
            fallback=ArchiveConfig(move_files=False, recursive=True),
        )
        assert merged.move_files is True
        assert merged.recursive is True

    def test_merge_does_not_mutate(self):
        """Merging builds a new config."""
        base = ArchiveConfig(move_files=False)
        base.merge(ArchiveConfig(move_files=True))
        assert base.move_files is False

    def test_media_configs_merged_per_kind(self):
        """Media configs are merged entry by entry."""
        base = ArchiveConfig(media_configs={
            "video": ArchiveConfig(subfolder_template="Video", move_files=False),
            "image": ArchiveConfig(subfolder_template="Images"),
        })
        other = ArchiveConfig(media_configs={
            "video": ArchiveConfig(move_files=True),
            "image-raw": ArchiveConfig(subfolder_template="Raw"),
        })

        merged = base.merge(other)

        assert set(merged.media_configs) == {"video", "image", "image-raw"}
        assert merged.media_configs["video"].subfolder_template == "Video"
        assert merged.media_configs["video"].move_files is True
        assert merged.media_configs["image-raw"].subfolder_template == "Raw"

    def test_nested_loaders_rejected(self):
        """Media configs cannot declare loaders."""
        invalid = ArchiveConfig(media_configs={"video": ArchiveConfig(metadata_loaders="Exif")})

        with pytest.raises(ConfigError):
            ArchiveConfig().merge(invalid)
        with pytest.raises(ConfigError):
            invalid.merge(ArchiveConfig())

    def test_nested_media_configs_rejected(self):
        """Media configs cannot nest further."""
        invalid = ArchiveConfig(media_configs={
            "video": ArchiveConfig(media_configs={"image": ArchiveConfig()}),
        })

        with pytest.raises(ValueError):
            ArchiveConfig().merge(invalid)


class TestForMediaKind:
    """Tests for media kind specialisation."""

    def test_specialised(self):
        """A matching media config overrides run level values."""
        config = PRESETS["RPV"]
        video = config.for_media_kind("video")

        assert video.subfolder_template == "Video/{FileYear}/{FileMonth}"
        assert video.override_destination is True
        assert video.media_configs is None

    def test_unknown_kind(self):
        """Without a matching media config the run config is used."""
        config = PRESETS["RPV"]
        assert config.for_media_kind("image") is config
        assert config.for_media_kind(None) is config

    def test_run_values_inherited(self):
        """Values the media config leaves unset come from the run config."""
        config = ArchiveConfig(
            dry_run=True,
            ignore_duplicates=True,
            media_configs={"video": ArchiveConfig(subfolder_template="V")},
        )
        video = config.for_media_kind("video")

        assert video.dry_run is True
        assert video.ignore_duplicates is True
        assert video.subfolder_template == "V"


class TestArchiveConfigLoad:
    """Tests for loading configs."""

    def test_load_preset(self):
        """Preset names load a copy of the preset."""
        config = ArchiveConfig.load("IG")

        assert config.destination_exists_check == ExistsCheck.SOCIAL
        assert config.loader_names == ["IG", "Default"]

        config.move_files = False
        assert PRESETS["IG"].move_files is True

    def test_unknown_preset(self):
        """Unknown names fail with 'not found'."""
        with pytest.raises(ConfigError, match="not found"):
            ArchiveConfig.load("NoSuchPreset")

    def test_load_file(self, tmp_path: Path):
        """Documents use the PascalCase keys."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "MoveFiles": True,
            "SubfolderTemplate": "{FileYear}",
            "SourceFileNameRegExPattern": r"\.jpg$",
            "DestinationExistsCheck": "social",
            "MinDriveSize": 1000,
            "MediaConfigs": {"video": {"SubfolderTemplate": "Video"}},
        }))

        config = ArchiveConfig.load(path)

        assert config.move_files is True
        assert config.subfolder_template == "{FileYear}"
        assert config.source_file_name_pattern == r"\.jpg$"
        assert config.destination_exists_check == ExistsCheck.SOCIAL
        assert config.min_drive_size == 1000
        assert config.media_configs["video"].subfolder_template == "Video"

    def test_load_malformed_file(self, tmp_path: Path):
        """Malformed documents fail at load time."""
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigError, match="Cannot load config file"):
            ArchiveConfig.load(path)

    def test_load_unknown_key(self, tmp_path: Path):
        """Unknown keys are rejected."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"MoveFile": True}))

        with pytest.raises(ConfigError):
            ArchiveConfig.load(path)

    def test_load_bad_source_pattern(self, tmp_path: Path):
        """An uncompilable source filter fails at load time."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"SourceFileNameRegExPattern": "(unclosed"}))

        with pytest.raises(ConfigError, match="invalid regular expression"):
            ArchiveConfig.load(path)

    def test_bad_source_pattern_rejected(self):
        with pytest.raises(ValueError):
            ArchiveConfig(source_file_name_pattern="[a-")

    def test_load_nested_loaders(self, tmp_path: Path):
        """Loaded documents are checked for invalid media configs."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"MediaConfigs": {"video": {"MetadataLoaders": "Exif"}}}))

        with pytest.raises(ConfigError):
            ArchiveConfig.load(path)

    def test_destination_override(self, tmp_path: Path):
        """A destination local config is merged on top of the selected one."""
        (tmp_path / DEST_CONFIG_FILE_NAME).write_text(json.dumps({"MoveFiles": True}))

        config = load_run_config("Default", tmp_path)

        assert config.move_files is True
        assert config.metadata_loaders == "Default"
        assert config.file_name_template == "{FileName}"

    def test_no_destination_override(self, tmp_path: Path):
        """Without a local config the selected one is used as is."""
        config = load_run_config("Default", tmp_path / "missing")
        assert dump(config) == dump(PRESETS["Default"])


class TestArchiveConfigHelpers:
    """Tests for small helpers."""

    def test_loader_names(self):
        """Loader names are split and trimmed."""
        assert ArchiveConfig(metadata_loaders=" Default, Exif ,,ChkSum").loader_names == [
            "Default", "Exif", "ChkSum",
        ]
        assert ArchiveConfig().loader_names == []

    def test_matches_source(self):
        """The source filter searches the whole path."""
        config = ArchiveConfig(source_file_name_pattern=r"(?i)\.jpe?g$")

        assert config.matches_source(Path("/a/B.JPG"))
        assert not config.matches_source(Path("/a/b.png"))
        assert ArchiveConfig().matches_source(Path("/a/b.png"))

    def test_min_drive_size_not_negative(self):
        """Negative sizes are invalid."""
        with pytest.raises(ValueError):
            ArchiveConfig(min_drive_size=-1)

    def test_summary(self):
        """Summary lists specified values by document key."""
        summary = PRESETS["RPV"].summary()

        assert summary["MetadataLoaders"] == "Default,Exif,ChkSum"
        assert "MediaConfigs" not in summary
        assert "DryRun" not in summary
