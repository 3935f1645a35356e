"""Tests for source enumeration and camera folder discovery."""
import pytest
from pathlib import Path

from mediarchive.services.scanner import (
    CAMERAS_SOURCE,
    SENTINEL_FILE_NAME,
    DirectoryScanner,
    expand_sources,
    find_camera_folders,
)

from .fixtures import write_file


class TestDirectoryScanner:
    """Tests for DirectoryScanner service."""

    @pytest.fixture
    def scanner(self):
        """Create a scanner instance."""
        return DirectoryScanner()

    @pytest.fixture
    def sample_tree(self, tmp_path: Path) -> Path:
        """Create a sample directory tree."""
        root = tmp_path / "photos"
        write_file(root / "b.jpg")
        write_file(root / "a.jpg")
        write_file(root / "zz" / "z1.jpg")
        write_file(root / "aa" / "a2.jpg")
        write_file(root / "aa" / "a1.jpg")
        write_file(root / "aa" / "deep" / "d.jpg")
        write_file(root / "skip" / SENTINEL_FILE_NAME, b"")
        write_file(root / "skip" / "hidden.jpg")
        return root

    def test_non_recursive(self, scanner, sample_tree):
        """Only root files, in name order."""
        names = [p.name for p in scanner.scan(sample_tree)]
        assert names == ["a.jpg", "b.jpg"]

    def test_recursive_order(self, scanner, sample_tree):
        """Root files first, then subdirectories in name order."""
        paths = [p.relative_to(sample_tree).as_posix() for p in scanner.scan(sample_tree, recursive=True)]
        assert paths == ["a.jpg", "b.jpg", "aa/a1.jpg", "aa/a2.jpg", "aa/deep/d.jpg", "zz/z1.jpg"]

    def test_sentinel_file_never_listed(self, scanner, tmp_path):
        """The sentinel at the source root is not a candidate, but the root is still scanned."""
        write_file(tmp_path / SENTINEL_FILE_NAME, b"")
        write_file(tmp_path / "a.jpg")

        assert [p.name for p in scanner.scan(tmp_path)] == ["a.jpg"]

    def test_missing_source(self, scanner, tmp_path):
        with pytest.raises(ValueError, match="Source folder does not exist"):
            list(scanner.scan(tmp_path / "missing"))

    def test_count_files(self, scanner, sample_tree):
        assert scanner.count_files(sample_tree, recursive=True) == 6


class TestCameraFolders:
    """Tests for removable media discovery."""

    def test_find_camera_folders(self, tmp_path: Path):
        (tmp_path / "card1" / "DCIM").mkdir(parents=True)
        (tmp_path / "card2" / "private" / "M4ROOT" / "CLIP").mkdir(parents=True)
        (tmp_path / "usb" / "Documents").mkdir(parents=True)

        found = find_camera_folders([f"{tmp_path}/*"])

        assert found == [
            tmp_path / "card1" / "DCIM",
            tmp_path / "card2" / "private" / "M4ROOT" / "CLIP",
        ]

    def test_expand_sources(self, tmp_path: Path, monkeypatch):
        camera = tmp_path / "card" / "DCIM"
        camera.mkdir(parents=True)
        monkeypatch.setattr(
            "mediarchive.services.scanner.find_camera_folders", lambda: [camera]
        )

        assert expand_sources(["/photos", CAMERAS_SOURCE]) == [Path("/photos"), camera]
