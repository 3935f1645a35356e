"""Test helpers: fake collaborators and file builders."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from PIL import Image

SOCIAL_NAME = "kendythefairy_1736177739_3539637887764580061_53168312232.jpg"
SOCIAL_USER_ID = 53168312232
SOCIAL_CONTENT_ID = 3539637887764580061


class FakeTagReader:
    """Tag reader returning fixed tags."""

    def __init__(self, tags: Optional[dict[str, Any]] = None):
        self.tags = tags or {}
        self.closed = False
        self.paths: list[Path] = []

    def read_tags(self, path: Path) -> dict[str, Any]:
        self.paths.append(path)
        return dict(self.tags)

    def close(self) -> None:
        self.closed = True


class FakeFreeSpace:
    """Free space reader reporting a fixed amount plus whatever was freed since."""

    def __init__(self, free: int, root: Path):
        self.free = free
        self.root = root
        self.calls = 0
        self._initial_usage = self._usage()

    def _usage(self) -> int:
        return sum(p.stat().st_size for p in self.root.rglob("*") if p.is_file())

    def __call__(self, path: Path) -> int:
        self.calls += 1
        return self.free + max(0, self._initial_usage - self._usage())


def write_file(path: Path, data: bytes = b"data") -> Path:
    """Write a file, creating parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def make_exif_jpeg(
    path: Path,
    make: str = "Canon",
    model: str = "EOS R5",
    date: str = "2021:03:04 05:06:07",
    color: str = "red",
) -> Path:
    """Write a small JPEG carrying IFD0 EXIF tags."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (16, 16), color=color)
    exif = Image.Exif()
    exif[0x010F] = make
    exif[0x0110] = model
    exif[0x0132] = date
    img.save(path, format="JPEG", exif=exif)
    return path
