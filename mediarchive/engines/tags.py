"""Tag readers: ExifTool daemon and Pillow.

Both return tags keyed ``Group:TagName`` with ExifTool family 1 group
names, so loaders do not care which reader produced them.
"""
from __future__ import annotations

import json
import logging
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Any, Optional

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

# Pillow tag names that ExifTool reports differently
_PILLOW_TO_EXIFTOOL = {
    "DateTime": "ModifyDate",
    "DateTimeDigitized": "CreateDate",
}


def _clean_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip("\x00 ")
    if isinstance(value, str):
        return value.strip("\x00 ")
    return value


class ExifToolTagReader:
    """Persistent ExifTool process that handles requests via stdin/stdout.

    Uses exiftool's -stay_open mode so one process serves the whole run.
    Requests are serialised with a lock.
    """

    def __init__(self, executable: str = "exiftool"):
        self._executable = executable
        self._process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()
        self._start()

    def _start(self) -> None:
        try:
            self._process = subprocess.Popen(
                [self._executable, "-stay_open", "True", "-@", "-"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,  # Line buffered
            )
        except OSError as e:
            logger.warning("Cannot start %s: %s", self._executable, e)
            self._process = None

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def read_tags(self, path: Path) -> dict[str, Any]:
        """Read all tags of a file as ``Group:TagName`` -> value."""
        if not self.is_alive:
            return {}

        with self._lock:
            try:
                cmd = f"-json\n-G1\n-d\n%Y:%m:%d %H:%M:%S\n{path}\n-execute\n"
                self._process.stdin.write(cmd)
                self._process.stdin.flush()

                # Read response until {ready}
                output_lines = []
                while True:
                    line = self._process.stdout.readline()
                    if not line or line.startswith("{ready"):
                        break
                    output_lines.append(line)
            except (OSError, ValueError) as e:
                logger.warning("ExifTool failed on %s: %s", path, e)
                return {}

        output = "".join(output_lines).strip()
        if not output:
            return {}
        try:
            records = json.loads(output)
        except json.JSONDecodeError:
            logger.debug("Unparseable ExifTool output for %s", path)
            return {}
        if not records or not isinstance(records[0], dict):
            return {}
        return {key: _clean_value(value) for key, value in records[0].items()}

    def close(self) -> None:
        """Shut the daemon down."""
        if self._process is None:
            return
        try:
            if self._process.poll() is None:
                self._process.stdin.write("-stay_open\nFalse\n")
                self._process.stdin.flush()
                self._process.wait(timeout=2)
        except (OSError, ValueError, subprocess.TimeoutExpired):
            pass  # Process already gone or stuck, killed below
        finally:
            if self._process.poll() is None:
                self._process.kill()
                self._process.wait(timeout=1)
            self._process = None

    def __enter__(self) -> ExifToolTagReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class PillowTagReader:
    """Reads EXIF tags from still images with Pillow.

    Videos and raw formats Pillow cannot open yield no tags.
    """

    def read_tags(self, path: Path) -> dict[str, Any]:
        try:
            with Image.open(path) as img:
                tags: dict[str, Any] = {"File:FileType": img.format}
                mime_type = img.get_format_mimetype()
                if mime_type:
                    tags["File:MIMEType"] = mime_type

                exif = img.getexif()
                self._add_tags(tags, "IFD0", exif.items())
                self._add_tags(tags, "ExifIFD", exif.get_ifd(ExifTags.IFD.Exif).items())
                return tags
        except Exception as e:
            # Unreadable, unsupported or truncated files simply have no tags
            logger.debug("No tags for %s: %s", path, e)
            return {}

    @staticmethod
    def _add_tags(tags: dict[str, Any], group: str, items) -> None:
        for tag_id, value in items:
            name = ExifTags.TAGS.get(tag_id)
            if name is None or isinstance(value, dict):
                continue
            name = _PILLOW_TO_EXIFTOOL.get(name, name)
            tags[f"{group}:{name}"] = _clean_value(value)

    def close(self) -> None:
        pass


def create_tag_reader() -> ExifToolTagReader | PillowTagReader:
    """ExifTool when it is installed, Pillow otherwise."""
    if shutil.which("exiftool"):
        return ExifToolTagReader()
    return PillowTagReader()
