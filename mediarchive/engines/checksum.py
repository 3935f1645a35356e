"""Content checksum functions.

Full: xxh64 over the whole file.
Quick: xxh64 over the first and last 64KB plus the size; cheap for large videos.
"""
from __future__ import annotations

from pathlib import Path

import xxhash

QUICK_CHUNK_SIZE = 64 * 1024


def file_checksum(path: Path, chunk_size: int = 1024 * 1024) -> tuple[str, int]:
    """Compute the xxh64 checksum of a whole file.

    Args:
        path: File to hash.
        chunk_size: Read size.

    Returns:
        (hex digest, size in bytes)
    """
    hasher = xxhash.xxh64()
    size = 0
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
            size += len(chunk)
    return hasher.hexdigest(), size


def quick_checksum(path: Path, chunk_size: int = QUICK_CHUNK_SIZE) -> tuple[str, int]:
    """Compute a sampled xxh64 checksum (head + tail + size).

    Returns:
        (hex digest, size in bytes)
    """
    hasher = xxhash.xxh64()
    size = path.stat().st_size

    with path.open("rb") as f:
        hasher.update(f.read(chunk_size))
        if size > chunk_size * 2:
            f.seek(-chunk_size, 2)
            hasher.update(f.read(chunk_size))
        # Include file size to differentiate similar-start files
        hasher.update(str(size).encode())

    return hasher.hexdigest(), size
