"""SQLite-based checksum dedup store.

One store per destination root. Inserts are visible to later lookups
immediately; they are committed once, at the end of the run.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CHECKSUM_DB_FILE_NAME = "checksums.db"


@dataclass
class ChecksumRecord:
    """A previously archived file."""
    name: str  # destination relative, posix separators
    checksum: str
    size: int
    timestamp: Optional[datetime] = None
    added_on: Optional[datetime] = None


class ChecksumStore:
    """SQLite implementation of the checksum store.

    In dry-run mode the on-disk database (if any) is copied into memory and
    never written back.
    """

    def __init__(self, db_path: Path, dry_run: bool = False):
        """Open (or create) the store.

        Args:
            db_path: Path to the SQLite database file.
            dry_run: Work on an in-memory copy.
        """
        self._db_path = db_path
        self._dry_run = dry_run
        self._conn: Optional[sqlite3.Connection] = None
        self._init_database()

    @classmethod
    def for_destination(cls, destination: Path, dry_run: bool = False) -> ChecksumStore:
        return cls(destination / CHECKSUM_DB_FILE_NAME, dry_run=dry_run)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _init_database(self) -> None:
        """Connect and create tables if they don't exist."""
        if self._dry_run:
            self._conn = sqlite3.connect(":memory:")
            if self._db_path.is_file():
                source = sqlite3.connect(self._db_path.resolve().as_uri() + "?mode=ro", uri=True)
                try:
                    source.backup(self._conn)
                finally:
                    source.close()
        else:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row

        cursor = self._conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS pictures (
                name TEXT PRIMARY KEY NOT NULL,
                checksum TEXT NOT NULL,
                size INTEGER NOT NULL,
                timestamp TEXT,
                added_on TEXT
            ) WITHOUT ROWID
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_pictures_checksum ON pictures(checksum, size)"
        )
        self._conn.commit()
        logger.debug("Opened checksum store %s (dry_run=%s)", self._db_path, self._dry_run)

    def find_duplicate(self, checksum: str, size: int) -> Optional[ChecksumRecord]:
        """Get the record of an archived file with the same content, if any."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT * FROM pictures WHERE checksum = ? AND size = ? LIMIT 1",
            (checksum, size),
        )
        row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def get(self, name: str) -> Optional[ChecksumRecord]:
        """Get record by destination relative name."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute("SELECT * FROM pictures WHERE name = ?", (name,))
        row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def insert(self, name: str, checksum: str, size: int, timestamp: datetime) -> None:
        """Insert or replace the record for ``name`` (uncommitted)."""
        assert self._conn is not None
        self._conn.execute(
            """
            INSERT OR REPLACE INTO pictures (name, checksum, size, timestamp, added_on)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, checksum, size, timestamp.isoformat(), datetime.now().isoformat()),
        )

    def remove(self, name: str) -> None:
        """Drop the record for ``name`` (uncommitted)."""
        assert self._conn is not None
        self._conn.execute("DELETE FROM pictures WHERE name = ?", (name,))

    def count(self) -> int:
        assert self._conn is not None
        return self._conn.execute("SELECT COUNT(*) FROM pictures").fetchone()[0]

    def commit(self) -> None:
        """Flush pending inserts. No-op in dry-run mode."""
        if self._conn and not self._dry_run:
            self._conn.commit()

    def close(self) -> None:
        """Commit and close database connection."""
        if self._conn:
            self.commit()
            self._conn.close()
            self._conn = None

    def _row_to_record(self, row: sqlite3.Row) -> ChecksumRecord:
        return ChecksumRecord(
            name=row["name"],
            checksum=row["checksum"],
            size=row["size"],
            timestamp=datetime.fromisoformat(row["timestamp"]) if row["timestamp"] else None,
            added_on=datetime.fromisoformat(row["added_on"]) if row["added_on"] else None,
        )
