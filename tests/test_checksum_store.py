"""Tests for the SQLite checksum store."""
import sqlite3
from datetime import datetime

import pytest
from pathlib import Path

from mediarchive.persistence.checksum_store import CHECKSUM_DB_FILE_NAME, ChecksumStore


@pytest.fixture
def store(tmp_path: Path):
    """Live store in a temp destination."""
    store = ChecksumStore.for_destination(tmp_path)
    yield store
    store.close()


class TestChecksumStore:
    """Tests for ChecksumStore."""

    def test_creates_database(self, tmp_path: Path, store):
        assert (tmp_path / CHECKSUM_DB_FILE_NAME).is_file()
        assert store.count() == 0

    def test_insert_and_find(self, store):
        taken = datetime(2021, 3, 4, 5, 6, 7)
        store.insert("2021/a.jpg", "abc123", 100, taken)

        record = store.find_duplicate("abc123", 100)

        assert record is not None
        assert record.name == "2021/a.jpg"
        assert record.timestamp == taken
        assert record.added_on is not None

    def test_duplicate_needs_same_size(self, store):
        store.insert("a.jpg", "abc123", 100, datetime(2021, 1, 1))

        assert store.find_duplicate("abc123", 101) is None
        assert store.find_duplicate("other", 100) is None

    def test_insert_replaces_by_name(self, store):
        store.insert("a.jpg", "one", 1, datetime(2021, 1, 1))
        store.insert("a.jpg", "two", 2, datetime(2021, 1, 1))

        assert store.count() == 1
        assert store.get("a.jpg").checksum == "two"

    def test_remove(self, store):
        store.insert("a.jpg", "abc", 1, datetime(2021, 1, 1))
        store.insert("b.jpg", "def", 2, datetime(2021, 1, 1))

        store.remove("a.jpg")
        store.remove("missing.jpg")

        assert store.find_duplicate("abc", 1) is None
        assert store.count() == 1

    def test_uncommitted_until_close(self, tmp_path: Path):
        """Inserts are visible at once but only persisted on commit."""
        store = ChecksumStore.for_destination(tmp_path)
        store.insert("a.jpg", "abc", 1, datetime(2021, 1, 1))
        assert store.find_duplicate("abc", 1) is not None

        store.close()

        reopened = ChecksumStore.for_destination(tmp_path)
        assert reopened.get("a.jpg") is not None
        reopened.close()


class TestDryRunChecksumStore:
    """Dry-run stores work on an in-memory copy."""

    def test_reads_existing_records(self, tmp_path: Path):
        live = ChecksumStore.for_destination(tmp_path)
        live.insert("a.jpg", "abc", 1, datetime(2021, 1, 1))
        live.close()

        dry = ChecksumStore.for_destination(tmp_path, dry_run=True)
        assert dry.find_duplicate("abc", 1).name == "a.jpg"

        dry.insert("b.jpg", "def", 2, datetime(2021, 1, 1))
        dry.close()

        with sqlite3.connect(tmp_path / CHECKSUM_DB_FILE_NAME) as conn:
            names = [row[0] for row in conn.execute("SELECT name FROM pictures")]
        assert names == ["a.jpg"]

    def test_no_file_created(self, tmp_path: Path):
        dest = tmp_path / "missing"
        store = ChecksumStore.for_destination(dest, dry_run=True)
        store.insert("a.jpg", "abc", 1, datetime(2021, 1, 1))
        store.close()

        assert not dest.exists()
