"""Persistence layer."""
from .checksum_store import CHECKSUM_DB_FILE_NAME, ChecksumRecord, ChecksumStore

__all__ = ["CHECKSUM_DB_FILE_NAME", "ChecksumRecord", "ChecksumStore"]
