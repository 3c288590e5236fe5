"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the remote backend; in-memory storage backs tests and
offline use.
"""

from ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    NotFoundError,
    SnapshotStorageInterface,
    StorageError,
)
from ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
)
from ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    join_chunks,
    split_chunks,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "ConnectionError",
    "CorruptSnapshotError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
    "join_chunks",
    "split_chunks",
]
