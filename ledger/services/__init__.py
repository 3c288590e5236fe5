"""Services package."""

from ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    InMemoryAuditStorage,
    InMemorySnapshotStorage,
    NotFoundError,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptSnapshotError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStorage",
    "InMemoryAuditStorage",
    "InMemorySnapshotStorage",
    "NotFoundError",
    "SnapshotStorageInterface",
    "StorageError",
]
