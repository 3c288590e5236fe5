"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the reconciliation core free of I/O

The ledger is persisted as ONE opaque snapshot document. The core never
cares how it is chunked or transported.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ledger.models.audit import AuditEvent
from ledger.models.snapshot import LedgerSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Any storage implementation (Google Sheets, files, a database...)
    must implement these methods. Both are boundary I/O and therefore async.
    """

    @abstractmethod
    async def load(self) -> Optional[LedgerSnapshot]:
        """
        Load the most recently saved snapshot.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save(self, snapshot: LedgerSnapshot) -> bool:
        """
        Replace the stored snapshot.

        Args:
            snapshot: The complete ledger document

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    Appends happen inline with store mutations, so this interface is
    synchronous.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, oldest first.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """The configured spreadsheet or sheet does not exist."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class CorruptSnapshotError(StorageError):
    """Stored snapshot could not be reassembled or parsed."""
    pass
