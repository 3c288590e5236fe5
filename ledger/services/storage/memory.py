"""
In-Memory Storage

Used for tests and for running the ledger without a remote backend.
Snapshots are kept as serialized JSON so that a load always returns an
independent copy, exactly like a real backend would.
"""

from typing import Optional

from ledger.models.audit import AuditEvent
from ledger.models.snapshot import LedgerSnapshot
from ledger.services.storage.interface import (
    AuditStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Snapshot storage backed by a string in memory."""

    def __init__(self, initial: Optional[LedgerSnapshot] = None):
        self._document: Optional[str] = initial.to_json() if initial else None
        self.save_count = 0
        self.load_count = 0
        # Set to an exception to simulate backend failures
        self.fail_with: Optional[Exception] = None

    async def load(self) -> Optional[LedgerSnapshot]:
        self.load_count += 1
        if self.fail_with is not None:
            raise StorageError(f"Failed to load snapshot: {self.fail_with}")
        if self._document is None:
            return None
        return LedgerSnapshot.from_json(self._document)

    async def save(self, snapshot: LedgerSnapshot) -> bool:
        if self.fail_with is not None:
            raise StorageError(f"Failed to save snapshot: {self.fail_with}")
        self._document = snapshot.to_json()
        self.save_count += 1
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit trail kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
