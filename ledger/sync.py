"""
Snapshot Sync Coordinator

The only asynchronous part of the ledger. It keeps the local stores and
the remote snapshot document in step:

1. Local change  -> notify_changed() -> debounced save
2. Startup       -> load() -> apply the remote snapshot locally

CONTRACT:
- Rapid local edits are batched into ONE save after the debounce delay
- Saves never overlap: an asyncio.Lock serializes them, and a save in
  flight always completes before the next one starts
- Echo suppression: applying a remote snapshot triggers a change
  notification; that notification is consumed and schedules no save
- A remote load that completes while local edits are pending is
  discarded, and the pending save wins
- Storage failures set status "error" and are logged; local state is
  never touched (fail-open)
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

import structlog

from ledger.audit import AuditLogger
from ledger.models.audit import AuditEventBuilder
from ledger.models.snapshot import LedgerSnapshot
from ledger.services.storage import SnapshotStorageInterface, StorageError


logger = structlog.get_logger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SAVED = "saved"
    ERROR = "error"


class SyncCoordinator:
    """
    Debounced, serialized persistence of the ledger snapshot.

    Args:
        storage: Remote snapshot backend
        snapshot_provider: Returns the current local snapshot
        snapshot_applier: Replaces local state with a loaded snapshot.
                          It must produce a single change notification.
        debounce_seconds: Quiet period before a save is issued
        audit_logger: Receives save/load/discard events
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        snapshot_provider: Callable[[], LedgerSnapshot],
        snapshot_applier: Callable[[LedgerSnapshot], None],
        debounce_seconds: float = 2.0,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._provider = snapshot_provider
        self._applier = snapshot_applier
        self._debounce = debounce_seconds
        self._audit = audit_logger

        self._lock = asyncio.Lock()
        self._timer: Optional[asyncio.Task] = None
        self._timer_sleeping = False
        self._tasks: set[asyncio.Task] = set()

        self._dirty = False
        self._remote_update = False

        self.status = SyncStatus.IDLE
        self.last_synced_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def has_pending_changes(self) -> bool:
        return self._dirty

    # =========================================================================
    # LOCAL CHANGES
    # =========================================================================

    def notify_changed(self) -> None:
        """
        Record a local change and (re)start the debounce timer.

        Without a running event loop the change stays pending until
        flush() is awaited.
        """
        if self._remote_update:
            self._remote_update = False
            return

        self._dirty = True
        self.status = SyncStatus.SYNCING

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("sync_no_event_loop", pending=True)
            return

        # Only a timer that is still waiting may be restarted
        if self._timer is not None and self._timer_sleeping:
            self._timer.cancel()

        self._timer = loop.create_task(self._debounced_save())
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._tasks.discard)

    async def _debounced_save(self) -> None:
        self._timer_sleeping = True
        try:
            await asyncio.sleep(self._debounce)
        finally:
            self._timer_sleeping = False
        await self.flush()

    async def flush(self) -> bool:
        """
        Save now if anything is pending.

        Returns True on success or when there was nothing to save.
        """
        async with self._lock:
            if not self._dirty:
                return True

            self._dirty = False
            snapshot = self._provider()
            self.status = SyncStatus.SYNCING

            try:
                saved = await self._storage.save(snapshot)
            except StorageError as e:
                self._dirty = True
                self._fail("save", str(e))
                return False

            if not saved:
                self._dirty = True
                self._fail("save", "storage rejected the snapshot")
                return False

            self.last_synced_at = datetime.now(timezone.utc)
            self.last_error = None
            self.status = SyncStatus.SYNCING if self._dirty else SyncStatus.SAVED
            self._log(AuditEventBuilder.snapshot_saved(len(snapshot.transactions)))
            logger.info("snapshot_saved", transactions=len(snapshot.transactions))
            return True

    # =========================================================================
    # REMOTE LOAD
    # =========================================================================

    async def load(self) -> Optional[LedgerSnapshot]:
        """
        Fetch the remote snapshot and apply it locally.

        Returns the applied snapshot, or None when there was nothing to
        apply, the load failed, or local edits made it stale.
        """
        self.status = SyncStatus.SYNCING

        async with self._lock:
            try:
                snapshot = await self._storage.load()
            except StorageError as e:
                self._fail("load", str(e))
                return None

        if self._dirty:
            reason = "local edits are waiting to be saved"
            self._log(AuditEventBuilder.remote_load_discarded(reason))
            logger.warning("remote_load_discarded", reason=reason)
            self.status = SyncStatus.SYNCING
            return None

        if snapshot is None:
            self.status = SyncStatus.IDLE
            return None

        self._remote_update = True
        try:
            self._applier(snapshot)
        finally:
            self._remote_update = False

        self.last_synced_at = datetime.now(timezone.utc)
        self.last_error = None
        self.status = SyncStatus.SAVED
        self._log(AuditEventBuilder.snapshot_loaded(len(snapshot.transactions)))
        logger.info("snapshot_loaded", transactions=len(snapshot.transactions))
        return snapshot

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def wait_idle(self) -> None:
        """Wait for every scheduled save to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Skip the debounce delay and save what is pending."""
        if self._timer is not None and self._timer_sleeping:
            self._timer.cancel()
        await self.wait_idle()
        await self.flush()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _fail(self, operation: str, message: str) -> None:
        self.status = SyncStatus.ERROR
        self.last_error = message
        logger.error("snapshot_sync_failed", operation=operation, error=message)
        if self._audit:
            self._audit.log_external_service_error(
                service=f"snapshot_{operation}",
                error_message=message,
            )

    def _log(self, event) -> None:
        if self._audit:
            self._audit.log(event)
