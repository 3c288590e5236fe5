"""
Audit Logger

Every store mutation and sync outcome becomes an AuditEvent. The logger
writes it to the structured log, keeps a bounded trail for the current
session and appends it to audit storage when one is configured.

Audit storage is best effort: a failed append is logged and reported
through the return value, never raised into the mutation that caused it.
"""

from collections import deque
from typing import Optional

import structlog

from ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from ledger.services.storage import AuditStorageInterface, StorageError


def configure_logging() -> None:
    """JSON lines through the stdlib logging tree, ISO timestamps, CJK kept readable."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


_LOG_METHOD = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Records audit events for the ledger.

    Args:
        storage: Optional append-only backend. Without one, events only go
                 to the structured log and the in-memory trail.
        history_size: How many recent events the trail keeps.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        history_size: int = 500,
    ):
        self._storage = storage
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when a configured storage backend rejected it.
        """
        self._history.append(event)

        emit = getattr(self._logger, _LOG_METHOD.get(event.severity, "info"))
        emit(event.event_type.value, **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return self._storage.append_event(event)
        except StorageError as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Most recent events of this session, newest first."""
        return list(reversed(self._history))[:limit]

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))

    def log_external_service_error(self, service: str, error_message: str) -> None:
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
        ))
