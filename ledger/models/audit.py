"""
Audit Models for Household Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Complete traceability of reconciliation decisions
2. Debugging information when totals disagree
3. Ability to reconstruct who changed what and when

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every named store operation has its own event type.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SERIES_CREATED = "series_created"
    RECURRING_GROUP_DELETED = "recurring_group_deleted"
    RECONCILE_TOGGLED = "reconcile_toggled"

    # Card statements
    STATEMENT_DAY_SET = "statement_day_set"
    NEXT_MONTH_FLAG_SET = "next_month_flag_set"
    ISSUED_TOGGLED = "issued_toggled"
    STATEMENT_AMOUNT_RECORDED = "statement_amount_recorded"

    # Budgets
    BUDGET_UPDATED = "budget_updated"
    INCOME_SOURCE_ADDED = "income_source_added"
    INCOME_SOURCE_DELETED = "income_source_deleted"

    # Salary history
    SALARY_ADJUSTMENT_ADDED = "salary_adjustment_added"
    SALARY_ADJUSTMENT_DELETED = "salary_adjustment_deleted"

    # Validation
    DRAFT_REJECTED = "draft_rejected"

    # Synchronisation
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_SAVED = "snapshot_saved"
    REMOTE_LOAD_DISCARDED = "remote_load_discarded"
    LEDGER_RESET = "ledger_reset"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'card', 'budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.reconcile_toggled(tx_id, True)
        event = AuditEventBuilder.issued_toggled("國泰", "2024-03", True, amount)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        amount: Decimal,
        card_bank: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {amount} on {card_bank}",
            details={
                "amount": str(amount),
                "card_bank": card_bank,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def series_created(
        group_id: str,
        kind: str,
        count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERIES_CREATED,
            entity_type="series",
            entity_id=group_id,
            description=f"Created {kind} series with {count} transactions",
            details={
                "kind": kind,
                "count": count,
            },
            is_user_action=True,
        )

    @staticmethod
    def recurring_group_deleted(
        group_id: str,
        from_date: str,
        removed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_GROUP_DELETED,
            entity_type="series",
            entity_id=group_id,
            description=f"Deleted {removed} recurring transactions from {from_date}",
            details={
                "from_date": from_date,
                "removed": removed,
            },
            is_user_action=True,
        )

    @staticmethod
    def reconcile_toggled(
        transaction_id: str,
        is_reconciled: bool,
    ) -> AuditEvent:
        state = "reconciled" if is_reconciled else "unreconciled"
        return AuditEvent(
            event_type=AuditEventType.RECONCILE_TOGGLED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction marked {state}",
            details={
                "is_reconciled": is_reconciled,
            },
            is_user_action=True,
        )

    @staticmethod
    def statement_day_set(bank: str, day: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_DAY_SET,
            entity_type="card",
            entity_id=bank,
            description=f"Statement day for {bank} set to {day}",
            details={"statement_day": day},
            is_user_action=True,
        )

    @staticmethod
    def next_month_flag_set(bank: str, flag: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NEXT_MONTH_FLAG_SET,
            entity_type="card",
            entity_id=bank,
            description=f"Next-month billing for {bank} set to {flag}",
            details={"is_next_month": flag},
            is_user_action=True,
        )

    @staticmethod
    def issued_toggled(
        bank: str,
        billing_month: str,
        issued: bool,
        snapshot_amount: Optional[Decimal],
    ) -> AuditEvent:
        state = "issued" if issued else "reopened"
        return AuditEvent(
            event_type=AuditEventType.ISSUED_TOGGLED,
            entity_type="card",
            entity_id=bank,
            description=f"Statement {billing_month} for {bank} {state}",
            details={
                "billing_month": billing_month,
                "issued": issued,
                "snapshot_amount": str(snapshot_amount) if snapshot_amount is not None else None,
            },
            is_user_action=True,
        )

    @staticmethod
    def statement_amount_recorded(
        bank: str,
        billing_month: str,
        amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_AMOUNT_RECORDED,
            entity_type="card",
            entity_id=bank,
            description=f"Statement {billing_month} for {bank} recorded as {amount}",
            details={
                "billing_month": billing_month,
                "amount": str(amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(month: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=month,
            description=f"Budget {month} updated: {', '.join(fields)}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def income_source_added(source_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_SOURCE_ADDED,
            entity_type="income_source",
            entity_id=source_id,
            description=f"Income source added: {name}",
            is_user_action=True,
        )

    @staticmethod
    def income_source_deleted(source_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_SOURCE_DELETED,
            entity_type="income_source",
            entity_id=source_id,
            description="Income source deleted",
            is_user_action=True,
        )

    @staticmethod
    def salary_adjustment_added(
        adjustment_id: str,
        date: str,
        total_salary: Decimal,
        adjustment_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALARY_ADJUSTMENT_ADDED,
            entity_type="salary_adjustment",
            entity_id=adjustment_id,
            description=f"Salary recorded for {date}: {total_salary}",
            details={
                "date": date,
                "total_salary": str(total_salary),
                "adjustment_amount": str(adjustment_amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def salary_adjustment_deleted(adjustment_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALARY_ADJUSTMENT_DELETED,
            entity_type="salary_adjustment",
            entity_id=adjustment_id,
            description="Salary record deleted",
            is_user_action=True,
        )

    @staticmethod
    def draft_rejected(source: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            description=f"Transaction draft from {source} rejected with {len(issues)} issues",
            details={
                "source": source,
                "issues": issues,
            },
        )

    @staticmethod
    def snapshot_loaded(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            description=f"Remote snapshot applied ({transaction_count} transactions)",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def snapshot_saved(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            entity_type="snapshot",
            description=f"Snapshot saved ({transaction_count} transactions)",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def remote_load_discarded(pending_reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_LOAD_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description="Remote snapshot discarded to keep pending local edits",
            details={"reason": pending_reason},
        )

    @staticmethod
    def ledger_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            description="Ledger reset to defaults",
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
