"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
All data flowing through the system must conform to these schemas.
"""

from ledger.models.transaction import (
    CARD_SENTINEL,
    MONTH_KEY_PATTERN,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    new_transaction_id,
)
from ledger.models.card import CardSetting, CycleRange
from ledger.models.budget import (
    BudgetProjection,
    CreditCardEntry,
    IncomeEntry,
    IncomeSource,
    MonthlyBudget,
)
from ledger.models.reconciliation import (
    Bucket,
    CardSummary,
    InstallmentGroup,
    ReconciliationSummary,
)
from ledger.models.salary import SalaryAdjustment
from ledger.models.report import CardStatus, CategoryTotal, SpendingOverview
from ledger.models.snapshot import LedgerSnapshot
from ledger.models.validation import ValidationIssue, ValidationResult
from ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "CARD_SENTINEL",
    "MONTH_KEY_PATTERN",
    "PaymentMethod",
    "Transaction",
    "TransactionDraft",
    "new_transaction_id",
    # Card models
    "CardSetting",
    "CycleRange",
    # Budget models
    "BudgetProjection",
    "CreditCardEntry",
    "IncomeEntry",
    "IncomeSource",
    "MonthlyBudget",
    # Salary history
    "SalaryAdjustment",
    # Derived models
    "Bucket",
    "CardSummary",
    "InstallmentGroup",
    "ReconciliationSummary",
    # Report models
    "CardStatus",
    "CategoryTotal",
    "SpendingOverview",
    # Persistence
    "LedgerSnapshot",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
