"""
Reconciliation Result Models

These are derived, never persisted. They are recomputed from the current
transactions and card settings whenever either changes.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ledger.models.card import CycleRange
from ledger.models.transaction import Transaction


class Bucket(str, Enum):
    """
    Where a transaction stands relative to one card's billing cycle.

    Every transaction falls into exactly one bucket.
    """
    CURRENT = "current"          # Unreconciled, on or before the cycle close
    FUTURE = "future"            # Unreconciled, after the cycle close
    RECONCILED = "reconciled"    # Already matched against a statement
    EXCLUDED = "excluded"        # Different card, or not a card charge


class ReconciliationSummary(BaseModel):
    """
    Reconciliation view for one card and billing month.

    discrepancy compares the ENTERED statement total against the reconciled
    total, not against the candidate total.
    """

    bank: str
    billing_month: str
    cycle: Optional[CycleRange] = None

    candidate_transactions: list[Transaction] = Field(default_factory=list)
    candidate_total: Decimal = Decimal("0")

    reconciled_total_in_cycle: Decimal = Decimal("0")
    statement_amount_recorded: bool = Field(
        default=False,
        description="reconciled_total_in_cycle came from a recorded statement amount"
    )

    entered_statement_total: Decimal = Decimal("0")
    discrepancy: Decimal = Decimal("0")
    is_balanced: bool = False
    is_issued: bool = False

    @property
    def candidate_count(self) -> int:
        return len(self.candidate_transactions)


class CardSummary(BaseModel):
    """All-time billed / unbilled totals for one card."""

    bank: str
    unbilled: Decimal
    billed: Decimal
    issued: bool = False
    transaction_count: int = 0


class InstallmentGroup(BaseModel):
    """A multi-period purchase reconstructed from its sibling transactions."""

    group_key: str
    base_name: str
    card_bank: str
    total_periods: int = Field(ge=1)
    paid_periods: int = Field(ge=0)
    remaining_periods: int
    amount_per_period: Decimal
    progress: float
    start_date: date
    end_month: str
    transaction_ids: list[str] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.paid_periods >= self.total_periods
