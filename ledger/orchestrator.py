"""
Main Orchestrator for the Household Ledger

This module ties together all the components behind one facade, Ledger,
and defines the flows the UI drives:
1. Entry   (draft -> validate -> transaction store)
2. Reconcile (card + billing month -> cycle -> buckets -> summary)
3. Budget  (month plan + card amounts -> projection)
4. Sync    (store change -> listeners -> debounced snapshot save)

DESIGN DECISION: The facade enforces the boundaries:
- Raw input is validated before it reaches a store
- Stores are the only writers; derived numbers are recomputed on demand
- Every mutation is audited and announced to change listeners exactly once

The reconciliation view, the dashboard and the budget projection all go
through the same cycle calculator, so they can never disagree about which
dates belong to a bill.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterator, Optional

import structlog
from pydantic import ValidationError

from ledger.audit import AuditLogger
from ledger.billing import (
    aggregate,
    bucket_transactions,
    card_summary,
    cycle_for_bank,
)
from ledger.budget import project_month, resolve_card_amounts
from ledger.config import LedgerSettings, get_settings
from ledger.installments import group_installments, ongoing_installments
from ledger.models.audit import AuditEventBuilder
from ledger.models.budget import BudgetProjection
from ledger.models.reconciliation import (
    Bucket,
    CardSummary,
    InstallmentGroup,
    ReconciliationSummary,
)
from ledger.models.report import CardStatus, CategoryTotal, SpendingOverview
from ledger.models.salary import SalaryAdjustment
from ledger.models.snapshot import LedgerSnapshot
from ledger.models.transaction import CARD_SENTINEL, Transaction, TransactionDraft
from ledger.models.validation import ValidationResult
from ledger.reports import (
    available_years,
    card_statuses,
    category_breakdown,
    spending_overview,
    top_transactions,
)
from ledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStorage,
    StorageError,
)
from ledger.stores import BudgetStore, SalaryStore, StatementStore, TransactionStore
from ledger.sync import SyncCoordinator
from ledger.validation import TransactionValidator


logger = structlog.get_logger(__name__)


class Ledger:
    """
    Facade over the stores and the pure reconciliation functions.

    Stores are exposed as attributes (transactions, statements, budgets,
    salaries)
    for direct named mutations; the methods here cover the flows that
    span more than one component.
    """

    def __init__(
        self,
        snapshot: Optional[LedgerSnapshot] = None,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionValidator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or TransactionValidator(self._settings)

        self._listeners: list[Callable[[], None]] = []
        self._batch_depth = 0
        self._batch_changed = False

        store_kwargs = {"audit_logger": self._audit, "on_change": self._changed}
        self.transactions = TransactionStore(clock=clock, **store_kwargs)
        self.statements = StatementStore(**store_kwargs)
        self.budgets = BudgetStore(default_loan=self._settings.default_loan, **store_kwargs)
        self.salaries = SalaryStore(**store_kwargs)

        self.categories: list[str] = self._settings.categories_list
        self.card_banks: list[str] = self._settings.card_banks_list
        self.monthly_budget: Decimal = self._settings.default_monthly_budget

        if snapshot is not None:
            self.apply_snapshot(snapshot)

    # =========================================================================
    # CHANGE LISTENERS
    # =========================================================================

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.remove(listener)

    def _changed(self) -> None:
        if self._batch_depth:
            self._batch_changed = True
            return
        for listener in list(self._listeners):
            listener()

    @contextmanager
    def _batch(self) -> Iterator[None]:
        """Collapse the notifications of several mutations into one."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._batch_changed:
                self._batch_changed = False
                self._changed()

    # =========================================================================
    # ENTRY FLOW
    # =========================================================================

    def validate_draft(self, draft: TransactionDraft, today: Optional[date] = None) -> ValidationResult:
        return self._validator.validate(
            draft,
            known_banks=self.card_banks,
            known_categories=self.categories,
            today=today,
        )

    def submit_draft(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Validate a draft and store it if it passes.

        Drafts from imports and OCR/AI helpers go through exactly the same
        checks as manual entry. Rejected drafts are audited, never stored.

        Returns: (transaction or None, validation_result)
        """
        result = self.validate_draft(draft, today=today)
        if not result.is_valid:
            self._audit.log(AuditEventBuilder.draft_rejected(
                draft.source,
                [issue.model_dump() for issue in result.errors],
            ))
            return None, result

        transaction = draft.to_transaction()
        with self._batch():
            self.transactions.add(transaction)
            if transaction.category:
                self.add_category(transaction.category)
        return transaction, result

    def add_series(
        self,
        base: Transaction,
        kind: str,
        count: Optional[int] = None,
    ) -> list[Transaction]:
        """
        Add an installment plan or recurring expense.

        count defaults to the configured number of recurring months;
        installment plans are bounded by max_installment_periods.
        """
        if count is None:
            if kind != "recurring":
                raise ValueError("Installment plans need an explicit number of periods")
            count = self._settings.recurring_months
        if kind == "installment" and count > self._settings.max_installment_periods:
            raise ValueError(
                f"At most {self._settings.max_installment_periods} installment periods are allowed"
            )
        return self.transactions.add_series(base, kind, count)

    def add_category(self, name: str) -> bool:
        name = name.strip()
        if not name or name in self.categories:
            return False
        self.categories.append(name)
        self._changed()
        return True

    def add_card_bank(self, name: str) -> bool:
        name = name.strip()
        if not name or name == CARD_SENTINEL or name in self.card_banks:
            return False
        self.card_banks.append(name)
        self._changed()
        return True

    def set_monthly_budget(self, amount: Decimal) -> None:
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError("Monthly budget cannot be negative")
        self.monthly_budget = amount
        self._changed()

    # =========================================================================
    # RECONCILIATION FLOW
    # =========================================================================

    def reconcile(
        self,
        bank: str,
        billing_month: str,
        entered_statement_total: Decimal = Decimal("0"),
    ) -> ReconciliationSummary:
        """Everything the reconciliation view shows for one card and month."""
        return aggregate(
            self.transactions.all(),
            bank,
            self.statements.get(bank),
            billing_month,
            entered_statement_total,
            tolerance=self._settings.balance_tolerance,
        )

    def bucket(self, bank: str, billing_month: str, bucket: Bucket) -> list[Transaction]:
        """Detail list for one bucket of a card's billing month."""
        cycle = cycle_for_bank(self.statements.as_dict(), bank, billing_month)
        return bucket_transactions(self.transactions.all(), bank, cycle, bucket)

    def toggle_reconcile(self, transaction_id: str) -> Transaction:
        return self.transactions.toggle_reconcile(transaction_id)

    def toggle_issued(
        self,
        bank: str,
        billing_month: str,
        entered_statement_total: Optional[Decimal] = None,
    ) -> bool:
        return self.statements.toggle_issued(bank, billing_month, entered_statement_total)

    def card_summaries(self, billing_month: str) -> list[CardSummary]:
        return card_summary(
            self.transactions.all(),
            self.card_banks,
            self.statements.as_dict(),
            billing_month,
        )

    # =========================================================================
    # BUDGET FLOW
    # =========================================================================

    def project_month(self, month: str) -> BudgetProjection:
        """Project the month using the configured card amount source."""
        budget = self.budgets.get(month)
        card_amounts = resolve_card_amounts(
            budget,
            self._settings.card_amount_source,
            transactions=self.transactions.all(),
            card_settings=self.statements.as_dict(),
            card_banks=self.card_banks,
        )
        return project_month(budget, self.budgets.income_sources(), card_amounts)

    # =========================================================================
    # SALARY HISTORY
    # =========================================================================

    def salary_history(self) -> list[SalaryAdjustment]:
        return self.salaries.adjustments()

    def add_salary_adjustment(
        self,
        date: str,
        total_salary: Decimal,
        adjustment_item: str = "",
        **deductions: Decimal,
    ) -> SalaryAdjustment:
        """
        Record a salary. Deductions are given by name: labor_insurance,
        health_insurance, meal_cost, welfare_fund.
        """
        return self.salaries.add(date, total_salary, adjustment_item, **deductions)

    def delete_salary_adjustment(self, adjustment_id: str) -> bool:
        return self.salaries.delete(adjustment_id)

    # =========================================================================
    # INSTALLMENTS
    # =========================================================================

    def installments(self, ongoing_only: bool = False) -> list[InstallmentGroup]:
        groups = group_installments(self.transactions.all())
        if ongoing_only:
            return ongoing_installments(groups)
        return groups

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def overview(self, period: Optional[str]) -> SpendingOverview:
        return spending_overview(self.transactions.all(), period, self.monthly_budget)

    def category_breakdown(self, period: Optional[str]) -> list[CategoryTotal]:
        return category_breakdown(
            self.transactions.all(),
            period,
            excluded_category=self._settings.card_payment_category,
        )

    def top_transactions(
        self,
        period: Optional[str],
        card_bank: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        return top_transactions(self.transactions.all(), period, card_bank, category)

    def card_statuses(self, billing_month: str) -> list[CardStatus]:
        return card_statuses(
            self.transactions.all(),
            self.card_banks,
            self.statements.as_dict(),
            billing_month,
        )

    def available_years(self, today: Optional[date] = None) -> list[str]:
        return available_years(self.transactions.all(), today)

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            transactions=self.transactions.all(),
            card_settings=self.statements.as_dict(),
            budgets=self.budgets.budgets(),
            income_sources=self.budgets.income_sources(),
            salary_adjustments=self.salaries.adjustments(),
            categories=list(self.categories),
            card_banks=list(self.card_banks),
            budget=self.monthly_budget,
        )

    def apply_snapshot(self, snapshot: LedgerSnapshot) -> None:
        """
        Replace local state with a snapshot.

        Empty category and card lists keep the current ones. Listeners
        are notified once.
        """
        with self._batch():
            self.transactions.replace_all(snapshot.transactions)
            self.statements.replace_all(snapshot.card_settings)
            self.budgets.replace_all(snapshot.budgets, snapshot.income_sources)
            self.salaries.replace_all(snapshot.salary_adjustments)
            if snapshot.categories:
                self.categories = list(snapshot.categories)
            if snapshot.card_banks:
                self.card_banks = list(snapshot.card_banks)
            self.monthly_budget = snapshot.budget
            self._changed()

    def reset(self) -> None:
        """Drop all data and return to the configured defaults."""
        with self._batch():
            self.transactions.replace_all([])
            self.statements.replace_all({})
            self.budgets.replace_all([], [])
            self.salaries.replace_all([])
            self.categories = self._settings.categories_list
            self.card_banks = self._settings.card_banks_list
            self.monthly_budget = self._settings.default_monthly_budget
            self._changed()
        self._audit.log(AuditEventBuilder.ledger_reset())


def create_app_components(
    use_storage: bool = True,
) -> tuple[Ledger, Optional[SyncCoordinator], Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Returns:
        (ledger, sync_coordinator, sheets_client)
    """
    settings = get_settings()
    sheets_client = None
    snapshot_storage = None
    audit_logger = None

    if use_storage and settings.sync.enabled:
        try:
            sheets_client = GoogleSheetsClient()
            snapshot_storage = GoogleSheetsSnapshotStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except (ValidationError, StorageError) as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            snapshot_storage = None
            audit_logger = AuditLogger()  # Local-only logging
    else:
        audit_logger = AuditLogger()  # Local-only logging

    ledger = Ledger(audit_logger=audit_logger)

    coordinator = None
    if snapshot_storage is not None:
        coordinator = SyncCoordinator(
            snapshot_storage,
            snapshot_provider=ledger.snapshot,
            snapshot_applier=ledger.apply_snapshot,
            debounce_seconds=settings.sync.debounce_seconds,
            audit_logger=audit_logger,
        )
        ledger.add_listener(coordinator.notify_changed)

    return ledger, coordinator, sheets_client
