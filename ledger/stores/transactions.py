"""
Transaction Store

The single owner of the transaction list. Every change goes through a
named method so it can be audited and so the facade can recompute
derived totals and schedule a save.

CRITICAL: toggle_reconcile only flips the reconciliation state.
It never touches date, card or amount.
"""

from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from ledger.audit import AuditLogger
from ledger.billing.months import in_period
from ledger.installments.series import generate_installments, generate_recurring
from ledger.models.audit import AuditEventBuilder
from ledger.models.transaction import PaymentMethod, Transaction


class TransactionNotFoundError(KeyError):
    """No transaction with the given id."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionStore:
    """
    Ordered, id-keyed collection of transactions.

    Args:
        transactions: Initial records (e.g. from a loaded snapshot)
        audit_logger: Receives one event per mutation
        on_change: Called after every mutation
        clock: Source of reconciled_date timestamps
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        audit_logger: Optional[AuditLogger] = None,
        on_change: Optional[Callable[[], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._transactions: dict[str, Transaction] = {}
        self._audit = audit_logger
        self._on_change = on_change
        self._clock = clock or _utcnow
        # reconciled_date cleared by an un-reconcile, restored if re-reconciled
        self._reverted_dates: dict[str, datetime] = {}
        for t in transactions or []:
            self._transactions[t.id] = t

    # =========================================================================
    # READ
    # =========================================================================

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: str) -> bool:
        return transaction_id in self._transactions

    def get(self, transaction_id: str) -> Transaction:
        try:
            return self._transactions[transaction_id]
        except KeyError:
            raise TransactionNotFoundError(transaction_id)

    def all(self) -> list[Transaction]:
        """All transactions in insertion order."""
        return list(self._transactions.values())

    def filter(
        self,
        period: Optional[str] = None,
        category: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        card_bank: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Transactions matching every given criterion, newest first.

        period is "YYYY-MM", "YYYY" or "all". search matches description
        and category case-insensitively.
        """
        needle = search.strip().lower() if search else ""

        results = []
        for t in self._transactions.values():
            if not in_period(t.date, period):
                continue
            if category and t.category != category:
                continue
            if payment_method is not None and t.payment_method != payment_method:
                continue
            if card_bank and t.card_bank != card_bank:
                continue
            if needle and needle not in t.description.lower() and needle not in t.category.lower():
                continue
            results.append(t)

        results.sort(key=lambda t: t.date, reverse=True)
        return results

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise ValueError(f"Duplicate transaction id: {transaction.id}")

        self._transactions[transaction.id] = transaction
        self._log(AuditEventBuilder.transaction_added(
            transaction.id, transaction.amount, transaction.card_bank
        ))
        self._notify()
        return transaction

    def add_many(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Add a batch with a single change notification."""
        batch = list(transactions)
        duplicates = [t.id for t in batch if t.id in self._transactions]
        if duplicates:
            raise ValueError(f"Duplicate transaction ids: {', '.join(duplicates)}")

        for t in batch:
            self._transactions[t.id] = t
            self._log(AuditEventBuilder.transaction_added(t.id, t.amount, t.card_bank))
        if batch:
            self._notify()
        return batch

    def add_series(
        self,
        base: Transaction,
        kind: str,
        count: int,
    ) -> list[Transaction]:
        """
        Add an installment plan or a recurring expense in one go.

        Args:
            base: First occurrence. For installments its amount is the total price.
            kind: "installment" or "recurring"
            count: Number of periods / months
        """
        if kind == "installment":
            siblings = generate_installments(base, count)
            group_id = siblings[0].installment_group_id
        elif kind == "recurring":
            siblings = generate_recurring(base, count)
            group_id = siblings[0].recurring_group_id
        else:
            raise ValueError(f"Unknown series kind: {kind}")

        added = self.add_many(siblings)
        self._log(AuditEventBuilder.series_created(group_id, kind, len(added)))
        return added

    def edit(self, transaction_id: str, **fields) -> Transaction:
        """
        Replace fields of a transaction and re-validate the whole record.

        Raises TransactionNotFoundError, or ValueError for unknown fields.
        """
        current = self.get(transaction_id)

        unknown = set(fields) - set(Transaction.model_fields)
        if unknown:
            raise ValueError(f"Unknown transaction fields: {', '.join(sorted(unknown))}")
        if "id" in fields and fields["id"] != transaction_id:
            raise ValueError("Transaction id cannot be changed")

        updated = Transaction.model_validate({**current.model_dump(), **fields})
        self._reverted_dates.pop(transaction_id, None)
        changed = [
            name for name in Transaction.model_fields
            if getattr(updated, name) != getattr(current, name)
        ]

        self._transactions[transaction_id] = updated
        self._log(AuditEventBuilder.transaction_updated(transaction_id, changed))
        self._notify()
        return updated

    def delete(self, transaction_id: str) -> Transaction:
        removed = self.get(transaction_id)
        del self._transactions[transaction_id]
        self._reverted_dates.pop(transaction_id, None)
        self._log(AuditEventBuilder.transaction_deleted(transaction_id))
        self._notify()
        return removed

    def delete_recurring_group(self, group_id: str, from_date: date) -> int:
        """
        Delete the recurring siblings dated on or after from_date.

        Earlier occurrences are kept. Returns how many were removed.
        """
        doomed = [
            t.id for t in self._transactions.values()
            if t.recurring_group_id == group_id and t.date >= from_date
        ]
        for transaction_id in doomed:
            del self._transactions[transaction_id]
            self._reverted_dates.pop(transaction_id, None)

        self._log(AuditEventBuilder.recurring_group_deleted(
            group_id, from_date.isoformat(), len(doomed)
        ))
        if doomed:
            self._notify()
        return len(doomed)

    def toggle_reconcile(self, transaction_id: str) -> Transaction:
        """
        Flip is_reconciled; stamp or clear reconciled_date accordingly.

        Toggling twice restores the record: a date cleared by the first
        toggle comes back with the second.
        """
        current = self.get(transaction_id)
        reconciled = not current.is_reconciled

        if reconciled:
            stamp = self._reverted_dates.pop(transaction_id, None) or self._clock()
        else:
            stamp = None
            if current.reconciled_date is not None:
                self._reverted_dates[transaction_id] = current.reconciled_date

        updated = current.model_copy(update={
            "is_reconciled": reconciled,
            "reconciled_date": stamp,
        })
        self._transactions[transaction_id] = updated
        self._log(AuditEventBuilder.reconcile_toggled(transaction_id, reconciled))
        self._notify()
        return updated

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        """Swap in a whole list, e.g. when a remote snapshot is applied."""
        self._transactions = {t.id: t for t in transactions}
        self._reverted_dates = {}
        self._notify()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _log(self, event) -> None:
        if self._audit:
            self._audit.log(event)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()
