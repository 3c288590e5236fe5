"""
Transaction Classifier

Places a transaction into exactly one Bucket relative to a card's cycle.

Rules, in order:
1. Other card, or not a credit-card charge  -> EXCLUDED
2. Already reconciled                        -> RECONCILED
3. No cycle configured                       -> CURRENT
4. Dated on or before the cycle close        -> CURRENT
5. Otherwise                                 -> FUTURE

CURRENT has no lower bound on purpose: an unreconciled charge from an
earlier cycle keeps showing on the current bill until it is reconciled
(carry-forward).
"""

from decimal import Decimal
from typing import Iterable, Optional

from ledger.models.card import CycleRange
from ledger.models.reconciliation import Bucket
from ledger.models.transaction import PaymentMethod, Transaction


def classify(
    transaction: Transaction,
    bank: str,
    cycle: Optional[CycleRange],
) -> Bucket:
    """Bucket for one transaction against bank's cycle."""
    if (
        transaction.card_bank != bank
        or transaction.payment_method != PaymentMethod.CREDIT_CARD
    ):
        return Bucket.EXCLUDED

    if transaction.is_reconciled:
        return Bucket.RECONCILED

    if cycle is None:
        return Bucket.CURRENT

    if transaction.date <= cycle.end:
        return Bucket.CURRENT

    return Bucket.FUTURE


def bucket_transactions(
    transactions: Iterable[Transaction],
    bank: str,
    cycle: Optional[CycleRange],
    bucket: Bucket,
) -> list[Transaction]:
    """
    Transactions of one bucket, ready for a detail list.

    RECONCILED is narrowed to the cycle's own date range so the list shows
    what this statement cleared. FUTURE is sorted oldest first, everything
    else newest first.
    """
    selected = []
    for t in transactions:
        if classify(t, bank, cycle) != bucket:
            continue
        if bucket == Bucket.RECONCILED and cycle is not None and not cycle.contains(t.date):
            continue
        selected.append(t)

    selected.sort(key=lambda t: t.date, reverse=bucket != Bucket.FUTURE)
    return selected


def bucket_total(
    transactions: Iterable[Transaction],
    bank: str,
    cycle: Optional[CycleRange],
    bucket: Bucket,
) -> Decimal:
    return sum(
        (t.amount for t in bucket_transactions(transactions, bank, cycle, bucket)),
        Decimal("0"),
    )
