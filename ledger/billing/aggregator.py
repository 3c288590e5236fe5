"""
Reconciliation Aggregator

Folds a transaction list through the classifier to produce the numbers the
reconciliation view, the dashboard and the budget projection show.

Two totals are kept strictly apart:
- reconciled_total_in_cycle: WINDOWED to one billing month's cycle
  (or the recorded statement amount for that month)
- CardSummary.billed / unbilled: ALL-TIME, no cycle involved
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ledger.billing.classifier import classify
from ledger.billing.cycle import cycle_range
from ledger.models.card import CardSetting
from ledger.models.reconciliation import (
    Bucket,
    CardSummary,
    ReconciliationSummary,
)
from ledger.models.transaction import CARD_SENTINEL, PaymentMethod, Transaction


DEFAULT_BALANCE_TOLERANCE = Decimal("1")


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


def reconciled_total_in_cycle(
    transactions: Iterable[Transaction],
    bank: str,
    card_setting: Optional[CardSetting],
    billing_month: str,
) -> tuple[Decimal, bool]:
    """
    Reconciled total for one billing month.

    Returns (total, from_recorded_amount). A recorded statement amount
    wins verbatim; otherwise reconciled transactions dated inside the
    cycle are summed. Without a cycle there is nothing to window, so 0.
    """
    if card_setting is not None and billing_month in card_setting.statement_amounts:
        return card_setting.statement_amounts[billing_month], True

    cycle = cycle_range(card_setting, billing_month)
    if cycle is None:
        return Decimal("0"), False

    total = _total(
        t for t in transactions
        if classify(t, bank, cycle) == Bucket.RECONCILED and cycle.contains(t.date)
    )
    return total, False


def aggregate(
    transactions: Iterable[Transaction],
    bank: str,
    card_setting: Optional[CardSetting],
    billing_month: str,
    entered_statement_total: Decimal = Decimal("0"),
    tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
) -> ReconciliationSummary:
    """
    Reconciliation summary for one card and billing month.

    Args:
        transactions: The full transaction list (other cards are ignored)
        bank: Card to reconcile
        card_setting: The card's setting, or None if not configured
        billing_month: "YYYY-MM"
        entered_statement_total: Total typed in from the paper statement
        tolerance: |discrepancy| below this counts as balanced
    """
    transactions = list(transactions)
    cycle = cycle_range(card_setting, billing_month)

    # Stable sort: same-day candidates keep their input order
    candidates = [
        t for t in transactions
        if classify(t, bank, cycle) == Bucket.CURRENT
    ]
    candidates.sort(key=lambda t: t.date, reverse=True)

    reconciled_total, recorded = reconciled_total_in_cycle(
        transactions, bank, card_setting, billing_month
    )

    entered = Decimal(entered_statement_total)
    discrepancy = entered - reconciled_total
    is_balanced = abs(discrepancy) < tolerance and entered > 0

    is_issued = (
        card_setting is not None
        and billing_month in card_setting.issued_months
    )

    return ReconciliationSummary(
        bank=bank,
        billing_month=billing_month,
        cycle=cycle,
        candidate_transactions=candidates,
        candidate_total=_total(candidates),
        reconciled_total_in_cycle=reconciled_total,
        statement_amount_recorded=recorded,
        entered_statement_total=entered,
        discrepancy=discrepancy,
        is_balanced=is_balanced,
        is_issued=is_issued,
    )


def card_summary(
    transactions: Iterable[Transaction],
    card_banks: Iterable[str],
    card_settings: Mapping[str, CardSetting],
    billing_month: str,
) -> list[CardSummary]:
    """
    All-time billed / unbilled totals for every configured card.

    Cards without any credit-card transactions are left out.
    """
    card_txs: dict[str, list[Transaction]] = {}
    for t in transactions:
        if t.payment_method == PaymentMethod.CREDIT_CARD:
            card_txs.setdefault(t.card_bank, []).append(t)

    summaries = []
    for bank in card_banks:
        if bank == CARD_SENTINEL:
            continue
        txs = card_txs.get(bank, [])
        if not txs:
            continue

        setting = card_settings.get(bank)
        summaries.append(CardSummary(
            bank=bank,
            unbilled=_total(t for t in txs if not t.is_reconciled),
            billed=_total(t for t in txs if t.is_reconciled),
            issued=setting is not None and billing_month in setting.issued_months,
            transaction_count=len(txs),
        ))

    return summaries
