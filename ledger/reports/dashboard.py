"""
Dashboard Reports

DESIGN DECISION: Reports are DETERMINISTIC folds over the stored
transactions. They compute, they never estimate, and every card figure
goes through the same cycle calculator and aggregator the
reconciliation view uses, so the two screens always agree.

Periods are "YYYY-MM" (month), "YYYY" (year) or "all".
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ledger.billing.aggregator import aggregate, card_summary
from ledger.billing.months import in_period
from ledger.models.card import CardSetting
from ledger.models.report import CardStatus, CategoryTotal, SpendingOverview
from ledger.models.transaction import CARD_SENTINEL, PaymentMethod, Transaction


TOP_TRANSACTIONS_LIMIT = 5


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


def _is_year(period: Optional[str]) -> bool:
    return period is not None and len(period) == 4 and period.isdigit()


def filter_period(
    transactions: Iterable[Transaction],
    period: Optional[str],
) -> list[Transaction]:
    return [t for t in transactions if in_period(t.date, period)]


def available_years(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> list[str]:
    """Years with data plus the current year, newest first."""
    years = {str((today or date.today()).year)}
    years.update(str(t.date.year) for t in transactions)
    return sorted(years, reverse=True)


def spending_overview(
    transactions: Iterable[Transaction],
    period: Optional[str],
    monthly_budget: Decimal,
) -> SpendingOverview:
    """
    Total, cash and credit spending for a period against the budget.

    A year period compares against twelve monthly budgets.
    """
    selected = filter_period(transactions, period)

    total = _total(selected)
    cash_total = _total(t for t in selected if t.payment_method == PaymentMethod.CASH)
    credit_total = _total(t for t in selected if t.payment_method == PaymentMethod.CREDIT_CARD)

    effective_budget = Decimal(monthly_budget) * (12 if _is_year(period) else 1)
    if effective_budget > 0:
        used = total / effective_budget * 100
    else:
        used = Decimal("0")

    return SpendingOverview(
        period=period or "all",
        total=total,
        cash_total=cash_total,
        credit_total=credit_total,
        effective_budget=effective_budget,
        budget_used_percent=used,
        budget_progress=min(used, Decimal("100")),
        transaction_count=len(selected),
    )


def category_breakdown(
    transactions: Iterable[Transaction],
    period: Optional[str],
    excluded_category: Optional[str] = None,
) -> list[CategoryTotal]:
    """
    Spending per category, largest first.

    excluded_category is the card-payment category: paying a card bill
    is not spending, the charges on the card already were.
    """
    totals: dict[str, Decimal] = {}
    for t in filter_period(transactions, period):
        if excluded_category and t.category == excluded_category:
            continue
        totals[t.category] = totals.get(t.category, Decimal("0")) + t.amount

    breakdown = [CategoryTotal(name=name, amount=amount) for name, amount in totals.items()]
    breakdown.sort(key=lambda c: c.amount, reverse=True)
    return breakdown


def top_transactions(
    transactions: Iterable[Transaction],
    period: Optional[str],
    card_bank: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = TOP_TRANSACTIONS_LIMIT,
) -> list[Transaction]:
    """Largest transactions of a period for one card or one category."""
    selected = filter_period(transactions, period)
    if card_bank:
        selected = [
            t for t in selected
            if t.payment_method == PaymentMethod.CREDIT_CARD and t.card_bank == card_bank
        ]
    if category:
        selected = [t for t in selected if t.category == category]

    selected.sort(key=lambda t: t.amount, reverse=True)
    return selected[:limit]


def card_statuses(
    transactions: Iterable[Transaction],
    card_banks: Iterable[str],
    card_settings: Mapping[str, CardSetting],
    billing_month: str,
) -> list[CardStatus]:
    """
    One tile per card with activity.

    Combines the all-time billed/unbilled summary with the current bill
    of billing_month's cycle.
    """
    transactions = list(transactions)
    card_banks = [b for b in card_banks if b != CARD_SENTINEL]

    statuses = []
    for summary in card_summary(transactions, card_banks, card_settings, billing_month):
        current = aggregate(
            transactions,
            summary.bank,
            card_settings.get(summary.bank),
            billing_month,
        )
        statuses.append(CardStatus(
            bank=summary.bank,
            unbilled=summary.unbilled,
            billed=summary.billed,
            issued=summary.issued,
            transaction_count=summary.transaction_count,
            current_bill=current.candidate_total,
            cycle=current.cycle,
        ))
    return statuses
