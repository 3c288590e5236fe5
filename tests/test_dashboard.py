"""
Tests for dashboard reports.
"""

import pytest
from datetime import date
from decimal import Decimal

from ledger.models import CardSetting, PaymentMethod, Transaction
from ledger.reports import (
    available_years,
    card_statuses,
    category_breakdown,
    spending_overview,
    top_transactions,
)


def _tx(day: date, amount: int, method=PaymentMethod.CREDIT_CARD, bank="X", category="食", **extra):
    return Transaction(
        date=day,
        amount=Decimal(amount),
        payment_method=method,
        card_bank=bank,
        category=category,
        **extra,
    )


TRANSACTIONS = [
    _tx(date(2024, 3, 1), 10000),
    _tx(date(2024, 3, 2), 5000, method=PaymentMethod.CASH, category="行"),
    _tx(date(2024, 3, 3), 20000, category="信用卡出帳"),
    _tx(date(2024, 2, 3), 7000, bank="Y", category="樂"),
    _tx(date(2023, 7, 3), 3000),
]


class TestSpendingOverview:
    """Tests for period totals and budget progress."""

    def test_month_overview(self):
        overview = spending_overview(TRANSACTIONS, "2024-03", Decimal("50000"))
        assert overview.total == Decimal("35000")
        assert overview.cash_total == Decimal("5000")
        assert overview.credit_total == Decimal("30000")
        assert overview.effective_budget == Decimal("50000")
        assert overview.budget_progress == Decimal("70")
        assert overview.transaction_count == 3
        assert not overview.is_over_budget

    def test_year_budget_is_twelve_months(self):
        overview = spending_overview(TRANSACTIONS, "2024", Decimal("1000"))
        assert overview.effective_budget == Decimal("12000")
        assert overview.total == Decimal("42000")
        assert overview.budget_used_percent == Decimal("350")
        assert overview.budget_progress == Decimal("100")
        assert overview.is_over_budget

    def test_all_period(self):
        overview = spending_overview(TRANSACTIONS, "all", Decimal("50000"))
        assert overview.total == Decimal("45000")
        assert overview.period == "all"

    def test_zero_budget(self):
        overview = spending_overview(TRANSACTIONS, "2024-03", Decimal("0"))
        assert overview.budget_progress == Decimal("0")

    def test_cash_share(self):
        overview = spending_overview(TRANSACTIONS, "2024-03", Decimal("50000"))
        assert overview.cash_share_percent == Decimal("5000") / Decimal("35000") * 100


class TestBreakdowns:
    """Tests for category totals and top transactions."""

    def test_category_breakdown_excludes_card_payments(self):
        breakdown = category_breakdown(TRANSACTIONS, "2024-03", excluded_category="信用卡出帳")
        assert [(c.name, c.amount) for c in breakdown] == [
            ("食", Decimal("10000")),
            ("行", Decimal("5000")),
        ]

    def test_top_transactions_for_card(self):
        top = top_transactions(TRANSACTIONS, "all", card_bank="X")
        assert [t.amount for t in top] == [Decimal("20000"), Decimal("10000"), Decimal("3000")]

    def test_top_transactions_limit(self):
        many = [_tx(date(2024, 3, d), d) for d in range(1, 11)]
        top = top_transactions(many, "2024-03", category="食")
        assert [t.amount for t in top] == [Decimal(n) for n in (10, 9, 8, 7, 6)]

    def test_available_years(self):
        years = available_years(TRANSACTIONS, today=date(2026, 1, 1))
        assert years == ["2026", "2024", "2023"]


class TestCardStatuses:
    """Dashboard card tiles share the reconciliation cycle."""

    def test_card_statuses(self):
        txs = [
            _tx(date(2024, 2, 20), 100),
            _tx(date(2024, 3, 20), 200),
            _tx(date(2024, 1, 5), 50, is_reconciled=True),
        ]
        settings = {"X": CardSetting(statement_day=15, issued_months=["2024-03"])}
        statuses = card_statuses(txs, ["-", "X", "Y"], settings, "2024-03")

        assert len(statuses) == 1
        status = statuses[0]
        assert status.bank == "X"
        assert status.unbilled == Decimal("300")
        assert status.billed == Decimal("50")
        assert status.current_bill == Decimal("100")
        assert status.issued
        assert status.cycle.end == date(2024, 3, 15)

    def test_card_without_setting_bills_everything_unreconciled(self):
        txs = [_tx(date(2024, 2, 20), 100), _tx(date(2024, 3, 20), 200)]
        statuses = card_statuses(txs, ["X"], {}, "2024-03")
        assert statuses[0].current_bill == Decimal("300")
        assert statuses[0].cycle is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
