"""
Tests for the transaction, statement and budget stores.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from ledger.audit import AuditLogger
from ledger.billing import reconciled_total_in_cycle
from ledger.models import (
    AuditEventType,
    IncomeSource,
    MonthlyBudget,
    PaymentMethod,
    Transaction,
)
from ledger.stores import (
    BudgetStore,
    SalaryStore,
    StatementStore,
    TransactionNotFoundError,
    TransactionStore,
)


FIXED_NOW = datetime(2024, 3, 20, 9, 30, tzinfo=timezone.utc)


def _card(day: date, amount: int, bank: str = "X", **extra) -> Transaction:
    return Transaction(
        date=day,
        amount=Decimal(amount),
        payment_method=PaymentMethod.CREDIT_CARD,
        card_bank=bank,
        **extra,
    )


class _Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestTransactionStore:
    """Tests for transaction mutations."""

    def test_add_and_get(self):
        changes = _Counter()
        store = TransactionStore(on_change=changes)
        tx = store.add(_card(date(2024, 3, 1), 100))
        assert store.get(tx.id) == tx
        assert len(store) == 1
        assert changes.calls == 1

    def test_duplicate_id_rejected(self):
        store = TransactionStore()
        tx = store.add(_card(date(2024, 3, 1), 100))
        with pytest.raises(ValueError, match="Duplicate"):
            store.add(tx)

    def test_unknown_id_raises_not_found(self):
        store = TransactionStore()
        with pytest.raises(TransactionNotFoundError):
            store.get("missing")
        with pytest.raises(KeyError):
            store.toggle_reconcile("missing")

    def test_toggle_reconcile_sets_and_clears_date(self):
        store = TransactionStore(clock=lambda: FIXED_NOW)
        tx = store.add(_card(date(2024, 3, 1), 100))

        toggled = store.toggle_reconcile(tx.id)
        assert toggled.is_reconciled is True
        assert toggled.reconciled_date == FIXED_NOW
        assert toggled.date == tx.date
        assert toggled.amount == tx.amount
        assert toggled.card_bank == tx.card_bank

        reverted = store.toggle_reconcile(tx.id)
        assert reverted.is_reconciled is False
        assert reverted.reconciled_date is None

    def test_double_toggle_restores_record(self):
        store = TransactionStore(clock=lambda: FIXED_NOW)
        tx = store.add(_card(date(2024, 3, 1), 100))
        store.toggle_reconcile(tx.id)
        store.toggle_reconcile(tx.id)
        assert store.get(tx.id).model_dump() == tx.model_dump()

    def test_double_toggle_keeps_earlier_reconciled_date(self):
        store = TransactionStore(clock=lambda: FIXED_NOW)
        tx = store.add(_card(
            date(2024, 1, 2), 100,
            is_reconciled=True,
            reconciled_date=datetime(2024, 1, 5, tzinfo=timezone.utc),
        ))

        assert store.toggle_reconcile(tx.id).reconciled_date is None
        restored = store.toggle_reconcile(tx.id)
        assert restored.reconciled_date == datetime(2024, 1, 5, tzinfo=timezone.utc)
        assert store.get(tx.id).model_dump() == tx.model_dump()

    def test_reloaded_list_forgets_cleared_dates(self):
        store = TransactionStore(clock=lambda: FIXED_NOW)
        tx = _card(
            date(2024, 1, 2), 100,
            is_reconciled=True,
            reconciled_date=datetime(2024, 1, 5, tzinfo=timezone.utc),
        )
        store.add(tx)
        store.toggle_reconcile(tx.id)
        store.replace_all([store.get(tx.id)])
        assert store.toggle_reconcile(tx.id).reconciled_date == FIXED_NOW

    def test_edit_revalidates(self):
        store = TransactionStore()
        tx = store.add(_card(date(2024, 3, 1), 100))

        edited = store.edit(tx.id, payment_method=PaymentMethod.CASH)
        assert edited.card_bank == "-"

        with pytest.raises(ValueError):
            store.edit(tx.id, amount=Decimal("-5"))
        with pytest.raises(ValueError, match="Unknown transaction fields"):
            store.edit(tx.id, colour="red")
        with pytest.raises(ValueError, match="cannot be changed"):
            store.edit(tx.id, id="other")

    def test_edit_reports_changed_fields(self):
        audit = AuditLogger()
        store = TransactionStore(audit_logger=audit)
        tx = store.add(_card(date(2024, 3, 1), 100))
        store.edit(tx.id, amount=Decimal("120"), category="食")

        event = audit.recent_events(1)[0]
        assert event.event_type == AuditEventType.TRANSACTION_UPDATED
        assert event.details["changed_fields"] == ["amount", "category"]

    def test_delete(self):
        store = TransactionStore()
        tx = store.add(_card(date(2024, 3, 1), 100))
        store.delete(tx.id)
        assert tx.id not in store
        with pytest.raises(TransactionNotFoundError):
            store.delete(tx.id)

    def test_add_series_installment(self):
        changes = _Counter()
        store = TransactionStore(on_change=changes)
        base = _card(date(2024, 1, 31), 1000, description="Laptop")
        siblings = store.add_series(base, "installment", 3)

        assert [t.amount for t in siblings] == [Decimal("334"), Decimal("333"), Decimal("333")]
        assert [t.date for t in siblings] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
        assert changes.calls == 1
        assert len(store) == 3

    def test_add_series_unknown_kind(self):
        store = TransactionStore()
        with pytest.raises(ValueError, match="Unknown series kind"):
            store.add_series(_card(date(2024, 1, 1), 10), "weekly", 3)

    def test_delete_recurring_group_from_date(self):
        store = TransactionStore()
        base = _card(date(2024, 1, 10), 399, description="Streaming")
        siblings = store.add_series(base, "recurring", 12)
        group_id = siblings[0].recurring_group_id

        removed = store.delete_recurring_group(group_id, date(2024, 6, 1))
        assert removed == 7
        remaining = [t.date for t in store.all()]
        assert max(remaining) == date(2024, 5, 10)
        assert len(remaining) == 5

    def test_filter(self):
        store = TransactionStore()
        store.add(_card(date(2024, 3, 1), 100, category="食", description="Lunch"))
        store.add(_card(date(2024, 3, 9), 200, bank="Y", category="行", description="Train"))
        store.add(Transaction(
            date=date(2023, 12, 31),
            amount=Decimal("50"),
            payment_method=PaymentMethod.CASH,
            category="食",
            description="Snack",
        ))

        assert [t.amount for t in store.filter()] == [Decimal("200"), Decimal("100"), Decimal("50")]
        assert len(store.filter(period="2024-03")) == 2
        assert len(store.filter(period="2023")) == 1
        assert len(store.filter(category="食")) == 2
        assert len(store.filter(payment_method=PaymentMethod.CASH)) == 1
        assert len(store.filter(card_bank="Y")) == 1
        assert [t.description for t in store.filter(search="LUNCH")] == ["Lunch"]

    def test_replace_all(self):
        changes = _Counter()
        store = TransactionStore(on_change=changes)
        store.replace_all([_card(date(2024, 3, 1), 1), _card(date(2024, 3, 2), 2)])
        assert len(store) == 2
        assert changes.calls == 1


class TestStatementStore:
    """Tests for statement settings and the issued state."""

    def test_set_statement_day_creates_setting(self):
        store = StatementStore()
        setting = store.set_statement_day("X", 15)
        assert setting.statement_day == 15
        assert store.get("X").statement_day == 15

    @pytest.mark.parametrize("day", [-1, 32, 1.5, "15", True])
    def test_set_statement_day_validates(self, day):
        with pytest.raises(ValueError):
            StatementStore().set_statement_day("X", day)

    def test_sentinel_bank_rejected(self):
        store = StatementStore()
        with pytest.raises(ValueError):
            store.set_statement_day("-", 15)
        with pytest.raises(ValueError):
            store.toggle_issued("-", "2024-03")

    def test_next_month_flag(self):
        store = StatementStore()
        store.set_statement_day("X", 5)
        store.set_next_month_flag("X", True)
        setting = store.get("X")
        assert setting.is_next_month is True
        assert setting.statement_day == 5

    def test_toggle_issued_snapshots_amount(self):
        store = StatementStore()
        store.set_statement_day("X", 15)

        assert store.toggle_issued("X", "2024-03", Decimal("5000")) is True
        assert store.is_issued("X", "2024-03")
        assert store.statement_amount("X", "2024-03") == Decimal("5000")

    def test_snapshot_stable_after_transaction_edits(self):
        store = StatementStore()
        store.set_statement_day("X", 15)
        store.toggle_issued("X", "2024-03", Decimal("5000"))

        setting = store.get("X")
        before = [_card(date(2024, 3, 1), 4000, is_reconciled=True)]
        after = [_card(date(2024, 3, 1), 9999, is_reconciled=True)]
        assert reconciled_total_in_cycle(before, "X", setting, "2024-03")[0] == Decimal("5000")
        assert reconciled_total_in_cycle(after, "X", setting, "2024-03")[0] == Decimal("5000")

    def test_uncheck_keeps_amount(self):
        store = StatementStore()
        store.toggle_issued("X", "2024-03", Decimal("5000"))
        assert store.toggle_issued("X", "2024-03", Decimal("1")) is False
        assert not store.is_issued("X", "2024-03")
        assert store.statement_amount("X", "2024-03") == Decimal("5000")

    def test_toggle_without_amount_records_nothing(self):
        store = StatementStore()
        store.toggle_issued("X", "2024-03")
        assert store.is_issued("X", "2024-03")
        assert store.statement_amount("X", "2024-03") is None

    def test_toggle_issued_validates_month(self):
        with pytest.raises(ValueError):
            StatementStore().toggle_issued("X", "March")

    def test_record_statement_amount_leaves_issued_state(self):
        store = StatementStore()
        store.record_statement_amount("X", "2024-03", Decimal("1234"))
        assert store.statement_amount("X", "2024-03") == Decimal("1234")
        assert not store.is_issued("X", "2024-03")

    def test_as_dict_is_a_copy(self):
        store = StatementStore()
        store.toggle_issued("X", "2024-03")
        copy = store.as_dict()
        copy["X"].issued_months.append("2024-04")
        assert store.get("X").issued_months == ["2024-03"]

    def test_mutations_are_audited(self):
        audit = AuditLogger()
        store = StatementStore(audit_logger=audit)
        store.set_statement_day("X", 15)
        store.toggle_issued("X", "2024-03", Decimal("10"))
        types = [e.event_type for e in audit.recent_events()]
        assert types == [AuditEventType.ISSUED_TOGGLED, AuditEventType.STATEMENT_DAY_SET]


class TestBudgetStore:
    """Tests for lazy monthly budgets and income sources."""

    def _store(self, **kwargs) -> BudgetStore:
        return BudgetStore(
            income_sources=[IncomeSource(id="s1", name="Salary", default_day=6)],
            default_loan=Decimal("40000"),
            **kwargs,
        )

    def test_get_returns_unsaved_default(self):
        store = self._store()
        budget = store.get("2024-03")
        assert budget.loan == Decimal("40000")
        assert [e.source_id for e in budget.incomes] == ["s1"]
        assert budget.incomes[0].amount == Decimal("0")
        assert not store.is_persisted("2024-03")
        assert store.budgets() == []

    def test_first_edit_persists(self):
        changes = _Counter()
        store = self._store(on_change=changes)
        store.update("2024-03", opening_balance=Decimal("-1500"))
        assert store.is_persisted("2024-03")
        assert store.get("2024-03").opening_balance == Decimal("-1500")
        assert store.get("2024-03").loan == Decimal("40000")
        assert changes.calls == 1

    def test_update_rejects_unknown_fields(self):
        with pytest.raises(ValueError, match="Unknown budget fields"):
            self._store().update("2024-03", month="2024-04")

    def test_get_validates_month(self):
        with pytest.raises(ValueError):
            self._store().get("2024-3")

    def test_set_income(self):
        store = self._store()
        store.set_income("2024-03", "s1", Decimal("30000"))
        store.set_income("2024-03", "extra", Decimal("500"))
        budget = store.get("2024-03")
        assert budget.income_for("s1") == Decimal("30000")
        assert budget.income_for("extra") == Decimal("500")
        assert len(budget.incomes) == 2

    def test_set_card_amount_upserts(self):
        store = self._store()
        store.set_card_amount("2024-03", "X", Decimal("100"))
        store.set_card_amount("2024-03", "X", Decimal("250"))
        budget = store.get("2024-03")
        assert budget.card_amount("X") == Decimal("250")
        assert len(budget.credit_cards) == 1

    def test_income_sources(self):
        store = self._store()
        source = store.add_income_source("  Family  ")
        assert source.name == "Family"
        assert [s.name for s in store.income_sources()] == ["Salary", "Family"]

        assert store.delete_income_source(source.id) is True
        assert store.delete_income_source(source.id) is False
        assert [s.id for s in store.income_sources()] == ["s1"]

    def test_add_income_source_requires_name(self):
        with pytest.raises(ValueError):
            self._store().add_income_source("   ")

    def test_budgets_sorted_by_month(self):
        store = BudgetStore(budgets=[
            MonthlyBudget(month="2024-05"),
            MonthlyBudget(month="2024-01"),
        ])
        assert [b.month for b in store.budgets()] == ["2024-01", "2024-05"]


class TestSalaryStore:
    """Tests for the salary history."""

    def test_adjustment_is_change_against_previous_record(self):
        store = SalaryStore()
        first = store.add("2023-01", Decimal("42000"), "到職")
        raise_ = store.add("2024-01", Decimal("45000"), "年度調薪")
        backdated = store.add("2023-07", Decimal("43000"), "考核")

        assert first.adjustment_amount == Decimal("0")
        assert raise_.adjustment_amount == Decimal("3000")
        assert backdated.adjustment_amount == Decimal("1000")
        assert [a.date for a in store.adjustments()] == ["2024-01", "2023-07", "2023-01"]

    def test_pay_cut_is_negative(self):
        store = SalaryStore()
        store.add("2024-01", Decimal("45000"))
        cut = store.add("2024-06", Decimal("44000"))
        assert cut.adjustment_amount == Decimal("-1000")

    def test_delete_is_audited(self):
        audit = AuditLogger()
        changes = _Counter()
        store = SalaryStore(audit_logger=audit, on_change=changes)
        record = store.add("2024-01", Decimal("45000"))

        assert store.delete(record.id) is True
        assert store.delete(record.id) is False
        assert len(store) == 0
        assert changes.calls == 2
        types = [e.event_type for e in audit.recent_events()]
        assert types == [
            AuditEventType.SALARY_ADJUSTMENT_DELETED,
            AuditEventType.SALARY_ADJUSTMENT_ADDED,
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
