"""
Budget Store

Owns the monthly cash-flow plans and the configured income sources.

A month's budget is materialized lazily: get() returns a default plan
(zero opening balance, one zero entry per income source, the configured
loan) WITHOUT storing it. The first edit persists it. Budgets are never
deleted automatically.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional
from uuid import uuid4

from ledger.audit import AuditLogger
from ledger.billing.months import parse_month_key
from ledger.models.audit import AuditEventBuilder
from ledger.models.budget import (
    CreditCardEntry,
    IncomeEntry,
    IncomeSource,
    MonthlyBudget,
)


EDITABLE_FIELDS = ("opening_balance", "incomes", "loan", "credit_cards")


class BudgetStore:
    """Monthly budgets keyed by "YYYY-MM" plus the income source list."""

    def __init__(
        self,
        budgets: Optional[Iterable[MonthlyBudget]] = None,
        income_sources: Optional[Iterable[IncomeSource]] = None,
        default_loan: Decimal = Decimal("0"),
        audit_logger: Optional[AuditLogger] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._budgets: dict[str, MonthlyBudget] = {b.month: b for b in budgets or []}
        self._sources: list[IncomeSource] = list(income_sources or [])
        self._default_loan = Decimal(default_loan)
        self._audit = audit_logger
        self._on_change = on_change

    # =========================================================================
    # READ
    # =========================================================================

    def get(self, month: str) -> MonthlyBudget:
        """The month's budget, or an unsaved default one."""
        parse_month_key(month)
        found = self._budgets.get(month)
        if found is not None:
            return found

        return MonthlyBudget(
            month=month,
            incomes=[IncomeEntry(source_id=s.id) for s in self._sources],
            loan=self._default_loan,
        )

    def is_persisted(self, month: str) -> bool:
        return month in self._budgets

    def budgets(self) -> list[MonthlyBudget]:
        """Stored budgets ordered by month."""
        return [self._budgets[m] for m in sorted(self._budgets)]

    def income_sources(self) -> list[IncomeSource]:
        return list(self._sources)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def update(self, month: str, **fields) -> MonthlyBudget:
        """Change any of opening_balance, incomes, loan, credit_cards."""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown budget fields: {', '.join(sorted(unknown))}")

        current = self.get(month)
        budget = MonthlyBudget.model_validate({**current.model_dump(), **fields})
        self._budgets[month] = budget

        self._log(AuditEventBuilder.budget_updated(month, sorted(fields)))
        self._notify()
        return budget

    def set_income(self, month: str, source_id: str, amount: Decimal) -> MonthlyBudget:
        """Set one income source's amount, adding the entry if it is missing."""
        amount = Decimal(amount)
        incomes = list(self.get(month).incomes)

        for index, entry in enumerate(incomes):
            if entry.source_id == source_id:
                incomes[index] = IncomeEntry(source_id=source_id, amount=amount)
                break
        else:
            incomes.append(IncomeEntry(source_id=source_id, amount=amount))

        return self.update(month, incomes=incomes)

    def set_card_amount(self, month: str, card_name: str, amount: Decimal) -> MonthlyBudget:
        """Set the manually entered bill amount for one card."""
        amount = Decimal(amount)
        cards = list(self.get(month).credit_cards)

        for index, entry in enumerate(cards):
            if entry.card_name == card_name:
                cards[index] = CreditCardEntry(card_name=card_name, amount=amount)
                break
        else:
            cards.append(CreditCardEntry(card_name=card_name, amount=amount))

        return self.update(month, credit_cards=cards)

    def add_income_source(self, name: str, default_day: Optional[int] = None) -> IncomeSource:
        name = name.strip()
        if not name:
            raise ValueError("Income source name is required")

        source = IncomeSource(id=uuid4().hex[:12], name=name, default_day=default_day)
        self._sources.append(source)
        self._log(AuditEventBuilder.income_source_added(source.id, source.name))
        self._notify()
        return source

    def delete_income_source(self, source_id: str) -> bool:
        """
        Remove a source from the configured list.

        Amounts already entered in stored budgets are kept.
        """
        remaining = [s for s in self._sources if s.id != source_id]
        if len(remaining) == len(self._sources):
            return False

        self._sources = remaining
        self._log(AuditEventBuilder.income_source_deleted(source_id))
        self._notify()
        return True

    def replace_all(
        self,
        budgets: Iterable[MonthlyBudget],
        income_sources: Iterable[IncomeSource],
    ) -> None:
        self._budgets = {b.month: b for b in budgets}
        self._sources = list(income_sources)
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
