"""
Ledger Snapshot

The single document exchanged with the persistence collaborator.
The core treats it as opaque: storage decides transport and format.
"""

from decimal import Decimal

from pydantic import Field

from ledger.models.budget import IncomeSource, MonthlyBudget
from ledger.models.card import CardSetting
from ledger.models.salary import SalaryAdjustment
from ledger.models.transaction import LedgerModel, Money, Transaction


class LedgerSnapshot(LedgerModel):
    """Everything needed to restore a ledger."""

    transactions: list[Transaction] = Field(default_factory=list)
    card_settings: dict[str, CardSetting] = Field(default_factory=dict)
    budgets: list[MonthlyBudget] = Field(default_factory=list)
    income_sources: list[IncomeSource] = Field(default_factory=list)
    salary_adjustments: list[SalaryAdjustment] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    card_banks: list[str] = Field(default_factory=list)
    budget: Money = Field(
        default=Decimal("50000"),
        ge=0,
        description="Monthly spending budget"
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "LedgerSnapshot":
        return cls.model_validate_json(raw)
