"""
Salary History Models

A SalaryAdjustment records one pay change: the new gross salary, what
changed, and the fixed payroll deductions at that point.
"""

from decimal import Decimal
from uuid import uuid4

from pydantic import Field

from ledger.models.transaction import Amount, LedgerModel, Money


# The entry form picks a month, older records carry a full date
SALARY_DATE_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])(-\d{2})?$"


class SalaryAdjustment(LedgerModel):
    """
    One entry of the salary history.

    adjustment_amount is the change against the previous record and may
    be negative.
    """

    id: str = Field(default_factory=lambda: uuid4().hex[:12], min_length=1)
    date: str = Field(..., pattern=SALARY_DATE_PATTERN)
    total_salary: Amount
    adjustment_item: str = Field(default="", max_length=200)
    adjustment_amount: Money = Decimal("0")

    labor_insurance: Amount = Decimal("0")
    health_insurance: Amount = Decimal("0")
    meal_cost: Amount = Decimal("0")
    welfare_fund: Amount = Decimal("0")

    @property
    def total_deductions(self) -> Decimal:
        return (
            self.labor_insurance
            + self.health_insurance
            + self.meal_cost
            + self.welfare_fund
        )

    @property
    def net_pay(self) -> Decimal:
        """Take-home pay after the payroll deductions."""
        return self.total_salary - self.total_deductions
