"""
Salary Store

Owns the salary history. Each new record's adjustment amount is derived
from the closest earlier record, so the history reads as a list of
raises and cuts.
"""

from decimal import Decimal
from typing import Callable, Iterable, Optional

from ledger.audit import AuditLogger
from ledger.models.audit import AuditEventBuilder
from ledger.models.salary import SalaryAdjustment


class SalaryStore:
    """Salary adjustments keyed by id."""

    def __init__(
        self,
        adjustments: Optional[Iterable[SalaryAdjustment]] = None,
        audit_logger: Optional[AuditLogger] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._adjustments: dict[str, SalaryAdjustment] = {
            a.id: a for a in adjustments or []
        }
        self._audit = audit_logger
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._adjustments)

    def adjustments(self) -> list[SalaryAdjustment]:
        """History ordered newest first."""
        return sorted(self._adjustments.values(), key=lambda a: a.date, reverse=True)

    def previous(self, date: str) -> Optional[SalaryAdjustment]:
        """The latest record dated strictly before date."""
        earlier = [a for a in self._adjustments.values() if a.date < date]
        if not earlier:
            return None
        return max(earlier, key=lambda a: a.date)

    def add(
        self,
        date: str,
        total_salary: Decimal,
        adjustment_item: str = "",
        labor_insurance: Decimal = Decimal("0"),
        health_insurance: Decimal = Decimal("0"),
        meal_cost: Decimal = Decimal("0"),
        welfare_fund: Decimal = Decimal("0"),
    ) -> SalaryAdjustment:
        """
        Record a salary.

        The adjustment amount is the difference to the previous record,
        zero for the first one.
        """
        total_salary = Decimal(total_salary)
        previous = self.previous(date)
        change = total_salary - previous.total_salary if previous else Decimal("0")

        adjustment = SalaryAdjustment(
            date=date,
            total_salary=total_salary,
            adjustment_item=adjustment_item,
            adjustment_amount=change,
            labor_insurance=labor_insurance,
            health_insurance=health_insurance,
            meal_cost=meal_cost,
            welfare_fund=welfare_fund,
        )
        self._adjustments[adjustment.id] = adjustment

        self._log(AuditEventBuilder.salary_adjustment_added(
            adjustment.id, adjustment.date, total_salary, change,
        ))
        self._notify()
        return adjustment

    def delete(self, adjustment_id: str) -> bool:
        """Remove one record. Later records keep their stored adjustment."""
        if self._adjustments.pop(adjustment_id, None) is None:
            return False

        self._log(AuditEventBuilder.salary_adjustment_deleted(adjustment_id))
        self._notify()
        return True

    def replace_all(self, adjustments: Iterable[SalaryAdjustment]) -> None:
        self._adjustments = {a.id: a for a in adjustments}
        self._notify()

    def _log(self, event) -> None:
        if self._audit:
            self._audit.log(event)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()
