"""
Statement State Store

Owns the per-card settings map (bank -> CardSetting). Settings are passed
explicitly to the cycle calculator and the aggregator; nothing reads them
from ambient state.

DESIGN DECISION: Marking a month issued SNAPSHOTS the entered statement
total into statement_amounts. From then on the reconciled total for that
month is the recorded figure, regardless of later transaction edits.
Un-issuing keeps the recorded amount.
"""

from decimal import Decimal
from typing import Callable, Mapping, Optional

from ledger.audit import AuditLogger
from ledger.billing.months import parse_month_key
from ledger.models.audit import AuditEventBuilder
from ledger.models.card import CardSetting
from ledger.models.transaction import CARD_SENTINEL


class StatementStore:
    """Card statement configuration and finalized-statement state."""

    def __init__(
        self,
        settings: Optional[Mapping[str, CardSetting]] = None,
        audit_logger: Optional[AuditLogger] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._settings: dict[str, CardSetting] = dict(settings or {})
        self._audit = audit_logger
        self._on_change = on_change

    # =========================================================================
    # READ
    # =========================================================================

    def get(self, bank: str) -> Optional[CardSetting]:
        return self._settings.get(bank)

    def as_dict(self) -> dict[str, CardSetting]:
        """Copy of the whole settings map, safe to hand to pure functions."""
        return {bank: s.model_copy(deep=True) for bank, s in self._settings.items()}

    def banks(self) -> list[str]:
        return list(self._settings)

    def is_issued(self, bank: str, billing_month: str) -> bool:
        setting = self._settings.get(bank)
        return setting is not None and billing_month in setting.issued_months

    def statement_amount(self, bank: str, billing_month: str) -> Optional[Decimal]:
        setting = self._settings.get(bank)
        if setting is None:
            return None
        return setting.statement_amounts.get(billing_month)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def set_statement_day(self, bank: str, day: int) -> CardSetting:
        """Set the closing day (1-31, or 0 to clear it)."""
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 31:
            raise ValueError(f"Statement day must be an integer between 0 and 31, got {day!r}")

        setting = self._update(bank, statement_day=day)
        self._log(AuditEventBuilder.statement_day_set(bank, day))
        self._notify()
        return setting

    def set_next_month_flag(self, bank: str, flag: bool) -> CardSetting:
        setting = self._update(bank, is_next_month=bool(flag))
        self._log(AuditEventBuilder.next_month_flag_set(bank, bool(flag)))
        self._notify()
        return setting

    def toggle_issued(
        self,
        bank: str,
        billing_month: str,
        entered_statement_total: Optional[Decimal] = None,
    ) -> bool:
        """
        Mark a billing month issued, or un-mark it.

        When marking, a given entered_statement_total is stored as the
        month's statement amount. Un-marking keeps any stored amount.

        Returns the new issued state.
        """
        parse_month_key(billing_month)
        current = self._current(bank)

        issued = list(current.issued_months)
        amounts = dict(current.statement_amounts)
        snapshot = None

        if billing_month in issued:
            issued.remove(billing_month)
            now_issued = False
        else:
            issued.append(billing_month)
            now_issued = True
            if entered_statement_total is not None:
                snapshot = Decimal(entered_statement_total)
                amounts[billing_month] = snapshot

        self._update(bank, issued_months=issued, statement_amounts=amounts)
        self._log(AuditEventBuilder.issued_toggled(bank, billing_month, now_issued, snapshot))
        self._notify()
        return now_issued

    def record_statement_amount(
        self,
        bank: str,
        billing_month: str,
        amount: Decimal,
    ) -> CardSetting:
        """Record the statement total for a month without changing its issued state."""
        parse_month_key(billing_month)
        amount = Decimal(amount)

        amounts = dict(self._current(bank).statement_amounts)
        amounts[billing_month] = amount

        setting = self._update(bank, statement_amounts=amounts)
        self._log(AuditEventBuilder.statement_amount_recorded(bank, billing_month, amount))
        self._notify()
        return setting

    def replace_all(self, settings: Mapping[str, CardSetting]) -> None:
        self._settings = dict(settings)
        self._notify()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _current(self, bank: str) -> CardSetting:
        if not bank or bank == CARD_SENTINEL:
            raise ValueError("Statement settings require a real card, not the cash sentinel")
        return self._settings.get(bank) or CardSetting()

    def _update(self, bank: str, **fields) -> CardSetting:
        current = self._current(bank)
        setting = CardSetting.model_validate({**current.model_dump(), **fields})
        self._settings[bank] = setting
        return setting

    def _log(self, event) -> None:
        if self._audit:
            self._audit.log(event)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()
