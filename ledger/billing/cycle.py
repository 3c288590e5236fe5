"""
Billing Cycle Calculator

THE single definition of a card's billing cycle. The reconciliation view,
the dashboard and the budget projection all call cycle_range(); none of
them compute cycle boundaries on their own.

For billing month M and statement day D:
    end   = day D of M
    start = day D + 1 of M - 1

so cycle(M).start is always the day after cycle(M - 1).end.

DESIGN DECISION: is_next_month does NOT shift this arithmetic. It only
describes how the bank labels its statements. Recorded statement amounts
are keyed by the month computed here, and shifting for some cards but not
others is what made different views disagree.
"""

from typing import Optional

from ledger.billing.months import day_in_month, parse_month_key
from ledger.models.card import CardSetting, CycleRange


def cycle_range(
    setting: Optional[CardSetting],
    billing_month: str,
) -> Optional[CycleRange]:
    """
    Date range covered by the statement for billing_month.

    Returns None when the card has no setting or no statement day; callers
    must then treat the cycle as unbounded.

    Raises MonthKeyError for a malformed billing month.
    """
    year, month = parse_month_key(billing_month)

    if setting is None or not setting.statement_day:
        return None

    day = setting.statement_day
    end = day_in_month(year, month, day)
    start = day_in_month(year, month - 1, day + 1)

    return CycleRange(start=start, end=end)


def cycle_for_bank(
    card_settings: dict[str, CardSetting],
    bank: str,
    billing_month: str,
) -> Optional[CycleRange]:
    """cycle_range() for a bank name; unknown banks get no cycle."""
    return cycle_range(card_settings.get(bank), billing_month)
