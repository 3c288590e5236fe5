"""Billing cycle, classification and reconciliation package."""

from ledger.billing.months import (
    MonthKeyError,
    add_months,
    day_in_month,
    in_period,
    month_key,
    month_key_of,
    next_month,
    parse_month_key,
    previous_month,
    shift_month,
)
from ledger.billing.cycle import cycle_for_bank, cycle_range
from ledger.billing.classifier import bucket_total, bucket_transactions, classify
from ledger.billing.aggregator import (
    aggregate,
    card_summary,
    reconciled_total_in_cycle,
)

__all__ = [
    "MonthKeyError",
    "add_months",
    "aggregate",
    "bucket_total",
    "bucket_transactions",
    "card_summary",
    "classify",
    "cycle_for_bank",
    "cycle_range",
    "day_in_month",
    "in_period",
    "month_key",
    "month_key_of",
    "next_month",
    "parse_month_key",
    "previous_month",
    "reconciled_total_in_cycle",
    "shift_month",
]
