"""Dashboard reports."""

from ledger.reports.dashboard import (
    available_years,
    card_statuses,
    category_breakdown,
    filter_period,
    spending_overview,
    top_transactions,
)

__all__ = [
    "available_years",
    "card_statuses",
    "category_breakdown",
    "filter_period",
    "spending_overview",
    "top_transactions",
]
