"""Monthly cash-flow projection."""

from ledger.budget.projection import (
    CARD_AMOUNT_SOURCES,
    project_month,
    resolve_card_amounts,
)

__all__ = [
    "CARD_AMOUNT_SOURCES",
    "project_month",
    "resolve_card_amounts",
]
