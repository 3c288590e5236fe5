"""Validation package."""

from ledger.validation.validator import (
    InvalidInputError,
    TransactionValidator,
    parse_amount,
    parse_billing_month,
    parse_statement_day,
)

__all__ = [
    "InvalidInputError",
    "TransactionValidator",
    "parse_amount",
    "parse_billing_month",
    "parse_statement_day",
]
