"""Installment and recurring series package."""

from ledger.installments.grouper import (
    ParsedInstallment,
    group_installments,
    ongoing_installments,
    parse_installment_description,
)
from ledger.installments.series import (
    generate_installments,
    generate_recurring,
    new_group_id,
    split_installment_amount,
)

__all__ = [
    "ParsedInstallment",
    "generate_installments",
    "generate_recurring",
    "group_installments",
    "new_group_id",
    "ongoing_installments",
    "parse_installment_description",
    "split_installment_amount",
]
