"""
Installment Grouper

Reconstructs multi-period purchases from their sibling transactions and
reports how far each one has been paid off.

Transactions created by this ledger carry installment_period /
installment_total / installment_group_id and are grouped on those fields.
Older and imported records only have the period encoded in the
description; parse_installment_description() is the fallback for them and
is never applied to records that have the structured fields.
"""

import re
from typing import Iterable, NamedTuple, Optional

from ledger.billing.months import add_months, month_key_of
from ledger.models.reconciliation import InstallmentGroup
from ledger.models.transaction import Transaction


class ParsedInstallment(NamedTuple):
    base_name: str
    current_period: int
    total_periods: int


# Priority order matters: the more specific forms must win.
_DESCRIPTION_PATTERNS = [
    re.compile(r"^(?P<name>.*?)\s*\(期(?P<k>\d+)/(?P<n>\d+)\)\s*$"),   # name (期k/n)
    re.compile(r"^(?P<name>.*?)\s*分期(?P<k>\d+)/(?P<n>\d+)\s*$"),      # name分期k/n
    re.compile(r"^(?P<name>.*?)\s*\((?P<k>\d+)/(?P<n>\d+)\)\s*$"),      # name (k/n)
    re.compile(r"^(?P<name>.*?)\s*(?P<k>\d+)/(?P<n>\d+)\s*$"),          # name k/n
]

_PERIOD_HINT = re.compile(r"\d+/\d+")


def parse_installment_description(description: str) -> Optional[ParsedInstallment]:
    """
    Parse "name (k/n)" style suffixes from a legacy description.

    Returns None when no pattern matches or the numbers make no sense.
    """
    text = description.strip()
    for pattern in _DESCRIPTION_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        current = int(match.group("k"))
        total = int(match.group("n"))
        if total < 1 or current < 1 or current > total:
            return None
        return ParsedInstallment(match.group("name").strip(), current, total)
    return None


def _group_key(t: Transaction) -> Optional[tuple[str, str, int]]:
    """(group key, base name, total periods) for an installment candidate."""
    if t.installment_total is not None:
        key = t.installment_group_id or f"name:{t.description}"
        return key, t.description, t.installment_total

    if not (t.is_installment or _PERIOD_HINT.search(t.description)):
        return None

    parsed = parse_installment_description(t.description)
    if parsed is None:
        return None
    return f"name:{parsed.base_name}", parsed.base_name, parsed.total_periods


def group_installments(transactions: Iterable[Transaction]) -> list[InstallmentGroup]:
    """
    Group installment transactions into purchases.

    Within a group the earliest transaction defines the per-period amount,
    the total period count and the start date. Groups are returned in
    order of their first transaction.
    """
    members: dict[str, list[Transaction]] = {}

    for t in transactions:
        found = _group_key(t)
        if found is None:
            continue
        members.setdefault(found[0], []).append(t)

    groups = []
    for key, txs in members.items():
        txs.sort(key=lambda t: t.date)
        first = txs[0]
        _, base_name, total = _group_key(first)
        paid = sum(1 for t in txs if t.is_reconciled)

        groups.append(InstallmentGroup(
            group_key=key,
            base_name=base_name,
            card_bank=first.card_bank,
            total_periods=total,
            paid_periods=paid,
            remaining_periods=total - paid,
            amount_per_period=first.amount,
            progress=paid / total,
            start_date=first.date,
            end_month=month_key_of(add_months(first.date, total - 1)),
            transaction_ids=[t.id for t in txs],
        ))

    groups.sort(key=lambda g: g.start_date)
    return groups


def ongoing_installments(groups: Iterable[InstallmentGroup]) -> list[InstallmentGroup]:
    """Groups that still have unpaid periods."""
    return [g for g in groups if not g.is_completed]
