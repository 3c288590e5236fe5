"""
Series Generation

Creates the sibling transactions of a recurring expense or an installment
purchase in one batch. Each sibling is dated one calendar month after the
previous one, counted from the start date (clamped to month end), so
Jan 31 -> Feb 29 -> Mar 31.
"""

from decimal import Decimal
from uuid import uuid4

from ledger.billing.months import add_months
from ledger.models.transaction import PaymentMethod, Transaction, new_transaction_id


def new_group_id() -> str:
    return uuid4().hex[:12]


def split_installment_amount(total: Decimal, periods: int) -> list[Decimal]:
    """
    Split total into per-period amounts.

    Every period gets the floor share; the whole remainder goes to the
    first period. 1000 over 3 periods is [334, 333, 333].
    """
    if periods < 1:
        raise ValueError("periods must be at least 1")
    total = Decimal(total)
    if total < 0:
        raise ValueError("total must not be negative")

    per_period = total // periods
    remainder = total - per_period * periods
    return [per_period + remainder] + [per_period] * (periods - 1)


def generate_installments(base: Transaction, periods: int) -> list[Transaction]:
    """
    Expand a credit-card purchase into `periods` monthly installments.

    base.amount is the TOTAL price; base.date is the first period's date.
    Siblings share an installment_group_id; base.description stays the
    plain name and the "(k/n)" suffix is only rendered for display.
    """
    if base.payment_method != PaymentMethod.CREDIT_CARD:
        raise ValueError("Installments are only available for credit-card purchases")
    if periods < 2:
        raise ValueError("An installment plan needs at least 2 periods")

    group_id = new_group_id()
    amounts = split_installment_amount(base.amount, periods)

    siblings = []
    for index, amount in enumerate(amounts):
        siblings.append(base.model_copy(update={
            "id": new_transaction_id(),
            "date": add_months(base.date, index),
            "amount": amount,
            "is_installment": True,
            "is_recurring": False,
            "is_reconciled": False,
            "reconciled_date": None,
            "installment_period": index + 1,
            "installment_total": periods,
            "installment_group_id": group_id,
        }))
    return siblings


def generate_recurring(base: Transaction, months: int = 12) -> list[Transaction]:
    """Repeat base every month for `months` months under one recurring_group_id."""
    if months < 1:
        raise ValueError("months must be at least 1")

    group_id = new_group_id()
    siblings = []
    for index in range(months):
        siblings.append(base.model_copy(update={
            "id": new_transaction_id(),
            "date": add_months(base.date, index),
            "is_recurring": True,
            "is_installment": False,
            "is_reconciled": False,
            "reconciled_date": None,
            "recurring_group_id": group_id,
        }))
    return siblings
