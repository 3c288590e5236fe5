"""
Transaction Models for Household Ledger

These models define the strict schemas for every spending record.
They are designed to:
1. Enforce the cash / credit-card invariants at construction time
2. Load existing camelCase snapshots unchanged
3. Be serializable for storage and logging

DESIGN DECISION: Installment metadata is stored in first-class fields
(installment_period / installment_total / installment_group_id).
The "name (k/n)" suffix is rendered for display and never parsed back,
except for legacy records that predate these fields.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Card identifier used by non-card transactions
CARD_SENTINEL = "-"

# Billing month keys look like "2024-03"
MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

MonthKey = Annotated[str, Field(pattern=MONTH_KEY_PATTERN)]
PostingDate = Annotated[date, Field(description="Posting date of the transaction")]


def _money_to_json(value: Decimal):
    """Whole amounts as JSON integers, fractional ones as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Snapshots store plain JSON numbers so the web app can read them back
Money = Annotated[Decimal, PlainSerializer(_money_to_json, when_used="json")]
Amount = Annotated[Money, Field(ge=0, description="Amount in currency units")]


def new_transaction_id() -> str:
    """Generate an opaque transaction identifier."""
    return uuid4().hex[:16]


class LedgerModel(BaseModel):
    """
    Base for all persisted ledger records.

    Serializes with camelCase aliases so documents stay compatible with
    existing snapshots, while Python code uses snake_case names.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENUMS
# =============================================================================

class PaymentMethod(str, Enum):
    """
    How a transaction was paid.

    Snapshots store the display labels 現金 / 刷卡, which the web app
    reads back. Both the labels and the member values are accepted.
    """
    CASH = "cash"
    CREDIT_CARD = "credit_card"

    @classmethod
    def _missing_(cls, value):
        legacy = {
            "現金": cls.CASH,
            "刷卡": cls.CREDIT_CARD,
        }
        if isinstance(value, str):
            key = value.strip()
            if key in legacy:
                return legacy[key]
            for member in cls:
                if member.name == key.upper():
                    return member
        return None

    @property
    def label(self) -> str:
        return _PAYMENT_LABELS[self]


_PAYMENT_LABELS = {
    PaymentMethod.CASH: "現金",
    PaymentMethod.CREDIT_CARD: "刷卡",
}


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(LedgerModel):
    """
    A single recorded expense.

    CRITICAL: Cash transactions never carry a card bank. The sentinel "-"
    is enforced here so no downstream consumer has to re-check it.
    """

    id: str = Field(
        default_factory=new_transaction_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    date: PostingDate
    amount: Amount
    payment_method: PaymentMethod = Field(
        ...,
        description="Cash or credit card"
    )
    card_bank: str = Field(
        default=CARD_SENTINEL,
        description="Card the expense was charged to"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="Budget category label"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Free-form description"
    )

    # Reconciliation state
    is_reconciled: bool = False
    reconciled_date: Optional[datetime] = None
    is_paid: Optional[bool] = None

    # Multi-period series
    is_recurring: bool = False
    is_installment: bool = False
    recurring_group_id: Optional[str] = None
    installment_period: Optional[int] = Field(default=None, ge=1)
    installment_total: Optional[int] = Field(default=None, ge=1)
    installment_group_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_payment_fields(self) -> 'Transaction':
        """Validate payment and series invariants."""
        if self.payment_method == PaymentMethod.CASH or not self.card_bank:
            self.card_bank = CARD_SENTINEL

        if self.is_recurring and self.is_installment:
            raise ValueError("A transaction cannot be both recurring and an installment")

        if (self.installment_period is None) != (self.installment_total is None):
            raise ValueError("Installment period and total must be set together")

        if (
            self.installment_period is not None
            and self.installment_period > self.installment_total
        ):
            raise ValueError("Installment period cannot exceed the total number of periods")

        return self

    @property
    def is_card(self) -> bool:
        """Is this a credit-card charge subject to statement cycles?"""
        return (
            self.payment_method == PaymentMethod.CREDIT_CARD
            and self.card_bank != CARD_SENTINEL
        )

    @property
    def month_key(self) -> str:
        """Calendar month of the posting date (YYYY-MM)."""
        return self.date.strftime("%Y-%m")

    @property
    def display_description(self) -> str:
        """Description with the installment suffix rendered for display."""
        if self.installment_total is not None:
            return f"{self.description} ({self.installment_period}/{self.installment_total})"
        return self.description

    @field_serializer("payment_method", when_used="json")
    def _serialize_payment_method(self, method: PaymentMethod) -> str:
        return method.label


class TransactionDraft(LedgerModel):
    """
    A proposed transaction from manual entry, an import or an OCR/AI helper.

    CRITICAL: This is PROPOSED data, NOT verified.
    It MUST pass TransactionValidator before becoming a Transaction.
    All fields are optional because collaborators might miss some.
    """

    date: Optional[PostingDate] = None
    amount: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
    card_bank: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    source: str = Field(
        default="manual",
        pattern="^(manual|import|ocr|ai)$",
        description="Where the draft came from"
    )

    def to_transaction(self, **overrides) -> Transaction:
        """
        Build a Transaction from this draft.

        Raises ValueError if a required field is still missing.
        """
        missing = [
            name for name in ("date", "amount", "payment_method")
            if getattr(self, name) is None and name not in overrides
        ]
        if missing:
            raise ValueError(f"Draft is missing required fields: {', '.join(missing)}")

        fields = {
            "date": self.date,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "card_bank": self.card_bank or CARD_SENTINEL,
            "category": self.category or "",
            "description": self.description or "",
        }
        fields.update(overrides)
        return Transaction(**fields)
