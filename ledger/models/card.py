"""
Card Statement Models

CardSetting holds everything the ledger knows about one card's statements:
the closing day, which billing months were finalized, and the statement
totals recorded for them.
"""

from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledger.models.transaction import LedgerModel, Money, MonthKey


class CycleRange(BaseModel):
    """Inclusive date range covered by one statement."""
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1

    def next_start(self) -> date:
        """First day of the following cycle."""
        return self.end + timedelta(days=1)


class CardSetting(LedgerModel):
    """
    Statement configuration and state for a single card.

    DESIGN DECISION: issued_months and statement_amounts are independent.
    A month can have a recorded amount without being issued and vice versa.
    """

    statement_day: int = Field(
        default=0,
        ge=0,
        le=31,
        description="Day of month the statement closes (0 = not configured)"
    )
    is_next_month: bool = Field(
        default=False,
        description="Bank bills the closing date in the following month (display only)"
    )
    issued_months: list[MonthKey] = Field(
        default_factory=list,
        description="Billing months marked as finalized"
    )
    statement_amounts: dict[MonthKey, Money] = Field(
        default_factory=dict,
        description="Authoritative statement totals keyed by billing month"
    )

    @field_validator('statement_day', mode='before')
    @classmethod
    def default_missing_day(cls, v):
        """Older snapshots store null for an unset day."""
        return 0 if v is None else v

    @field_validator('issued_months')
    @classmethod
    def dedupe_months(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @property
    def is_configured(self) -> bool:
        return self.statement_day > 0
