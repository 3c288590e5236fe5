"""
Validation Result Models

Validation never silently fixes data. It reports issues so the person
entering the transaction can correct them.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field


IssueSeverity = Literal["error", "warning", "info"]


class ValidationIssue(BaseModel):
    """One problem found in a transaction draft."""

    field: str
    issue_type: str = Field(
        ...,
        description="missing, invalid_value, inconsistent, future_date, "
                    "suspicious_value or unknown_reference"
    )
    message: str
    severity: IssueSeverity
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Outcome of draft validation.

    schema_valid covers required fields and the cash/card rules;
    semantic_valid covers the sanity checks against settings and is
    False whenever the schema stage failed, since it never ran.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    source: str = "manual"

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Messages of warning-level issues, for display"
    )

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
