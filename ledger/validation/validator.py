"""
Entry-Boundary Validation

DESIGN DECISION: Raw user input and collaborator output are checked HERE,
before anything reaches the stores or the reconciliation core. Core
functions take typed values only and never parse strings.

Two layers:

PARSERS (parse_amount, parse_statement_day, parse_billing_month):
- Turn raw strings from a form into typed values
- Raise InvalidInputError on anything non-numeric or out of range

DRAFT VALIDATION (TransactionValidator), in two stages:
STAGE 1 - SCHEMA: required fields present, amount non-negative,
          card charges name a card
STAGE 2 - SEMANTIC: far-future dates, absurd amounts, unknown cards

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from ledger.billing.months import MonthKeyError, parse_month_key
from ledger.config import LedgerSettings, get_settings
from ledger.models.transaction import CARD_SENTINEL, PaymentMethod, TransactionDraft
from ledger.models.validation import ValidationIssue, ValidationResult


class InvalidInputError(ValueError):
    """Raw input could not be turned into the expected value."""
    pass


def parse_amount(raw) -> Decimal:
    """
    Parse a monetary amount typed by the user ("1,234" or "1234.5").

    Raises InvalidInputError for non-numeric or negative input.
    """
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if not text:
            raise InvalidInputError("Amount is required")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidInputError(f"Amount is not a number: {raw!r}")
    else:
        raise InvalidInputError(f"Amount is not a number: {raw!r}")

    if not value.is_finite():
        raise InvalidInputError(f"Amount is not a number: {raw!r}")
    if value < 0:
        raise InvalidInputError("Amount cannot be negative")
    return value


def parse_statement_day(raw) -> int:
    """
    Parse a statement closing day (1-31, or 0 to clear it).

    Raises InvalidInputError for anything else.
    """
    if isinstance(raw, bool):
        raise InvalidInputError(f"Statement day is not a number: {raw!r}")
    if isinstance(raw, int):
        day = raw
    else:
        text = str(raw).strip()
        if not text.isdigit():
            raise InvalidInputError(f"Statement day is not a number: {raw!r}")
        day = int(text)

    if not 0 <= day <= 31:
        raise InvalidInputError("Statement day must be between 0 and 31")
    return day


def parse_billing_month(raw: str) -> str:
    """Validate a YYYY-MM billing month key."""
    key = str(raw).strip()
    try:
        parse_month_key(key)
    except MonthKeyError as e:
        raise InvalidInputError(str(e))
    return key


class TransactionValidator:
    """
    Validates transaction drafts through a two-stage pipeline.

    The same checks apply to manual entry, imported rows and OCR/AI
    proposals; the source is only recorded for the audit trail.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or get_settings().ledger

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Transaction date is required",
                severity="error",
                suggested_fix="Enter the date shown on the receipt",
            ))

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif draft.amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount cannot be negative",
                severity="error",
                suggested_fix="Record refunds as a separate adjustment",
            ))

        if draft.payment_method is None:
            issues.append(ValidationIssue(
                field="payment_method",
                issue_type="missing",
                message="Payment method is required",
                severity="error",
                suggested_fix="Choose cash or credit card",
            ))
        elif draft.payment_method == PaymentMethod.CREDIT_CARD:
            if not draft.card_bank or draft.card_bank == CARD_SENTINEL:
                issues.append(ValidationIssue(
                    field="card_bank",
                    issue_type="missing",
                    message="Credit-card transactions must name a card",
                    severity="error",
                ))
        elif draft.card_bank and draft.card_bank != CARD_SENTINEL:
            issues.append(ValidationIssue(
                field="card_bank",
                issue_type="inconsistent",
                message="Cash transactions do not belong to a card; the card will not be stored",
                severity="warning",
            ))

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="No category given",
                severity="warning",
                suggested_fix="Pick a category so budgets stay accurate",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        known_banks: Optional[set[str]],
        known_categories: Optional[set[str]],
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.date and draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({draft.date}) is far in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if draft.amount is not None:
            if draft.amount > self._settings.max_transaction_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message=f"Amount ({draft.amount:,}) seems unusually high",
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))
            elif draft.amount == 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Amount is zero",
                    severity="warning",
                ))

        if (
            known_banks is not None
            and draft.payment_method == PaymentMethod.CREDIT_CARD
            and draft.card_bank
            and draft.card_bank not in known_banks
        ):
            issues.append(ValidationIssue(
                field="card_bank",
                issue_type="unknown_reference",
                message=f"Card '{draft.card_bank}' is not configured",
                severity="warning",
                suggested_fix="Add the card in settings so its statements can be reconciled",
            ))

        if (
            known_categories is not None
            and draft.category
            and draft.category not in known_categories
        ):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_reference",
                message=f"Category '{draft.category}' will be added as a new category",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        draft: TransactionDraft,
        known_banks: Optional[Iterable[str]] = None,
        known_categories: Optional[Iterable[str]] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Stage 2 only runs when stage 1 passes.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                draft,
                set(known_banks) if known_banks is not None else None,
                set(known_categories) if known_categories is not None else None,
                today or date.today(),
            )
            all_issues.extend(semantic_issues)

        warnings = [i.message for i in all_issues if i.severity == "warning"]

        return ValidationResult(
            source=draft.source,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary of validation results for display next to the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if not result.schema_valid:
            lines.append("Some required information is missing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
