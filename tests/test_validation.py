"""
Tests for entry-boundary parsing and draft validation.
"""

import pytest
from datetime import date
from decimal import Decimal

from ledger.config import LedgerSettings
from ledger.models import PaymentMethod, TransactionDraft
from ledger.validation import (
    InvalidInputError,
    TransactionValidator,
    parse_amount,
    parse_billing_month,
    parse_statement_day,
)


TODAY = date(2024, 3, 20)


class TestParsers:
    """Raw form input is turned into typed values or rejected."""

    @pytest.mark.parametrize("raw,expected", [
        ("1234", Decimal("1234")),
        (" 1,234.50 ", Decimal("1234.50")),
        (0, Decimal("0")),
        (12.5, Decimal("12.5")),
        (Decimal("7"), Decimal("7")),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "12abc", "-5", "NaN", "Infinity", None, True])
    def test_parse_amount_rejects(self, raw):
        with pytest.raises(InvalidInputError):
            parse_amount(raw)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            parse_amount("abc")

    @pytest.mark.parametrize("raw,expected", [("15", 15), (" 1 ", 1), (31, 31), ("0", 0)])
    def test_parse_statement_day(self, raw, expected):
        assert parse_statement_day(raw) == expected

    @pytest.mark.parametrize("raw", ["32", "-1", "abc", "", "15.5", True])
    def test_parse_statement_day_rejects(self, raw):
        with pytest.raises(InvalidInputError):
            parse_statement_day(raw)

    def test_parse_billing_month(self):
        assert parse_billing_month(" 2024-03 ") == "2024-03"
        with pytest.raises(InvalidInputError):
            parse_billing_month("2024-13")


class TestTransactionValidator:
    """Tests for the two-stage draft validation."""

    def _validator(self) -> TransactionValidator:
        return TransactionValidator(LedgerSettings())

    def test_valid_draft(self):
        draft = TransactionDraft(
            date=date(2024, 3, 1),
            amount=Decimal("120"),
            payment_method=PaymentMethod.CREDIT_CARD,
            card_bank="國泰",
            category="食",
        )
        result = self._validator().validate(draft, known_banks=["國泰"], known_categories=["食"], today=TODAY)
        assert result.is_valid
        assert result.issues == []
        assert self._validator().get_user_friendly_summary(result) == "All checks passed."

    def test_missing_required_fields(self):
        result = self._validator().validate(TransactionDraft(), today=TODAY)
        assert not result.schema_valid
        assert not result.is_valid
        assert {i.field for i in result.issues if i.severity == "error"} == {
            "date", "amount", "payment_method",
        }
        summary = self._validator().get_user_friendly_summary(result)
        assert "Amount is required" in summary

    def test_negative_amount_is_error(self):
        draft = TransactionDraft(
            date=date(2024, 3, 1),
            amount=Decimal("-10"),
            payment_method=PaymentMethod.CASH,
            category="食",
        )
        result = self._validator().validate(draft, today=TODAY)
        assert not result.is_valid
        assert result.issues[0].issue_type == "invalid_value"

    def test_card_charge_needs_bank(self):
        draft = TransactionDraft(
            date=date(2024, 3, 1),
            amount=Decimal("10"),
            payment_method=PaymentMethod.CREDIT_CARD,
            card_bank="-",
            category="食",
        )
        result = self._validator().validate(draft, today=TODAY)
        assert not result.is_valid
        assert result.issues[0].field == "card_bank"

    def test_cash_with_bank_is_warning_only(self):
        draft = TransactionDraft(
            date=date(2024, 3, 1),
            amount=Decimal("10"),
            payment_method=PaymentMethod.CASH,
            card_bank="國泰",
            category="食",
        )
        result = self._validator().validate(draft, today=TODAY)
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_semantic_warnings(self):
        draft = TransactionDraft(
            date=date(2026, 1, 1),
            amount=Decimal("20000000"),
            payment_method=PaymentMethod.CREDIT_CARD,
            card_bank="Unknown Bank",
            category="新類別",
        )
        result = self._validator().validate(draft, known_banks=["國泰"], known_categories=["食"], today=TODAY)
        assert result.is_valid
        types = {i.issue_type for i in result.issues}
        assert types == {"future_date", "suspicious_value", "unknown_reference"}
        assert any(i.severity == "info" for i in result.issues)
        assert "Please verify the following:" in self._validator().get_user_friendly_summary(result)

    def test_semantic_stage_skipped_on_schema_errors(self):
        draft = TransactionDraft(date=date(2030, 1, 1), amount=Decimal("5"))
        result = self._validator().validate(draft, today=TODAY)
        assert not result.semantic_valid
        assert all(i.issue_type != "future_date" for i in result.issues)

    def test_source_recorded(self):
        draft = TransactionDraft(source="ocr")
        assert self._validator().validate(draft, today=TODAY).source == "ocr"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
