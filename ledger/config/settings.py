"""
Configuration Management for Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds and defaults that the stores and reports rely on are declared
once, so every consumer reads the same values.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    snapshot_sheet_name: str = Field(
        default="LedgerSnapshot",
        description="Name of the sheet holding the chunked ledger document"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class SyncSettings(BaseSettings):
    """Remote snapshot synchronisation settings."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Enable remote synchronisation"
    )
    debounce_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Quiet period before local edits are written remotely"
    )
    chunk_size: int = Field(
        default=45000,
        ge=1000,
        le=50000,
        description="Characters per sheet cell when storing the snapshot JSON"
    )


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Budgets
    default_monthly_budget: Decimal = Field(
        default=Decimal("50000"),
        ge=0,
        description="Monthly spending budget used by the dashboard"
    )
    default_loan: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Loan deduction seeded into a new monthly budget"
    )
    card_amount_source: Literal["manual", "statement"] = Field(
        default="manual",
        description=(
            "Where budget projections take card amounts from: manually "
            "entered figures or each card's reconciled statement total"
        )
    )

    # Reconciliation
    balance_tolerance: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="A statement balances when |discrepancy| is below this"
    )
    card_payment_category: str = Field(
        default="信用卡出帳",
        description="Category used for card bill payments (excluded from breakdowns)"
    )

    # Defaults for a fresh ledger
    default_categories: str = Field(
        default="食,衣,住,行,育,樂,其他,信用卡出帳",
        description="Comma-separated list of default categories"
    )
    default_card_banks: str = Field(
        default="-,國泰,玉山,台新,永豐,富邦",
        description="Comma-separated list of default card banks"
    )

    # Series generation
    recurring_months: int = Field(
        default=12,
        ge=1,
        le=120,
        description="How many monthly siblings a recurring expense generates"
    )
    max_installment_periods: int = Field(
        default=60,
        ge=2,
        le=360,
        description="Upper bound on installment periods"
    )

    # Validation thresholds
    max_transaction_amount: Decimal = Field(
        default=Decimal("10000000"),
        description="Maximum reasonable transaction amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=400,
        description="How far in the future a transaction date can be"
    )

    @property
    def categories_list(self) -> list[str]:
        """Get default categories as a list."""
        return [c.strip() for c in self.default_categories.split(",") if c.strip()]

    @property
    def card_banks_list(self) -> list[str]:
        """Get default card banks as a list."""
        return [b.strip() for b in self.default_card_banks.split(",") if b.strip()]


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "sync", "ledger"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
