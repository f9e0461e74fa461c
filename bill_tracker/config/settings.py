"""
Configuration Management for Bill Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The matching core only ever reads these values; it never mutates them
and never range-checks them (a negative tolerance simply matches nothing).
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillMatchingSettings(BaseSettings):
    """
    Thresholds used when scoring transactions against bill occurrences.

    Each require_* flag turns the corresponding signal into a hard gate
    for the matcher. minimum_score is the auto-match threshold used by
    reconciliation; anything below it can only be suggested.
    """

    model_config = SettingsConfigDict(
        env_prefix="BILL_MATCHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    amount_tolerance: Decimal = Field(
        default=Decimal("5.00"),
        description="Largest difference between paid and expected amount that still counts as a match"
    )
    date_window_days: int = Field(
        default=7,
        description="Largest distance in days between transaction and occurrence date"
    )
    minimum_score: int = Field(
        default=60,
        description="Score (0-100) required for an automatic match"
    )
    require_description_match: bool = Field(
        default=False,
        description="Only match when the description signal fired"
    )
    require_amount_match: bool = Field(
        default=True,
        description="Only match when the amount is within tolerance"
    )
    require_date_window: bool = Field(
        default=True,
        description="Only match when the dates are within the window"
    )


class StorageSettings(BaseSettings):
    """Local ledger persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_path: Path = Field(
        default=Path("data/ledger.json"),
        description="JSON key-value file holding the ledger blob"
    )
    storage_key: str = Field(
        default="transactions",
        min_length=1,
        description="Key the whole transaction list is stored under"
    )
    audit_log_path: Path = Field(
        default=Path("data/audit.jsonl"),
        description="Append-only JSON lines audit log"
    )

    @field_validator("data_path", "audit_log_path")
    @classmethod
    def warn_missing_parent(cls, v: Path) -> Path:
        """Warn if the parent directory doesn't exist (it is created on first write)."""
        if not v.parent.exists():
            import warnings
            warnings.warn(
                f"Directory {v.parent} does not exist yet. "
                "It will be created on the first save."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Manual matching
    manual_match_tolerance: Decimal = Field(
        default=Decimal("5.00"),
        description="Amount tolerance applied when a user links a transaction by hand"
    )
    suggestion_floor_score: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Lowest score still shown as a suggested match"
    )


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
    def matching(self) -> BillMatchingSettings:
        return BillMatchingSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


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

    for name in ("matching", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
