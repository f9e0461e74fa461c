"""Configuration package."""

from bill_tracker.config.settings import (
    AppSettings,
    BillMatchingSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BillMatchingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
