"""Configuration package."""

from cashledger.config.settings import (
    FREE_TIER_LIMIT,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    TaxonomySettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "FREE_TIER_LIMIT",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "TaxonomySettings",
    "get_settings",
    "validate_all_settings",
]
