"""Configuration module."""

from stockledger.config.logging import configure_logging, get_logger, ledger_operation
from stockledger.config.settings import (
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "StorageSettings",
    "LedgerSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "ledger_operation",
]
