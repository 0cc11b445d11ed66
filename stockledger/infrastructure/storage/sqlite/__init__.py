"""SQLite storage implementations."""

from stockledger.infrastructure.storage.sqlite.audit_store import SQLiteAuditLogStore
from stockledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from stockledger.infrastructure.storage.sqlite.master_data_store import (
    SQLiteMasterDataStore,
)
from stockledger.infrastructure.storage.sqlite.stock_ledger_store import (
    SQLiteLedgerSession,
    SQLiteStockLedgerStore,
)

# Singleton instances
_stock_ledger_store: SQLiteStockLedgerStore | None = None
_master_data_store: SQLiteMasterDataStore | None = None
_audit_log_store: SQLiteAuditLogStore | None = None


async def get_stock_ledger_store() -> SQLiteStockLedgerStore:
    """Get singleton stock ledger store instance."""
    global _stock_ledger_store
    if _stock_ledger_store is None:
        _stock_ledger_store = SQLiteStockLedgerStore()
    return _stock_ledger_store


async def get_master_data_store() -> SQLiteMasterDataStore:
    """Get singleton master data store instance."""
    global _master_data_store
    if _master_data_store is None:
        _master_data_store = SQLiteMasterDataStore()
    return _master_data_store


async def get_audit_log_store() -> SQLiteAuditLogStore:
    """Get singleton audit log store instance."""
    global _audit_log_store
    if _audit_log_store is None:
        _audit_log_store = SQLiteAuditLogStore()
    return _audit_log_store


def reset_stores() -> None:
    """Reset store singletons (for testing)."""
    global _stock_ledger_store, _master_data_store, _audit_log_store
    _stock_ledger_store = None
    _master_data_store = None
    _audit_log_store = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteAuditLogStore",
    "SQLiteLedgerSession",
    "SQLiteMasterDataStore",
    "SQLiteStockLedgerStore",
    # Factory functions
    "get_stock_ledger_store",
    "get_master_data_store",
    "get_audit_log_store",
    "reset_stores",
]
