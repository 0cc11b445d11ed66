"""Storage infrastructure implementations."""

from stockledger.infrastructure.storage.sqlite import (
    SQLiteAuditLogStore,
    SQLiteMasterDataStore,
    SQLiteStockLedgerStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteAuditLogStore",
    "SQLiteMasterDataStore",
    "SQLiteStockLedgerStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
