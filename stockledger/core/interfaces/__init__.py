"""Core interfaces (ports) for dependency injection."""

from stockledger.core.interfaces.audit_sink import IAuditSink
from stockledger.core.interfaces.master_data import IMasterDataStore
from stockledger.core.interfaces.stock_ledger_store import (
    ILedgerSession,
    IStockLedgerStore,
    LineSnapshot,
)

__all__ = [
    "IAuditSink",
    "ILedgerSession",
    "IMasterDataStore",
    "IStockLedgerStore",
    "LineSnapshot",
]
