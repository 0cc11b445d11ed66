"""Core domain entities."""

from stockledger.core.entities.audit import (
    STOCK_LINES_TABLE,
    AuditEntry,
    AuditOperation,
)
from stockledger.core.entities.master_data import (
    Product,
    ReorderPoint,
    Warehouse,
)
from stockledger.core.entities.stock import (
    CostLot,
    Movement,
    MovementType,
    ReferenceType,
    StockLine,
    StockLineKey,
)
from stockledger.core.entities.valuation import (
    ReorderCheck,
    ReorderStatus,
    StockValuation,
    ValuationMethod,
)

__all__ = [
    # Stock
    "CostLot",
    "Movement",
    "MovementType",
    "ReferenceType",
    "StockLine",
    "StockLineKey",
    # Master data
    "Product",
    "ReorderPoint",
    "Warehouse",
    # Audit
    "AuditEntry",
    "AuditOperation",
    "STOCK_LINES_TABLE",
    # Valuation
    "ReorderCheck",
    "ReorderStatus",
    "StockValuation",
    "ValuationMethod",
]
