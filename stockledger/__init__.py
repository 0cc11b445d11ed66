"""Stock Ledger - multi-warehouse stock movements, transfers and valuation."""

__version__ = "1.0.0"
