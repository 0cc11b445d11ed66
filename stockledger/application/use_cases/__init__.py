"""Application use cases."""

from stockledger.application.use_cases.base import LedgerUseCase
from stockledger.application.use_cases.calculate_stock_value import (
    CalculateStockValueUseCase,
)
from stockledger.application.use_cases.check_reorder_points import (
    CheckReorderPointsUseCase,
)
from stockledger.application.use_cases.record_movement import RecordMovementUseCase
from stockledger.application.use_cases.transfer_stock import (
    TransferStockResult,
    TransferStockUseCase,
)

__all__ = [
    "LedgerUseCase",
    "CalculateStockValueUseCase",
    "CheckReorderPointsUseCase",
    "RecordMovementUseCase",
    "TransferStockResult",
    "TransferStockUseCase",
]
