"""Data Transfer Objects for the ledger operations.

Request DTOs: carry operation input and optional parameters.
Response DTOs: structure operation output.
"""

from stockledger.application.dto.requests import (
    CalculateStockValueRequest,
    CheckReorderPointsRequest,
    RecordMovementRequest,
    TransferStockRequest,
)
from stockledger.application.dto.responses import (
    CostLotResponse,
    MovementRecordedResponse,
    MovementResponse,
    OperationResult,
    ReorderCheckResponse,
    StockLineResponse,
    StockTransferResponse,
    StockValuationResponse,
)

__all__ = [
    # Requests
    "CalculateStockValueRequest",
    "CheckReorderPointsRequest",
    "RecordMovementRequest",
    "TransferStockRequest",
    # Responses
    "CostLotResponse",
    "MovementRecordedResponse",
    "MovementResponse",
    "OperationResult",
    "ReorderCheckResponse",
    "StockLineResponse",
    "StockTransferResponse",
    "StockValuationResponse",
]
