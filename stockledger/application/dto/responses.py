"""Response DTOs for ledger operations.

Pydantic v2 models for operation output. Every public operation returns an
OperationResult: a status plus either a payload or an error code and
message.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class MovementRecordedResponse(BaseModel):
    """Outcome of record_movement."""

    movement_id: int = Field(..., description="New movement log entry")
    product_id: int
    warehouse_id: int
    movement_type: str
    old_stock: int = Field(..., description="Quantity before the movement")
    new_stock: int = Field(..., description="Quantity after the movement")
    effect_quantity: int = Field(..., description="Signed change applied")
    cost_lot_id: int | None = Field(default=None, description="Cost lot created, if any")


class StockTransferResponse(BaseModel):
    """Outcome of transfer_stock."""

    product_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: int
    out_movement_id: int
    in_movement_id: int


class StockValuationResponse(BaseModel):
    """One row of calculate_value."""

    product_id: int
    product_name: str | None = None
    warehouse_id: int
    warehouse_name: str | None = None
    current_stock: int
    total_value: Decimal
    unvalued_quantity: int = 0


class ReorderCheckResponse(BaseModel):
    """One row of check_reorder_points."""

    product_id: int
    product_name: str
    warehouse_id: int
    warehouse_name: str
    current_stock: int
    min_stock_level: int
    max_stock_level: int
    reorder_status: str


class StockLineResponse(BaseModel):
    """Current quantity of a stock line."""

    id: int
    product_id: int
    warehouse_id: int
    quantity: int
    last_updated: datetime


class MovementResponse(BaseModel):
    """Movement log entry."""

    id: int
    product_id: int
    warehouse_id: int
    movement_type: str
    quantity: int
    movement_date: datetime
    reference_type: str | None = None
    reference_id: int | None = None
    notes: str | None = None


class CostLotResponse(BaseModel):
    """Cost lot."""

    id: int
    product_id: int
    warehouse_id: int
    movement_id: int | None = None
    quantity_received: int
    unit_cost: Decimal
    receipt_date: datetime
    remaining_quantity: int


class OperationResult(BaseModel, Generic[DataT]):
    """Structured outcome of a public ledger operation."""

    status: Literal["success", "error"]
    message: str
    data: DataT | None = None
    error: str | None = Field(default=None, description="Machine-readable error code")
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "success"
