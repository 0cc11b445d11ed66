"""Request DTOs for ledger operations.

Pydantic v2 models for operation input. Business rules (positive
quantities, known movement types and valuation methods) are checked by the
use cases so that they come back as ledger error codes, not as schema
errors.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class RecordMovementRequest(BaseModel):
    """Request to apply one movement to a stock line."""

    product_id: int = Field(..., description="Product ID")
    warehouse_id: int = Field(..., description="Warehouse ID")
    movement_type: str = Field(
        ..., description="IN, OUT, ADJUSTMENT_IN or ADJUSTMENT_OUT"
    )
    quantity: int = Field(..., description="Units moved, must be positive")

    # Options
    reference_type: str | None = Field(
        default=None,
        max_length=20,
        description="e.g. PURCHASE_ORDER, SALES_ORDER, ADJUSTMENT",
    )
    reference_id: int | None = Field(default=None, description="ID of the PO/SO/transfer")
    notes: str | None = Field(default=None, description="Free text")
    unit_cost: Decimal | None = Field(
        default=None,
        description="Cost per unit; creates a cost lot for IN movements",
    )


class TransferStockRequest(BaseModel):
    """Request to move stock between two warehouses."""

    product_id: int = Field(..., description="Product ID")
    from_warehouse_id: int = Field(..., description="Source warehouse ID")
    to_warehouse_id: int = Field(..., description="Destination warehouse ID")
    quantity: int = Field(..., description="Units to transfer, must be positive")
    notes: str | None = Field(default=None, description="Appended to both movement notes")


class CalculateStockValueRequest(BaseModel):
    """Request to value current stock."""

    method: str = Field(..., description="FIFO, LIFO or AVG")
    warehouse_id: int | None = Field(default=None, description="Limit to one warehouse")
    product_id: int | None = Field(default=None, description="Limit to one product")


class CheckReorderPointsRequest(BaseModel):
    """Request to compare stock with reorder thresholds."""

    warehouse_id: int | None = Field(default=None, description="Limit to one warehouse")
