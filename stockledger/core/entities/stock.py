"""Stock ledger domain entities."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(UTC)


class MovementType(str, Enum):
    """Types of stock movements."""

    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT_IN = "ADJUSTMENT_IN"
    ADJUSTMENT_OUT = "ADJUSTMENT_OUT"

    @property
    def is_inbound(self) -> bool:
        return self in (MovementType.IN, MovementType.ADJUSTMENT_IN)

    def signed(self, quantity: int) -> int:
        """Signed effect of moving ``quantity`` units in this direction."""
        return quantity if self.is_inbound else -quantity


class ReferenceType(str, Enum):
    """Well-known movement reference types. Free text is also accepted."""

    PURCHASE_ORDER = "PURCHASE_ORDER"
    SALES_ORDER = "SALES_ORDER"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"


class StockLineKey(NamedTuple):
    """Identity of a stock line. Sort order is the global lock order."""

    product_id: int
    warehouse_id: int


class StockLine(BaseModel):
    """Current quantity of one product in one warehouse."""

    id: int | None = None
    product_id: int
    warehouse_id: int
    quantity: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> StockLineKey:
        return StockLineKey(self.product_id, self.warehouse_id)

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready copy used for audit before/after images."""
        return self.model_dump(mode="json")


class Movement(BaseModel):
    """One recorded, immutable change to a stock line."""

    id: int | None = None
    product_id: int
    warehouse_id: int
    movement_type: MovementType
    quantity: int = Field(gt=0)  # direction comes from movement_type
    movement_date: datetime = Field(default_factory=utcnow)
    reference_type: str | None = None  # e.g. PURCHASE_ORDER, TRANSFER
    reference_id: int | None = None
    notes: str | None = None

    @property
    def effect_quantity(self) -> int:
        return self.movement_type.signed(self.quantity)

    @property
    def is_transfer(self) -> bool:
        return self.reference_type == ReferenceType.TRANSFER.value


class CostLot(BaseModel):
    """A receipt batch used to attribute historical cost during valuation."""

    id: int | None = None
    product_id: int
    warehouse_id: int
    movement_id: int | None = None  # back-reference to the IN movement
    quantity_received: int = Field(gt=0)
    unit_cost: Decimal
    receipt_date: datetime = Field(default_factory=utcnow)
    remaining_quantity: int = Field(ge=0)

    @model_validator(mode="after")
    def check_remaining(self) -> "CostLot":
        if self.remaining_quantity > self.quantity_received:
            raise ValueError(
                f"remaining_quantity {self.remaining_quantity} exceeds "
                f"quantity_received {self.quantity_received}"
            )
        return self

    @property
    def remaining_value(self) -> Decimal:
        return self.unit_cost * self.remaining_quantity
