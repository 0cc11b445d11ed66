"""Master data read from the product/warehouse catalogue."""

from decimal import Decimal

from pydantic import BaseModel, Field


class Warehouse(BaseModel):
    """A storage location."""

    id: int
    name: str
    location: str | None = None


class Product(BaseModel):
    """A stocked product."""

    id: int
    name: str
    category_id: int | None = None
    supplier_id: int | None = None
    unit_price: Decimal = Decimal("0.00")  # base purchase price


class ReorderPoint(BaseModel):
    """Min/max stock thresholds, per warehouse or global (warehouse_id None)."""

    id: int | None = None
    product_id: int
    warehouse_id: int | None = None
    min_stock_level: int = Field(ge=0)
    max_stock_level: int = Field(ge=0)
