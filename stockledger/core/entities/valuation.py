"""Valuation and reorder report rows."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class ValuationMethod(str, Enum):
    """Policy used to turn current quantity into money."""

    FIFO = "FIFO"  # oldest lots first
    LIFO = "LIFO"  # newest lots first
    AVG = "AVG"  # weighted average over remaining lot quantity


class StockValuation(BaseModel):
    """Value of one stock line under one method."""

    product_id: int
    product_name: str | None = None
    warehouse_id: int
    warehouse_name: str | None = None
    current_stock: int
    total_value: Decimal
    unvalued_quantity: int = 0  # units valued at zero for lack of cost lots


class ReorderStatus(str, Enum):
    BELOW_MIN = "BELOW_MIN"
    OK = "OK"


class ReorderCheck(BaseModel):
    """Current stock compared with the configured minimum."""

    product_id: int
    product_name: str
    warehouse_id: int
    warehouse_name: str
    current_stock: int
    min_stock_level: int
    max_stock_level: int
    reorder_status: ReorderStatus
