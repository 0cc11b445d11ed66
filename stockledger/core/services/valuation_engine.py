"""
Stock valuation against historical cost lots.

Pure functions, no I/O. FIFO and LIFO walk the lots of a line in receipt
order (oldest or newest first, ties broken by lot id) and price current
stock lot by lot. AVG prices current stock at the weighted average cost of
the remaining lot quantity.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from stockledger.core.entities.stock import CostLot
from stockledger.core.entities.valuation import ValuationMethod
from stockledger.core.exceptions import InvalidValuationMethodError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class LineValue:
    """Value of one line plus the quantity no lot could price."""

    total_value: Decimal
    unvalued_quantity: int = 0


def parse_method(method: Any) -> ValuationMethod:
    """Accept a ValuationMethod or its exact name: FIFO, LIFO or AVG."""
    if isinstance(method, ValuationMethod):
        return method
    if isinstance(method, str):
        try:
            return ValuationMethod(method)
        except ValueError:
            pass
    raise InvalidValuationMethodError(method, [m.value for m in ValuationMethod])


def ordered_lots(lots: list[CostLot], newest_first: bool = False) -> list[CostLot]:
    """Lots with remaining quantity, in matching order."""
    candidates = [lot for lot in lots if lot.remaining_quantity > 0]
    return sorted(
        candidates,
        key=lambda lot: (lot.receipt_date, lot.id or 0),
        reverse=newest_first,
    )


def match_lots(current_stock: int, lots: list[CostLot], newest_first: bool) -> LineValue:
    """Price ``current_stock`` units lot by lot."""
    need = current_stock
    total = Decimal(0)
    for lot in ordered_lots(lots, newest_first):
        if need <= 0:
            break
        take = min(need, lot.remaining_quantity)
        total += take * lot.unit_cost
        need -= take
    return LineValue(_round(total), max(need, 0))


def weighted_average(current_stock: int, lots: list[CostLot]) -> LineValue:
    """
    Price ``current_stock`` at the weighted average of remaining lot cost.

    Every unit gets the average, including units beyond the remaining lot
    quantity, so only a line with no costed lots reports unvalued stock.
    """
    remaining_qty = sum(lot.remaining_quantity for lot in lots if lot.remaining_quantity > 0)
    if remaining_qty <= 0:
        return LineValue(ZERO, current_stock)

    remaining_cost = sum(
        (lot.remaining_value for lot in lots if lot.remaining_quantity > 0),
        Decimal(0),
    )
    avg_unit_cost = remaining_cost / remaining_qty
    return LineValue(_round(avg_unit_cost * current_stock))


def value_line(
    current_stock: int, lots: list[CostLot], method: ValuationMethod
) -> LineValue:
    """Value one stock line under ``method``."""
    if current_stock <= 0:
        return LineValue(ZERO, 0)
    if method is ValuationMethod.FIFO:
        return match_lots(current_stock, lots, newest_first=False)
    if method is ValuationMethod.LIFO:
        return match_lots(current_stock, lots, newest_first=True)
    return weighted_average(current_stock, lots)


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
