"""Tests for the valuation engine."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from stockledger.core.entities import CostLot, ValuationMethod
from stockledger.core.exceptions import InvalidValuationMethodError
from stockledger.core.services.valuation_engine import (
    LineValue,
    ordered_lots,
    parse_method,
    value_line,
)

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def make_lot(
    lot_id: int,
    qty: int,
    cost: str,
    days: int = 0,
    remaining: int | None = None,
) -> CostLot:
    return CostLot(
        id=lot_id,
        product_id=1,
        warehouse_id=1,
        quantity_received=qty,
        unit_cost=Decimal(cost),
        receipt_date=T0 + timedelta(days=days),
        remaining_quantity=qty if remaining is None else remaining,
    )


@pytest.fixture
def two_lots() -> list[CostLot]:
    """5 @ 10 received first, 10 @ 12 received later."""
    return [make_lot(2, 10, "12", days=1), make_lot(1, 5, "10")]


class TestParseMethod:
    @pytest.mark.parametrize("raw", ["FIFO", "LIFO", "AVG"])
    def test_exact_names(self, raw):
        assert parse_method(raw) is ValuationMethod(raw)

    def test_enum_passthrough(self):
        assert parse_method(ValuationMethod.AVG) is ValuationMethod.AVG

    @pytest.mark.parametrize("raw", ["BOGUS", "", None, 3, "fifo", " FIFO ", "Avg"])
    def test_unknown_method(self, raw):
        with pytest.raises(InvalidValuationMethodError):
            parse_method(raw)


class TestOrderedLots:
    def test_oldest_first_with_id_tie_break(self):
        lots = [
            make_lot(3, 1, "1", days=0),
            make_lot(1, 1, "1", days=1),
            make_lot(2, 1, "1", days=0),
        ]
        assert [lot.id for lot in ordered_lots(lots)] == [2, 3, 1]
        assert [lot.id for lot in ordered_lots(lots, newest_first=True)] == [1, 3, 2]

    def test_skips_empty_lots(self):
        lots = [make_lot(1, 5, "1", remaining=0), make_lot(2, 5, "1")]
        assert [lot.id for lot in ordered_lots(lots)] == [2]


class TestValueLine:
    def test_fifo(self, two_lots):
        """8 units: 5 @ 10 then 3 @ 12."""
        assert value_line(8, two_lots, ValuationMethod.FIFO) == LineValue(Decimal("86.00"))

    def test_lifo(self, two_lots):
        """8 units all from the newer 12 lot."""
        assert value_line(8, two_lots, ValuationMethod.LIFO) == LineValue(Decimal("96.00"))

    def test_avg(self, two_lots):
        """(5*10 + 10*12) / 15 * 8 = 90.666..."""
        result = value_line(8, two_lots, ValuationMethod.AVG)
        assert result.total_value == Decimal("90.67")
        assert result.unvalued_quantity == 0

    @pytest.mark.parametrize("method", list(ValuationMethod))
    def test_zero_stock_is_zero_value(self, two_lots, method):
        assert value_line(0, two_lots, method) == LineValue(Decimal("0.00"))

    @pytest.mark.parametrize("method", list(ValuationMethod))
    def test_no_lots(self, method):
        result = value_line(4, [], method)
        assert result.total_value == Decimal("0.00")
        assert result.unvalued_quantity == 4

    def test_fifo_stops_when_lots_run_out(self, two_lots):
        result = value_line(20, two_lots, ValuationMethod.FIFO)
        assert result.total_value == Decimal("170.00")
        assert result.unvalued_quantity == 5

    def test_avg_prices_units_beyond_lots_at_average(self, two_lots):
        result = value_line(18, two_lots, ValuationMethod.AVG)
        assert result.total_value == Decimal("204.00")
        assert result.unvalued_quantity == 0

    def test_lifo_tie_break_prefers_higher_id(self):
        lots = [make_lot(1, 5, "10"), make_lot(2, 5, "20")]
        assert value_line(5, lots, ValuationMethod.LIFO).total_value == Decimal("100.00")
        assert value_line(5, lots, ValuationMethod.FIFO).total_value == Decimal("50.00")

    def test_rounds_half_up_to_cents(self):
        lots = [make_lot(1, 1, "0.01"), make_lot(2, 2, "0.02")]
        # avg = 0.05 / 3 per unit, 1 unit = 0.01666...
        assert value_line(1, lots, ValuationMethod.AVG).total_value == Decimal("0.02")
