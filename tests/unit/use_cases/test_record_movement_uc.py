"""Tests for RecordMovementUseCase."""

from decimal import Decimal

import pytest

from stockledger.application.dto.requests import RecordMovementRequest
from stockledger.application.use_cases.record_movement import RecordMovementUseCase
from stockledger.config import LedgerSettings
from stockledger.core.entities import AuditOperation, StockLine, StockLineKey
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidMovementTypeError,
    InvalidQuantityError,
    InvalidUnitCostError,
    ProductNotFoundError,
    WarehouseNotFoundError,
)


@pytest.fixture
def use_case(unit_deps):
    return RecordMovementUseCase(**unit_deps)


def request(**overrides) -> RecordMovementRequest:
    fields = {"product_id": 1, "warehouse_id": 2, "movement_type": "IN", "quantity": 3}
    fields.update(overrides)
    return RecordMovementRequest(**fields)


class TestRecordMovementUseCase:
    async def test_successful_in(self, use_case, mock_session, mock_audit_sink):
        """IN on an existing line adds to stock."""
        mock_session.get_stock_line.return_value = StockLine(
            id=1, product_id=1, warehouse_id=2, quantity=5
        )

        result = await use_case.execute(request(unit_cost=Decimal("9.99")))

        assert result.old_stock == 5
        assert result.new_stock == 8
        assert result.cost_lot is not None
        assert result.cost_lot.unit_cost == Decimal("9.99")
        mock_audit_sink.record.assert_awaited_once()
        entry = mock_audit_sink.record.call_args[0][0]
        assert entry.operation_type is AuditOperation.UPDATE

    async def test_new_line_sends_insert_and_update(
        self, use_case, mock_session, mock_audit_sink
    ):
        mock_session.get_stock_line.return_value = None
        mock_session.create_stock_line.return_value = StockLine(
            id=7, product_id=1, warehouse_id=2
        )

        await use_case.execute(request())

        operations = [c[0][0].operation_type for c in mock_audit_sink.record.call_args_list]
        assert operations == [AuditOperation.INSERT, AuditOperation.UPDATE]

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"quantity": 0}, InvalidQuantityError),
            ({"quantity": -4}, InvalidQuantityError),
            ({"movement_type": "TRANSFER"}, InvalidMovementTypeError),
            ({"unit_cost": Decimal("-0.01")}, InvalidUnitCostError),
        ],
    )
    async def test_validation_before_any_work(
        self, use_case, mock_ledger_store, mock_master_data, overrides, error
    ):
        """Invalid input never reaches master data or the store."""
        with pytest.raises(error):
            await use_case.execute(request(**overrides))
        mock_master_data.get_product.assert_not_called()
        mock_ledger_store.unit_of_work.assert_not_called()

    async def test_quantity_checked_before_type(self, use_case):
        with pytest.raises(InvalidQuantityError):
            await use_case.execute(request(quantity=0, movement_type="BOGUS"))

    async def test_unknown_product(self, use_case, mock_master_data, mock_ledger_store):
        mock_master_data.get_product.side_effect = None
        mock_master_data.get_product.return_value = None

        with pytest.raises(ProductNotFoundError):
            await use_case.execute(request())
        mock_ledger_store.unit_of_work.assert_not_called()

    async def test_unknown_warehouse(self, use_case, mock_master_data):
        mock_master_data.get_warehouse.side_effect = None
        mock_master_data.get_warehouse.return_value = None

        with pytest.raises(WarehouseNotFoundError):
            await use_case.execute(request())

    async def test_master_data_check_can_be_disabled(
        self, unit_deps, mock_master_data, mock_session
    ):
        unit_deps["settings"] = LedgerSettings(validate_master_data=False)
        use_case = RecordMovementUseCase(**unit_deps)
        mock_session.get_stock_line.return_value = StockLine(id=1, product_id=1, warehouse_id=2)

        await use_case.execute(request())
        mock_master_data.get_product.assert_not_called()

    async def test_insufficient_stock_rolls_back_without_audit(
        self, use_case, mock_session, mock_unit_of_work, mock_audit_sink
    ):
        mock_session.get_stock_line.return_value = StockLine(
            id=1, product_id=1, warehouse_id=2, quantity=5
        )

        with pytest.raises(InsufficientStockError):
            await use_case.execute(request(movement_type="OUT", quantity=6))

        exc_type = mock_unit_of_work.__aexit__.call_args[0][0]
        assert exc_type is InsufficientStockError
        mock_audit_sink.record.assert_not_called()

    async def test_line_locked_during_apply(self, use_case, unit_deps, mock_session):
        """The stock line lock is held while the session is used."""
        locks = unit_deps["locks"]
        seen = []

        async def get_line(product_id, warehouse_id):
            seen.append(locks.is_locked(StockLineKey(product_id, warehouse_id)))
            return StockLine(id=1, product_id=product_id, warehouse_id=warehouse_id)

        mock_session.get_stock_line.side_effect = get_line

        await use_case.execute(request())
        assert seen == [True]
        assert not locks.is_locked(StockLineKey(1, 2))

    async def test_audit_failure_does_not_fail_movement(
        self, use_case, mock_session, mock_audit_sink
    ):
        mock_session.get_stock_line.return_value = StockLine(id=1, product_id=1, warehouse_id=2)
        mock_audit_sink.record.side_effect = RuntimeError("audit down")

        result = await use_case.execute(request())
        assert result.new_stock == 3

    async def test_failed_audit_entry_does_not_drop_later_ones(
        self, use_case, mock_session, mock_audit_sink
    ):
        """The UPDATE is still delivered when recording the INSERT fails."""
        mock_session.get_stock_line.return_value = None
        mock_session.create_stock_line.return_value = StockLine(
            id=7, product_id=1, warehouse_id=2
        )
        mock_audit_sink.record.side_effect = [RuntimeError("audit down"), None]

        result = await use_case.execute(request())

        assert result.new_stock == 3
        operations = [c[0][0].operation_type for c in mock_audit_sink.record.call_args_list]
        assert operations == [AuditOperation.INSERT, AuditOperation.UPDATE]

    async def test_audit_disabled(self, unit_deps, mock_session, mock_audit_sink):
        unit_deps["settings"] = LedgerSettings(audit_enabled=False)
        use_case = RecordMovementUseCase(**unit_deps)
        mock_session.get_stock_line.return_value = StockLine(id=1, product_id=1, warehouse_id=2)

        await use_case.execute(request())
        mock_audit_sink.record.assert_not_called()

    async def test_to_response(self, use_case, mock_session):
        mock_session.get_stock_line.return_value = StockLine(
            id=1, product_id=1, warehouse_id=2, quantity=10
        )

        result = await use_case.execute(request(movement_type="ADJUSTMENT_OUT", quantity=4))
        response = use_case.to_response(result)

        assert response.movement_id == 100
        assert response.movement_type == "ADJUSTMENT_OUT"
        assert response.old_stock == 10
        assert response.new_stock == 6
        assert response.effect_quantity == -4
        assert response.cost_lot_id is None
