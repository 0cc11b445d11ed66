"""Tests for TransferStockUseCase."""

import pytest

from stockledger.application.dto.requests import TransferStockRequest
from stockledger.application.use_cases.transfer_stock import TransferStockUseCase
from stockledger.core.entities import AuditOperation, MovementType, StockLine, StockLineKey
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    LedgerBusyError,
    SameWarehouseTransferError,
    StockLineNotFoundError,
    TransferFailedError,
    WarehouseNotFoundError,
)


@pytest.fixture
def use_case(unit_deps):
    return TransferStockUseCase(**unit_deps)


@pytest.fixture
def lines(mock_session):
    """Source line A at 10, destination line B at 0."""
    by_warehouse = {
        1: StockLine(id=11, product_id=5, warehouse_id=1, quantity=10),
        2: StockLine(id=12, product_id=5, warehouse_id=2, quantity=0),
    }
    mock_session.get_stock_line.side_effect = lambda pid, wid: by_warehouse.get(wid)
    return by_warehouse


def request(**overrides) -> TransferStockRequest:
    fields = {"product_id": 5, "from_warehouse_id": 1, "to_warehouse_id": 2, "quantity": 4}
    fields.update(overrides)
    return TransferStockRequest(**fields)


class TestTransferStockUseCase:
    async def test_successful_transfer(self, use_case, lines, mock_session, mock_ledger_store):
        """Both legs run in one unit of work, tagged TRANSFER."""
        result = await use_case.execute(request())

        assert result.out_leg.new_stock == 6
        assert result.in_leg.new_stock == 4
        mock_ledger_store.unit_of_work.assert_called_once()

        movements = [c[0][0] for c in mock_session.add_movement.call_args_list]
        assert [m.movement_type for m in movements] == [MovementType.OUT, MovementType.IN]
        assert all(m.reference_type == "TRANSFER" for m in movements)
        assert movements[0].notes == "Transfer OUT to warehouse 2"
        assert movements[1].notes == "Transfer IN from warehouse 1"

    async def test_no_destination_cost_lot(self, use_case, lines, mock_session):
        await use_case.execute(request())
        mock_session.add_cost_lot.assert_not_called()

    async def test_notes_appended(self, use_case, lines, mock_session):
        await use_case.execute(request(notes="rebalance"))
        notes = [c[0][0].notes for c in mock_session.add_movement.call_args_list]
        assert notes == [
            "Transfer OUT to warehouse 2 - rebalance",
            "Transfer IN from warehouse 1 - rebalance",
        ]

    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_invalid_quantity_not_wrapped(self, use_case, mock_ledger_store, quantity):
        with pytest.raises(InvalidQuantityError) as exc_info:
            await use_case.execute(request(quantity=quantity))
        assert exc_info.value.details["operation"] == "transfer"
        mock_ledger_store.unit_of_work.assert_not_called()

    async def test_same_warehouse_not_wrapped(self, use_case, mock_ledger_store):
        with pytest.raises(SameWarehouseTransferError):
            await use_case.execute(request(to_warehouse_id=1))
        mock_ledger_store.unit_of_work.assert_not_called()

    async def test_insufficient_source(self, use_case, lines, mock_unit_of_work, mock_audit_sink):
        """A failing leg aborts the whole unit of work."""
        with pytest.raises(TransferFailedError) as exc_info:
            await use_case.execute(request(quantity=11))

        assert isinstance(exc_info.value.cause, InsufficientStockError)
        assert exc_info.value.message.startswith("Transfer failed: Insufficient stock")
        assert mock_unit_of_work.__aexit__.call_args[0][0] is InsufficientStockError
        mock_audit_sink.record.assert_not_called()

    async def test_missing_source_line(self, use_case, mock_session):
        mock_session.get_stock_line.return_value = None

        with pytest.raises(TransferFailedError) as exc_info:
            await use_case.execute(request())
        assert isinstance(exc_info.value.cause, StockLineNotFoundError)

    async def test_deposit_failure_aborts(self, use_case, lines, mock_session, mock_unit_of_work):
        """An error on the IN leg propagates out of the unit of work."""
        calls = 0

        def add_movement(movement):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise RuntimeError("disk full")
            movement.id = calls
            return movement

        mock_session.add_movement.side_effect = add_movement

        with pytest.raises(TransferFailedError) as exc_info:
            await use_case.execute(request())

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.details["cause"] == {"error": "RuntimeError", "message": "disk full"}
        assert mock_unit_of_work.__aexit__.call_args[0][0] is RuntimeError

    async def test_unknown_destination_wrapped(self, use_case, mock_master_data, mock_ledger_store):
        async def get_warehouse(wid):
            return None if wid == 2 else object()

        mock_master_data.get_warehouse.side_effect = get_warehouse

        with pytest.raises(TransferFailedError) as exc_info:
            await use_case.execute(request())
        assert isinstance(exc_info.value.cause, WarehouseNotFoundError)
        mock_ledger_store.unit_of_work.assert_not_called()

    async def test_lock_timeout_wrapped(self, use_case, unit_deps, lines):
        async with unit_deps["locks"].hold(StockLineKey(5, 2)):
            with pytest.raises(TransferFailedError) as exc_info:
                await use_case.execute(request())
        assert isinstance(exc_info.value.cause, LedgerBusyError)

    async def test_audit_after_commit_for_both_lines(self, use_case, lines, mock_audit_sink):
        await use_case.execute(request())

        entries = [c[0][0] for c in mock_audit_sink.record.call_args_list]
        assert [(e.record_id, e.operation_type) for e in entries] == [
            (11, AuditOperation.UPDATE),
            (12, AuditOperation.UPDATE),
        ]

    async def test_to_response(self, use_case, lines, mock_session):
        ids = iter([31, 32])

        def add_movement(movement):
            movement.id = next(ids)
            return movement

        mock_session.add_movement.side_effect = add_movement

        response = use_case.to_response(await use_case.execute(request()))
        assert response.out_movement_id == 31
        assert response.in_movement_id == 32
        assert response.quantity == 4
