"""
Ledger service facade and factory functions for dependency injection.

InventoryLedgerService is the public operation surface. Every call returns
an OperationResult: expected business failures come back as error results
carrying their code, and unexpected faults are logged and reported as
STORAGE_FAILURE with the original cause. Only task cancellation escapes.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

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
from stockledger.application.use_cases import (
    CalculateStockValueUseCase,
    CheckReorderPointsUseCase,
    RecordMovementUseCase,
    TransferStockUseCase,
)
from stockledger.config import get_logger, get_settings, ledger_operation
from stockledger.core.exceptions import (
    LedgerError,
    StockLineNotFoundError,
    StorageFailureError,
    ValidationError,
)
from stockledger.core.interfaces.stock_ledger_store import IStockLedgerStore
from stockledger.core.services.line_locks import StockLineLockTable

logger = get_logger(__name__)

T = TypeVar("T")


class InventoryLedgerService:
    """Structured-outcome entry point for the stock ledger."""

    def __init__(
        self,
        record_movement: RecordMovementUseCase | None = None,
        transfer_stock: TransferStockUseCase | None = None,
        calculate_value: CalculateStockValueUseCase | None = None,
        check_reorder_points: CheckReorderPointsUseCase | None = None,
        ledger_store: IStockLedgerStore | None = None,
    ):
        self._record_movement = record_movement or RecordMovementUseCase(
            ledger_store=ledger_store
        )
        self._transfer_stock = transfer_stock or TransferStockUseCase(
            ledger_store=ledger_store
        )
        self._calculate_value = calculate_value or CalculateStockValueUseCase(
            ledger_store=ledger_store
        )
        self._check_reorder_points = check_reorder_points or CheckReorderPointsUseCase(
            ledger_store=ledger_store
        )
        self._ledger_store = ledger_store

    async def _get_ledger_store(self) -> IStockLedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_ledger_store

            self._ledger_store = await get_stock_ledger_store()
        return self._ledger_store

    async def record_movement(
        self,
        product_id: int,
        warehouse_id: int,
        movement_type: str,
        quantity: int,
        reference_type: str | None = None,
        reference_id: int | None = None,
        notes: str | None = None,
        unit_cost: Decimal | float | str | None = None,
    ) -> OperationResult[MovementRecordedResponse]:
        """Apply one movement to a stock line."""

        async def call() -> MovementRecordedResponse:
            request = RecordMovementRequest(
                product_id=product_id,
                warehouse_id=warehouse_id,
                movement_type=movement_type,
                quantity=quantity,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=notes,
                unit_cost=unit_cost,
            )
            result = await self._record_movement.execute(request)
            return self._record_movement.to_response(result)

        return await self._run(
            "record_movement",
            "Stock movement recorded and current stock updated.",
            call,
        )

    async def transfer_stock(
        self,
        product_id: int,
        from_warehouse_id: int,
        to_warehouse_id: int,
        quantity: int,
        notes: str | None = None,
    ) -> OperationResult[StockTransferResponse]:
        """Move stock between two warehouses atomically."""

        async def call() -> StockTransferResponse:
            request = TransferStockRequest(
                product_id=product_id,
                from_warehouse_id=from_warehouse_id,
                to_warehouse_id=to_warehouse_id,
                quantity=quantity,
                notes=notes,
            )
            result = await self._transfer_stock.execute(request)
            return self._transfer_stock.to_response(result)

        return await self._run("transfer_stock", "Stock transferred successfully.", call)

    async def calculate_value(
        self,
        method: str,
        warehouse_id: int | None = None,
        product_id: int | None = None,
    ) -> OperationResult[list[StockValuationResponse]]:
        """Value current stock by FIFO, LIFO or AVG."""

        async def call() -> list[StockValuationResponse]:
            request = CalculateStockValueRequest(
                method=method, warehouse_id=warehouse_id, product_id=product_id
            )
            rows = await self._calculate_value.execute(request)
            return self._calculate_value.to_response(rows)

        return await self._run("calculate_value", "Stock valuation calculated.", call)

    async def check_reorder_points(
        self, warehouse_id: int | None = None
    ) -> OperationResult[list[ReorderCheckResponse]]:
        """Compare current stock with reorder minimums."""

        async def call() -> list[ReorderCheckResponse]:
            request = CheckReorderPointsRequest(warehouse_id=warehouse_id)
            checks = await self._check_reorder_points.execute(request)
            return self._check_reorder_points.to_response(checks)

        return await self._run("check_reorder_points", "Reorder points checked.", call)

    async def get_stock_line(
        self, product_id: int, warehouse_id: int
    ) -> OperationResult[StockLineResponse]:
        """Current quantity of one stock line."""

        async def call() -> StockLineResponse:
            store = await self._get_ledger_store()
            line = await store.get_stock_line(product_id, warehouse_id)
            if line is None:
                raise StockLineNotFoundError(product_id, warehouse_id)
            return StockLineResponse(**line.model_dump())

        return await self._run("get_stock_line", "Stock line found.", call)

    async def list_movements(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> OperationResult[list[MovementResponse]]:
        """Movement history of one stock line, newest first."""

        async def call() -> list[MovementResponse]:
            store = await self._get_ledger_store()
            movements = await store.list_movements(product_id, warehouse_id, limit=limit)
            return [MovementResponse(**m.model_dump(mode="json")) for m in movements]

        return await self._run("list_movements", "Movements listed.", call)

    async def list_cost_lots(
        self, product_id: int, warehouse_id: int
    ) -> OperationResult[list[CostLotResponse]]:
        """Cost lots of one stock line, oldest first."""

        async def call() -> list[CostLotResponse]:
            store = await self._get_ledger_store()
            lots = await store.list_cost_lots(product_id, warehouse_id)
            return [CostLotResponse(**lot.model_dump()) for lot in lots]

        return await self._run("list_cost_lots", "Cost lots listed.", call)

    async def _run(
        self,
        operation: str,
        success_message: str,
        call: Callable[[], Awaitable[T]],
    ) -> OperationResult[T]:
        """Run ``call`` and fold its outcome into an OperationResult."""
        with ledger_operation(operation):
            try:
                data = await call()
            except LedgerError as e:
                logger.info("ledger_operation_rejected", error=e.code, message=e.message)
                return _error_result(e)
            except PydanticValidationError as e:
                error = ValidationError(
                    f"Invalid {operation} input: {e.error_count()} field error(s)",
                    code="VALIDATION_ERROR",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                )
                logger.info("ledger_operation_rejected", error=error.code)
                return _error_result(error)
            except Exception as e:
                logger.exception("ledger_operation_failed")
                return _error_result(StorageFailureError(operation, e))

        return OperationResult(status="success", message=success_message, data=data)


def _error_result(error: LedgerError) -> OperationResult[Any]:
    return OperationResult(
        status="error",
        message=error.message,
        error=error.code,
        details=error.details,
    )


# Singleton instances
_lock_table: StockLineLockTable | None = None
_ledger_service: InventoryLedgerService | None = None


def get_lock_table() -> StockLineLockTable:
    """
    Get the process-wide stock line lock table.

    Every writer must share this instance for per-line exclusion to hold.
    """
    global _lock_table
    if _lock_table is None:
        _lock_table = StockLineLockTable(timeout=get_settings().ledger.lock_timeout)
    return _lock_table


def get_inventory_ledger_service() -> InventoryLedgerService:
    """Get or create the InventoryLedgerService instance."""
    global _ledger_service
    if _ledger_service is None:
        _ledger_service = InventoryLedgerService()
    return _ledger_service


def reset_services() -> None:
    """Reset singletons (for testing)."""
    global _lock_table, _ledger_service
    _lock_table = None
    _ledger_service = None
