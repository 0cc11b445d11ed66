"""Transfer Stock Use Case — OUT from one warehouse, IN to another, atomically."""

from dataclasses import dataclass

from stockledger.application.dto.requests import TransferStockRequest
from stockledger.application.dto.responses import StockTransferResponse
from stockledger.application.use_cases.base import LedgerUseCase
from stockledger.config import LedgerSettings, get_logger
from stockledger.core.entities.stock import MovementType, ReferenceType, StockLineKey
from stockledger.core.exceptions import (
    LedgerError,
    SameWarehouseTransferError,
    TransferFailedError,
)
from stockledger.core.interfaces.audit_sink import IAuditSink
from stockledger.core.interfaces.master_data import IMasterDataStore
from stockledger.core.interfaces.stock_ledger_store import IStockLedgerStore
from stockledger.core.services.line_locks import StockLineLockTable
from stockledger.core.services.movement_recorder import (
    AppliedMovement,
    MovementRecorder,
    validate_quantity,
)

logger = get_logger(__name__)


@dataclass
class TransferStockResult:
    """Result of a committed transfer."""

    product_id: int
    from_warehouse_id: int
    to_warehouse_id: int
    quantity: int
    out_leg: AppliedMovement
    in_leg: AppliedMovement


def _transfer_note(direction: str, warehouse_id: int, notes: str | None) -> str:
    note = f"Transfer {direction} warehouse {warehouse_id}"
    if notes:
        note += f" - {notes}"
    return note


class TransferStockUseCase(LedgerUseCase):
    """
    Move stock between two warehouses as one unit of work.

    Both stock lines are locked in global key order and both movements are
    written in the same transaction. If the deposit fails the withdrawal is
    rolled back with it. The deposit carries no unit cost, so no cost lot
    follows the stock to the destination.
    """

    def __init__(
        self,
        ledger_store: IStockLedgerStore | None = None,
        master_data: IMasterDataStore | None = None,
        audit_sink: IAuditSink | None = None,
        locks: StockLineLockTable | None = None,
        recorder: MovementRecorder | None = None,
        settings: LedgerSettings | None = None,
    ):
        super().__init__(
            ledger_store=ledger_store,
            master_data=master_data,
            audit_sink=audit_sink,
            locks=locks,
            settings=settings,
        )
        self._recorder = recorder or MovementRecorder(actor=self._settings.actor)

    async def execute(self, request: TransferStockRequest) -> TransferStockResult:
        """Execute transfer use case."""
        quantity = validate_quantity(request.quantity, "transfer")
        if request.from_warehouse_id == request.to_warehouse_id:
            raise SameWarehouseTransferError(request.from_warehouse_id)

        logger.info(
            "transfer_started",
            product_id=request.product_id,
            from_warehouse_id=request.from_warehouse_id,
            to_warehouse_id=request.to_warehouse_id,
            quantity=quantity,
        )

        source = StockLineKey(request.product_id, request.from_warehouse_id)
        destination = StockLineKey(request.product_id, request.to_warehouse_id)

        try:
            await self._require_master_data(
                request.product_id, request.from_warehouse_id, request.to_warehouse_id
            )
            store = await self._get_ledger_store()
            async with self._get_locks().hold(source, destination):
                async with store.unit_of_work() as session:
                    out_leg = await self._recorder.apply(
                        session,
                        request.product_id,
                        request.from_warehouse_id,
                        MovementType.OUT,
                        quantity,
                        reference_type=ReferenceType.TRANSFER.value,
                        notes=_transfer_note("OUT to", request.to_warehouse_id, request.notes),
                    )
                    in_leg = await self._recorder.apply(
                        session,
                        request.product_id,
                        request.to_warehouse_id,
                        MovementType.IN,
                        quantity,
                        reference_type=ReferenceType.TRANSFER.value,
                        notes=_transfer_note("IN from", request.from_warehouse_id, request.notes),
                    )
        except LedgerError as e:
            logger.warning(
                "transfer_failed",
                product_id=request.product_id,
                from_warehouse_id=request.from_warehouse_id,
                to_warehouse_id=request.to_warehouse_id,
                error=e.code,
                reason=e.message,
            )
            raise TransferFailedError(e) from e
        except Exception as e:
            logger.error(
                "transfer_failed",
                product_id=request.product_id,
                from_warehouse_id=request.from_warehouse_id,
                to_warehouse_id=request.to_warehouse_id,
                error=type(e).__name__,
                reason=str(e),
            )
            raise TransferFailedError(e) from e

        await self._dispatch_audit(out_leg.audit_entries + in_leg.audit_entries)

        logger.info(
            "transfer_complete",
            product_id=request.product_id,
            out_movement_id=out_leg.movement.id,
            in_movement_id=in_leg.movement.id,
            source_stock=out_leg.new_stock,
            destination_stock=in_leg.new_stock,
        )

        return TransferStockResult(
            product_id=request.product_id,
            from_warehouse_id=request.from_warehouse_id,
            to_warehouse_id=request.to_warehouse_id,
            quantity=quantity,
            out_leg=out_leg,
            in_leg=in_leg,
        )

    def to_response(self, result: TransferStockResult) -> StockTransferResponse:
        """Convert result to response DTO."""
        return StockTransferResponse(
            product_id=result.product_id,
            from_warehouse_id=result.from_warehouse_id,
            to_warehouse_id=result.to_warehouse_id,
            quantity=result.quantity,
            out_movement_id=result.out_leg.movement.id,  # type: ignore[arg-type]
            in_movement_id=result.in_leg.movement.id,  # type: ignore[arg-type]
        )
