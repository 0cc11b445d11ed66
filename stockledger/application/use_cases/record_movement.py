"""Record Movement Use Case — apply one IN/OUT/ADJUSTMENT movement."""

from stockledger.application.dto.requests import RecordMovementRequest
from stockledger.application.dto.responses import MovementRecordedResponse
from stockledger.application.use_cases.base import LedgerUseCase
from stockledger.config import LedgerSettings, get_logger
from stockledger.core.entities.stock import StockLineKey
from stockledger.core.interfaces.audit_sink import IAuditSink
from stockledger.core.interfaces.master_data import IMasterDataStore
from stockledger.core.interfaces.stock_ledger_store import IStockLedgerStore
from stockledger.core.services.line_locks import StockLineLockTable
from stockledger.core.services.movement_recorder import (
    AppliedMovement,
    MovementRecorder,
    parse_movement_type,
    parse_unit_cost,
    validate_quantity,
)

logger = get_logger(__name__)


class RecordMovementUseCase(LedgerUseCase):
    """Apply a single movement under the stock line lock."""

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

    async def execute(self, request: RecordMovementRequest) -> AppliedMovement:
        """Execute record movement use case."""
        # 1. Validate input before touching anything
        quantity = validate_quantity(request.quantity)
        movement_type = parse_movement_type(request.movement_type)
        unit_cost = parse_unit_cost(request.unit_cost)
        await self._require_master_data(request.product_id, request.warehouse_id)

        logger.info(
            "record_movement_started",
            product_id=request.product_id,
            warehouse_id=request.warehouse_id,
            movement_type=movement_type.value,
            quantity=quantity,
        )

        # 2. Read-validate-write under the line lock, in one transaction
        store = await self._get_ledger_store()
        key = StockLineKey(request.product_id, request.warehouse_id)
        async with self._get_locks().hold(key):
            async with store.unit_of_work() as session:
                applied = await self._recorder.apply(
                    session,
                    request.product_id,
                    request.warehouse_id,
                    movement_type,
                    quantity,
                    reference_type=request.reference_type,
                    reference_id=request.reference_id,
                    notes=request.notes,
                    unit_cost=unit_cost,
                )

        # 3. Notify the audit trail once committed
        await self._dispatch_audit(applied.audit_entries)

        logger.info(
            "stock_movement_recorded",
            movement_id=applied.movement.id,
            product_id=request.product_id,
            warehouse_id=request.warehouse_id,
            old_stock=applied.old_stock,
            new_stock=applied.new_stock,
            cost_lot_id=applied.cost_lot.id if applied.cost_lot else None,
        )
        return applied

    def to_response(self, result: AppliedMovement) -> MovementRecordedResponse:
        """Convert result to response DTO."""
        return MovementRecordedResponse(
            movement_id=result.movement.id,  # type: ignore[arg-type]
            product_id=result.movement.product_id,
            warehouse_id=result.movement.warehouse_id,
            movement_type=result.movement.movement_type.value,
            old_stock=result.old_stock,
            new_stock=result.new_stock,
            effect_quantity=result.effect_quantity,
            cost_lot_id=result.cost_lot.id if result.cost_lot else None,
        )
