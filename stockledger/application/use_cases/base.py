"""Collaborator wiring shared by the ledger use cases."""

from stockledger.config import LedgerSettings, get_logger, get_settings
from stockledger.core.entities.audit import AuditEntry
from stockledger.core.exceptions import ProductNotFoundError, WarehouseNotFoundError
from stockledger.core.interfaces.audit_sink import IAuditSink
from stockledger.core.interfaces.master_data import IMasterDataStore
from stockledger.core.interfaces.stock_ledger_store import IStockLedgerStore
from stockledger.core.services.line_locks import StockLineLockTable

logger = get_logger(__name__)


class LedgerUseCase:
    """
    Base for use cases that touch the ledger.

    Stores and the lock table default to the process-wide instances and
    are resolved on first use, so tests can inject doubles.
    """

    def __init__(
        self,
        ledger_store: IStockLedgerStore | None = None,
        master_data: IMasterDataStore | None = None,
        audit_sink: IAuditSink | None = None,
        locks: StockLineLockTable | None = None,
        settings: LedgerSettings | None = None,
    ):
        self._ledger_store = ledger_store
        self._master_data = master_data
        self._audit_sink = audit_sink
        self._locks = locks
        self._settings = settings or get_settings().ledger

    async def _get_ledger_store(self) -> IStockLedgerStore:
        if self._ledger_store is None:
            from stockledger.infrastructure.storage.sqlite import get_stock_ledger_store

            self._ledger_store = await get_stock_ledger_store()
        return self._ledger_store

    async def _get_master_data(self) -> IMasterDataStore:
        if self._master_data is None:
            from stockledger.infrastructure.storage.sqlite import get_master_data_store

            self._master_data = await get_master_data_store()
        return self._master_data

    async def _get_audit_sink(self) -> IAuditSink:
        if self._audit_sink is None:
            from stockledger.infrastructure.storage.sqlite import get_audit_log_store

            self._audit_sink = await get_audit_log_store()
        return self._audit_sink

    def _get_locks(self) -> StockLineLockTable:
        if self._locks is None:
            from stockledger.application.services import get_lock_table

            self._locks = get_lock_table()
        return self._locks

    async def _require_master_data(self, product_id: int, *warehouse_ids: int) -> None:
        """Raise NotFound for an unknown product or warehouse."""
        if not self._settings.validate_master_data:
            return
        master_data = await self._get_master_data()
        if await master_data.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)
        for warehouse_id in warehouse_ids:
            if await master_data.get_warehouse(warehouse_id) is None:
                raise WarehouseNotFoundError(warehouse_id)

    async def _dispatch_audit(self, entries: list[AuditEntry]) -> None:
        """Send committed changes to the audit sink; failures are only logged."""
        if not self._settings.audit_enabled or not entries:
            return
        try:
            sink = await self._get_audit_sink()
        except Exception as e:
            logger.warning(
                "audit_dispatch_failed",
                entries=len(entries),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        # Each entry is attempted on its own so one failure loses only that entry
        for entry in entries:
            try:
                await sink.record(entry)
            except Exception as e:
                logger.warning(
                    "audit_dispatch_failed",
                    record_id=entry.record_id,
                    operation_type=entry.operation_type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
