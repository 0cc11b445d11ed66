"""Calculate Stock Value Use Case — FIFO / LIFO / AVG valuation report."""

import asyncio

from stockledger.application.dto.requests import CalculateStockValueRequest
from stockledger.application.dto.responses import StockValuationResponse
from stockledger.application.use_cases.base import LedgerUseCase
from stockledger.config import get_logger
from stockledger.core.entities.valuation import StockValuation
from stockledger.core.exceptions import LedgerBusyError
from stockledger.core.interfaces.stock_ledger_store import LineSnapshot
from stockledger.core.services.valuation_engine import parse_method, value_line

logger = get_logger(__name__)


class CalculateStockValueUseCase(LedgerUseCase):
    """Value every matching stock line from one consistent snapshot. Read-only."""

    async def execute(self, request: CalculateStockValueRequest) -> list[StockValuation]:
        """Execute valuation use case."""
        # Unknown method fails the whole call before any row is read
        method = parse_method(request.method)

        store = await self._get_ledger_store()
        timeout = self._settings.snapshot_timeout
        try:
            snapshots: list[LineSnapshot] = await asyncio.wait_for(
                store.read_snapshot(
                    warehouse_id=request.warehouse_id,
                    product_id=request.product_id,
                ),
                timeout,
            )
        except TimeoutError:
            logger.warning("valuation_snapshot_timeout", timeout=timeout)
            raise LedgerBusyError("valuation snapshot", timeout) from None

        product_names, warehouse_names = await self._resolve_names(snapshots)

        rows = []
        for snap in sorted(snapshots, key=lambda s: s.line.key):
            line = snap.line
            value = value_line(line.quantity, snap.lots, method)
            rows.append(
                StockValuation(
                    product_id=line.product_id,
                    product_name=product_names.get(line.product_id),
                    warehouse_id=line.warehouse_id,
                    warehouse_name=warehouse_names.get(line.warehouse_id),
                    current_stock=line.quantity,
                    total_value=value.total_value,
                    unvalued_quantity=value.unvalued_quantity,
                )
            )

        logger.info(
            "stock_valuation_calculated",
            method=method.value,
            warehouse_id=request.warehouse_id,
            product_id=request.product_id,
            lines=len(rows),
        )
        return rows

    async def _resolve_names(
        self, snapshots: list[LineSnapshot]
    ) -> tuple[dict[int, str], dict[int, str]]:
        if not snapshots:
            return {}, {}
        master_data = await self._get_master_data()
        products = await master_data.get_products(
            sorted({s.line.product_id for s in snapshots})
        )
        warehouses = await master_data.get_warehouses(
            sorted({s.line.warehouse_id for s in snapshots})
        )
        return (
            {pid: p.name for pid, p in products.items()},
            {wid: w.name for wid, w in warehouses.items()},
        )

    def to_response(self, rows: list[StockValuation]) -> list[StockValuationResponse]:
        """Convert rows to response DTOs."""
        return [StockValuationResponse(**row.model_dump()) for row in rows]
