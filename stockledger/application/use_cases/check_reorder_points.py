"""Check Reorder Points Use Case — compare stock with minimum levels."""

from stockledger.application.dto.requests import CheckReorderPointsRequest
from stockledger.application.dto.responses import ReorderCheckResponse
from stockledger.application.use_cases.base import LedgerUseCase
from stockledger.config import get_logger
from stockledger.core.entities.stock import StockLineKey
from stockledger.core.entities.valuation import ReorderCheck, ReorderStatus

logger = get_logger(__name__)


class CheckReorderPointsUseCase(LedgerUseCase):
    """Report stock at or below its reorder minimum. Read-only."""

    async def execute(self, request: CheckReorderPointsRequest) -> list[ReorderCheck]:
        """Execute reorder check use case."""
        master_data = await self._get_master_data()
        store = await self._get_ledger_store()

        # Global reorder points have no warehouse to compare against
        points = [
            p
            for p in await master_data.list_reorder_points(request.warehouse_id)
            if p.warehouse_id is not None
        ]
        if not points:
            return []

        lines = await store.list_stock_lines(warehouse_id=request.warehouse_id)
        on_hand = {line.key: line.quantity for line in lines}

        products = await master_data.get_products(sorted({p.product_id for p in points}))
        warehouses = await master_data.get_warehouses(
            sorted({p.warehouse_id for p in points if p.warehouse_id is not None})
        )

        checks = []
        for point in points:
            product = products.get(point.product_id)
            warehouse = warehouses.get(point.warehouse_id)  # type: ignore[arg-type]
            if product is None or warehouse is None:
                continue
            current = on_hand.get(StockLineKey(point.product_id, warehouse.id), 0)
            status = (
                ReorderStatus.BELOW_MIN
                if current <= point.min_stock_level
                else ReorderStatus.OK
            )
            checks.append(
                ReorderCheck(
                    product_id=product.id,
                    product_name=product.name,
                    warehouse_id=warehouse.id,
                    warehouse_name=warehouse.name,
                    current_stock=current,
                    min_stock_level=point.min_stock_level,
                    max_stock_level=point.max_stock_level,
                    reorder_status=status,
                )
            )

        checks.sort(key=lambda c: (c.product_name, c.warehouse_name))
        logger.info(
            "reorder_points_checked",
            warehouse_id=request.warehouse_id,
            checked=len(checks),
            below_min=sum(1 for c in checks if c.reorder_status is ReorderStatus.BELOW_MIN),
        )
        return checks

    def to_response(self, checks: list[ReorderCheck]) -> list[ReorderCheckResponse]:
        """Convert checks to response DTOs."""
        return [
            ReorderCheckResponse(
                **check.model_dump(exclude={"reorder_status"}),
                reorder_status=check.reorder_status.value,
            )
            for check in checks
        ]
