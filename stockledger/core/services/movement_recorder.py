"""
Movement recording against one stock line.

The recorder validates movement input and applies a single movement through
an open ledger session. It never opens transactions or takes locks itself:
the caller holds the stock line lock and owns the unit of work, so the
transfer use case can run two movements inside one transaction.

Cost lots are only ever created here. Outbound movements leave lot
``remaining_quantity`` untouched, so valuation keeps matching against the
full historical remaining quantity of each receipt.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from stockledger.config import get_logger
from stockledger.core.entities.audit import AuditEntry
from stockledger.core.entities.stock import (
    CostLot,
    Movement,
    MovementType,
    StockLine,
    utcnow,
)
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidMovementTypeError,
    InvalidQuantityError,
    InvalidUnitCostError,
    StockLineNotFoundError,
)
from stockledger.core.interfaces.stock_ledger_store import ILedgerSession

logger = get_logger(__name__)

CENTS = Decimal("0.01")
# Ten digits with two after the point, like a DECIMAL(10, 2) column
MAX_UNIT_COST = Decimal("99999999.99")


def validate_quantity(quantity: Any, operation: str = "movement") -> int:
    """Return ``quantity`` if it is a positive whole number."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity, operation)
    return quantity


def parse_movement_type(value: Any) -> MovementType:
    """Accept a MovementType or its exact string name."""
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(value)
    except ValueError:
        raise InvalidMovementTypeError(
            value, [t.value for t in MovementType]
        ) from None


def parse_unit_cost(value: Any) -> Decimal | None:
    """Normalise a unit cost to two decimal places, like the cost column."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidUnitCostError(value)
    try:
        # float goes through str() so 10.1 stays 10.1
        cost = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidUnitCostError(value) from None
    if not cost.is_finite() or cost < 0:
        raise InvalidUnitCostError(value)
    try:
        cost = cost.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidUnitCostError(value) from None
    if cost > MAX_UNIT_COST:
        raise InvalidUnitCostError(value)
    return cost


@dataclass
class AppliedMovement:
    """Outcome of one movement applied inside an open session."""

    movement: Movement
    line: StockLine
    old_stock: int
    new_stock: int
    cost_lot: CostLot | None = None
    line_created: bool = False
    audit_entries: list[AuditEntry] = field(default_factory=list)

    @property
    def effect_quantity(self) -> int:
        return self.new_stock - self.old_stock


class MovementRecorder:
    """Applies one validated movement to a stock line."""

    def __init__(self, actor: str = "stockledger"):
        self.actor = actor

    async def apply(
        self,
        session: ILedgerSession,
        product_id: int,
        warehouse_id: int,
        movement_type: MovementType,
        quantity: int,
        *,
        reference_type: str | None = None,
        reference_id: int | None = None,
        notes: str | None = None,
        unit_cost: Decimal | None = None,
    ) -> AppliedMovement:
        """
        Read, check and write one movement.

        Raises StockLineNotFoundError for an outbound movement on a line
        that does not exist and InsufficientStockError when the result would
        go below zero. Nothing is written in either case.
        """
        audit_entries: list[AuditEntry] = []
        line_created = False

        line = await session.get_stock_line(product_id, warehouse_id)
        if line is None:
            if not movement_type.is_inbound:
                raise StockLineNotFoundError(product_id, warehouse_id, movement_type.value)
            line = await session.create_stock_line(product_id, warehouse_id)
            line_created = True
            audit_entries.append(AuditEntry.line_created(line, self.actor))
            logger.info(
                "stock_line_created",
                stock_line_id=line.id,
                product_id=product_id,
                warehouse_id=warehouse_id,
            )

        before = line.model_copy()
        old_stock = line.quantity
        new_stock = old_stock + movement_type.signed(quantity)

        if new_stock < 0:
            raise InsufficientStockError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                movement_type=movement_type.value,
                available=old_stock,
                requested=quantity,
            )

        now = utcnow()
        line.quantity = new_stock
        line.last_updated = now
        line = await session.save_stock_line(line)
        audit_entries.append(AuditEntry.line_updated(before, line, self.actor))

        movement = await session.add_movement(
            Movement(
                product_id=product_id,
                warehouse_id=warehouse_id,
                movement_type=movement_type,
                quantity=quantity,
                movement_date=now,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=notes,
            )
        )

        cost_lot = None
        if movement_type is MovementType.IN and unit_cost is not None:
            cost_lot = await session.add_cost_lot(
                CostLot(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    movement_id=movement.id,
                    quantity_received=quantity,
                    unit_cost=unit_cost,
                    receipt_date=now,
                    remaining_quantity=quantity,
                )
            )

        return AppliedMovement(
            movement=movement,
            line=line,
            old_stock=old_stock,
            new_stock=new_stock,
            cost_lot=cost_lot,
            line_created=line_created,
            audit_entries=audit_entries,
        )
