"""SQLite implementation of the stock line store, movement log and cost lot book."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.stock import (
    CostLot,
    Movement,
    MovementType,
    StockLine,
    StockLineKey,
    utcnow,
)
from stockledger.core.exceptions import StockLineNotFoundError
from stockledger.core.interfaces.stock_ledger_store import (
    ILedgerSession,
    IStockLedgerStore,
    LineSnapshot,
)
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


def to_db_timestamp(value: datetime) -> str:
    # Fixed width keeps lexical order equal to time order
    return value.isoformat(timespec="microseconds")


def _line_filter(
    warehouse_id: int | None, product_id: int | None
) -> tuple[str, list[Any]]:
    clauses = []
    params: list[Any] = []
    if warehouse_id is not None:
        clauses.append("warehouse_id = ?")
        params.append(warehouse_id)
    if product_id is not None:
        clauses.append("product_id = ?")
        params.append(product_id)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class SQLiteLedgerSession(ILedgerSession):
    """Ledger writes on a connection that already holds a write transaction."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_stock_line(
        self, product_id: int, warehouse_id: int
    ) -> StockLine | None:
        cursor = await self._conn.execute(
            "SELECT * FROM stock_lines WHERE product_id = ? AND warehouse_id = ?",
            (product_id, warehouse_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_stock_line(row)

    async def create_stock_line(self, product_id: int, warehouse_id: int) -> StockLine:
        line = StockLine(product_id=product_id, warehouse_id=warehouse_id, quantity=0)
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_lines (product_id, warehouse_id, quantity, last_updated)
            VALUES (?, ?, ?, ?)
            """,
            (
                line.product_id,
                line.warehouse_id,
                line.quantity,
                to_db_timestamp(line.last_updated),
            ),
        )
        line.id = cursor.lastrowid
        return line

    async def save_stock_line(self, line: StockLine) -> StockLine:
        cursor = await self._conn.execute(
            """
            UPDATE stock_lines SET
                quantity = ?,
                last_updated = ?
            WHERE product_id = ? AND warehouse_id = ?
            """,
            (
                line.quantity,
                to_db_timestamp(line.last_updated),
                line.product_id,
                line.warehouse_id,
            ),
        )
        if cursor.rowcount == 0:
            raise StockLineNotFoundError(line.product_id, line.warehouse_id)
        return line

    async def add_movement(self, movement: Movement) -> Movement:
        cursor = await self._conn.execute(
            """
            INSERT INTO stock_movements (
                product_id, warehouse_id, movement_type, quantity,
                movement_date, reference_type, reference_id, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.product_id,
                movement.warehouse_id,
                movement.movement_type.value,
                movement.quantity,
                to_db_timestamp(movement.movement_date),
                movement.reference_type,
                movement.reference_id,
                movement.notes,
            ),
        )
        movement.id = cursor.lastrowid
        logger.debug(
            "stock_movement_appended",
            movement_id=movement.id,
            type=movement.movement_type.value,
            qty=movement.quantity,
        )
        return movement

    async def add_cost_lot(self, lot: CostLot) -> CostLot:
        cursor = await self._conn.execute(
            """
            INSERT INTO cost_lots (
                product_id, warehouse_id, movement_id, quantity_received,
                unit_cost, receipt_date, remaining_quantity
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                lot.product_id,
                lot.warehouse_id,
                lot.movement_id,
                lot.quantity_received,
                str(lot.unit_cost),
                to_db_timestamp(lot.receipt_date),
                lot.remaining_quantity,
            ),
        )
        lot.id = cursor.lastrowid
        logger.debug(
            "cost_lot_created",
            cost_lot_id=lot.id,
            movement_id=lot.movement_id,
            qty=lot.quantity_received,
            unit_cost=str(lot.unit_cost),
        )
        return lot


class SQLiteStockLedgerStore(IStockLedgerStore):
    """SQLite implementation of the stock ledger storage."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[ILedgerSession]:
        """Open a write transaction; commit on exit, roll back on error."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            yield SQLiteLedgerSession(conn)

    async def read_snapshot(
        self,
        warehouse_id: int | None = None,
        product_id: int | None = None,
    ) -> list[LineSnapshot]:
        """Read matching lines with their lots in one read transaction."""
        where, params = _line_filter(warehouse_id, product_id)
        pool = await self._get_pool()
        async with pool.snapshot() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM stock_lines {where} ORDER BY product_id, warehouse_id",
                params,
            )
            lines = [_row_to_stock_line(row) for row in await cursor.fetchall()]

            cursor = await conn.execute(
                f"SELECT * FROM cost_lots {where} ORDER BY receipt_date, id",
                params,
            )
            lots = [_row_to_cost_lot(row) for row in await cursor.fetchall()]

        by_line: dict[StockLineKey, list[CostLot]] = {}
        for lot in lots:
            by_line.setdefault(StockLineKey(lot.product_id, lot.warehouse_id), []).append(lot)

        return [LineSnapshot(line=line, lots=by_line.get(line.key, [])) for line in lines]

    async def get_stock_line(
        self, product_id: int, warehouse_id: int
    ) -> StockLine | None:
        """Get a stock line by key."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_lines WHERE product_id = ? AND warehouse_id = ?",
                (product_id, warehouse_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return _row_to_stock_line(row)

    async def list_stock_lines(
        self,
        warehouse_id: int | None = None,
        product_id: int | None = None,
    ) -> list[StockLine]:
        """List stock lines ordered by product then warehouse."""
        where, params = _line_filter(warehouse_id, product_id)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM stock_lines {where} ORDER BY product_id, warehouse_id",
                params,
            )
            rows = await cursor.fetchall()
            return [_row_to_stock_line(row) for row in rows]

    async def list_movements(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> list[Movement]:
        """Movements of a line, newest first."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE product_id = ? AND warehouse_id = ?
                ORDER BY movement_date DESC, id DESC
                LIMIT ?
                """,
                (product_id, warehouse_id, limit),
            )
            rows = await cursor.fetchall()
            return [_row_to_movement(row) for row in rows]

    async def list_cost_lots(self, product_id: int, warehouse_id: int) -> list[CostLot]:
        """Cost lots of a line, ordered by receipt date then id."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM cost_lots
                WHERE product_id = ? AND warehouse_id = ?
                ORDER BY receipt_date, id
                """,
                (product_id, warehouse_id),
            )
            rows = await cursor.fetchall()
            return [_row_to_cost_lot(row) for row in rows]


def from_db_timestamp(value: str | None) -> datetime:
    if not value:
        return utcnow()
    return datetime.fromisoformat(value)


def _row_to_stock_line(row: aiosqlite.Row) -> StockLine:
    """Convert a database row to a StockLine entity."""
    return StockLine(
        id=row["id"],
        product_id=row["product_id"],
        warehouse_id=row["warehouse_id"],
        quantity=row["quantity"],
        last_updated=from_db_timestamp(row["last_updated"]),
    )


def _row_to_movement(row: aiosqlite.Row) -> Movement:
    """Convert a database row to a Movement entity."""
    return Movement(
        id=row["id"],
        product_id=row["product_id"],
        warehouse_id=row["warehouse_id"],
        movement_type=MovementType(row["movement_type"]),
        quantity=row["quantity"],
        movement_date=from_db_timestamp(row["movement_date"]),
        reference_type=row["reference_type"],
        reference_id=row["reference_id"],
        notes=row["notes"],
    )


def _row_to_cost_lot(row: aiosqlite.Row) -> CostLot:
    """Convert a database row to a CostLot entity."""
    return CostLot(
        id=row["id"],
        product_id=row["product_id"],
        warehouse_id=row["warehouse_id"],
        movement_id=row["movement_id"],
        quantity_received=row["quantity_received"],
        unit_cost=Decimal(row["unit_cost"]),
        receipt_date=from_db_timestamp(row["receipt_date"]),
        remaining_quantity=row["remaining_quantity"],
    )
