"""SQLite implementation of master data lookup (products, warehouses, reorder points)."""

from decimal import Decimal

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.master_data import Product, ReorderPoint, Warehouse
from stockledger.core.interfaces.master_data import IMasterDataStore
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SQLiteMasterDataStore(IMasterDataStore):
    """Read-only view over the catalogue tables."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        products = await self.get_products([product_id])
        return products.get(product_id)

    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        """Get warehouse by ID."""
        warehouses = await self.get_warehouses([warehouse_id])
        return warehouses.get(warehouse_id)

    async def get_products(self, product_ids: list[int]) -> dict[int, Product]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM products WHERE id IN ({_placeholders(len(ids))})",
                ids,
            )
            rows = await cursor.fetchall()
            return {row["id"]: self._row_to_product(row) for row in rows}

    async def get_warehouses(self, warehouse_ids: list[int]) -> dict[int, Warehouse]:
        ids = sorted(set(warehouse_ids))
        if not ids:
            return {}
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM warehouses WHERE id IN ({_placeholders(len(ids))})",
                ids,
            )
            rows = await cursor.fetchall()
            return {row["id"]: self._row_to_warehouse(row) for row in rows}

    async def list_reorder_points(
        self, warehouse_id: int | None = None
    ) -> list[ReorderPoint]:
        """List reorder points, optionally for one warehouse."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            if warehouse_id is not None:
                cursor = await conn.execute(
                    "SELECT * FROM reorder_points WHERE warehouse_id = ? ORDER BY id",
                    (warehouse_id,),
                )
            else:
                cursor = await conn.execute("SELECT * FROM reorder_points ORDER BY id")
            rows = await cursor.fetchall()
            return [self._row_to_reorder_point(row) for row in rows]

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert database row to Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            category_id=row["category_id"],
            supplier_id=row["supplier_id"],
            unit_price=Decimal(str(row["unit_price"])),
        )

    @staticmethod
    def _row_to_warehouse(row: aiosqlite.Row) -> Warehouse:
        """Convert database row to Warehouse entity."""
        return Warehouse(id=row["id"], name=row["name"], location=row["location"])

    @staticmethod
    def _row_to_reorder_point(row: aiosqlite.Row) -> ReorderPoint:
        """Convert database row to ReorderPoint entity."""
        return ReorderPoint(
            id=row["id"],
            product_id=row["product_id"],
            warehouse_id=row["warehouse_id"],
            min_stock_level=row["min_stock_level"],
            max_stock_level=row["max_stock_level"],
        )
