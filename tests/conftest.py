"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest

from stockledger.application.services import InventoryLedgerService, reset_services
from stockledger.application.use_cases import (
    CalculateStockValueUseCase,
    CheckReorderPointsUseCase,
    RecordMovementUseCase,
    TransferStockUseCase,
)
from stockledger.config import LedgerSettings, reset_settings
from stockledger.core.services.line_locks import StockLineLockTable
from stockledger.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteAuditLogStore,
    SQLiteMasterDataStore,
    SQLiteStockLedgerStore,
    reset_stores,
)
from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

WAREHOUSES = [
    (1, "Central Warehouse", "Jakarta"),
    (2, "North Depot", "Medan"),
    (3, "South Depot", "Surabaya"),
]

PRODUCTS = [
    (1, "Widget", 1, 1, "10.00"),
    (2, "Gadget", 1, 2, "25.50"),
    (3, "Bolt", 2, 1, "0.50"),
]

REORDER_POINTS = [
    # product, warehouse, min, max
    (1, 1, 10, 100),
    (1, 2, 5, 50),
    (2, 1, 0, 20),
    (3, None, 5, 10),
]


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached settings, services and stores around every test."""
    reset_settings()
    reset_services()
    reset_stores()
    yield
    reset_settings()
    reset_services()
    reset_stores()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "ledger.db"


@pytest.fixture
async def ledger_db(temp_db_path: Path) -> Path:
    """Migrated database seeded with warehouses, products and reorder points."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert results and all(r.success for r in results)

    async with aiosqlite.connect(temp_db_path) as conn:
        await conn.executemany(
            "INSERT INTO warehouses (id, name, location) VALUES (?, ?, ?)",
            WAREHOUSES,
        )
        await conn.executemany(
            """
            INSERT INTO products (id, name, category_id, supplier_id, unit_price)
            VALUES (?, ?, ?, ?, ?)
            """,
            PRODUCTS,
        )
        await conn.executemany(
            """
            INSERT INTO reorder_points (product_id, warehouse_id, min_stock_level, max_stock_level)
            VALUES (?, ?, ?, ?)
            """,
            REORDER_POINTS,
        )
        await conn.commit()

    return temp_db_path


@pytest.fixture
async def pool(ledger_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the seeded database."""
    pool = ConnectionPool(ledger_db, pool_size=4, busy_timeout=5000, acquire_timeout=5.0)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def ledger_store(pool: ConnectionPool) -> SQLiteStockLedgerStore:
    return SQLiteStockLedgerStore(pool)


@pytest.fixture
def master_data_store(pool: ConnectionPool) -> SQLiteMasterDataStore:
    return SQLiteMasterDataStore(pool)


@pytest.fixture
def audit_store(pool: ConnectionPool) -> SQLiteAuditLogStore:
    return SQLiteAuditLogStore(pool)


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(lock_timeout=2.0, snapshot_timeout=2.0, actor="tester")


@pytest.fixture
def lock_table(ledger_settings: LedgerSettings) -> StockLineLockTable:
    return StockLineLockTable(timeout=ledger_settings.lock_timeout)


@pytest.fixture
def ledger_deps(
    ledger_store: SQLiteStockLedgerStore,
    master_data_store: SQLiteMasterDataStore,
    audit_store: SQLiteAuditLogStore,
    lock_table: StockLineLockTable,
    ledger_settings: LedgerSettings,
) -> dict:
    """Keyword arguments shared by every use case over the temp database."""
    return {
        "ledger_store": ledger_store,
        "master_data": master_data_store,
        "audit_sink": audit_store,
        "locks": lock_table,
        "settings": ledger_settings,
    }


@pytest.fixture
def ledger_service(ledger_deps: dict) -> InventoryLedgerService:
    """Service facade wired to the temp database."""
    return InventoryLedgerService(
        record_movement=RecordMovementUseCase(**ledger_deps),
        transfer_stock=TransferStockUseCase(**ledger_deps),
        calculate_value=CalculateStockValueUseCase(**ledger_deps),
        check_reorder_points=CheckReorderPointsUseCase(**ledger_deps),
        ledger_store=ledger_deps["ledger_store"],
    )
