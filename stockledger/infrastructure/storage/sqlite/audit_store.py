"""SQLite implementation of the stock change audit log."""

import json

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.audit import AuditEntry, AuditOperation
from stockledger.core.interfaces.audit_sink import IAuditSink
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from stockledger.infrastructure.storage.sqlite.stock_ledger_store import (
    from_db_timestamp,
    to_db_timestamp,
)

logger = get_logger(__name__)


class SQLiteAuditLogStore(IAuditSink):
    """Append-only audit_log table."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def record(self, entry: AuditEntry) -> AuditEntry:
        """Store one audit entry."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO audit_log (
                    table_name, record_id, operation_type,
                    old_data, new_data, changed_by, changed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.table_name,
                    entry.record_id,
                    entry.operation_type.value,
                    json.dumps(entry.old_data) if entry.old_data is not None else None,
                    json.dumps(entry.new_data) if entry.new_data is not None else None,
                    entry.changed_by,
                    to_db_timestamp(entry.changed_at),
                ),
            )
            entry.id = cursor.lastrowid

        logger.debug(
            "audit_entry_recorded",
            audit_id=entry.id,
            record_id=entry.record_id,
            operation=entry.operation_type.value,
        )
        return entry

    async def list_entries(
        self, record_id: int | None = None, limit: int = 100
    ) -> list[AuditEntry]:
        """List entries oldest first, optionally for one record."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            if record_id is not None:
                cursor = await conn.execute(
                    "SELECT * FROM audit_log WHERE record_id = ? ORDER BY id LIMIT ?",
                    (record_id, limit),
                )
            else:
                cursor = await conn.execute(
                    "SELECT * FROM audit_log ORDER BY id LIMIT ?", (limit,)
                )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> AuditEntry:
        """Convert database row to AuditEntry entity."""
        return AuditEntry(
            id=row["id"],
            table_name=row["table_name"],
            record_id=row["record_id"],
            operation_type=AuditOperation(row["operation_type"]),
            old_data=json.loads(row["old_data"]) if row["old_data"] else None,
            new_data=json.loads(row["new_data"]) if row["new_data"] else None,
            changed_by=row["changed_by"],
            changed_at=from_db_timestamp(row["changed_at"]),
        )
