"""Audit trail entries for stock line changes."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from stockledger.core.entities.stock import StockLine, utcnow

STOCK_LINES_TABLE = "stock_lines"


class AuditOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


class AuditEntry(BaseModel):
    """Before/after images of one stock line change."""

    id: int | None = None
    table_name: str = STOCK_LINES_TABLE
    record_id: int | None = None
    operation_type: AuditOperation
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    changed_by: str
    changed_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def line_created(cls, line: StockLine, changed_by: str) -> "AuditEntry":
        return cls(
            record_id=line.id,
            operation_type=AuditOperation.INSERT,
            new_data=line.snapshot(),
            changed_by=changed_by,
        )

    @classmethod
    def line_updated(
        cls, before: StockLine, after: StockLine, changed_by: str
    ) -> "AuditEntry":
        return cls(
            record_id=after.id,
            operation_type=AuditOperation.UPDATE,
            old_data=before.snapshot(),
            new_data=after.snapshot(),
            changed_by=changed_by,
        )
