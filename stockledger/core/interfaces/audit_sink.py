"""Abstract interface for the stock change audit trail."""

from abc import ABC, abstractmethod

from stockledger.core.entities.audit import AuditEntry


class IAuditSink(ABC):
    """Receives before/after images of every stock line change."""

    @abstractmethod
    async def record(self, entry: AuditEntry) -> AuditEntry:
        """Store one audit entry."""

    @abstractmethod
    async def list_entries(
        self, record_id: int | None = None, limit: int = 100
    ) -> list[AuditEntry]:
        """Entries oldest first, optionally for one record."""
