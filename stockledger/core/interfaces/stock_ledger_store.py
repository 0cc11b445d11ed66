"""Abstract interface for stock line, movement and cost lot storage."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field

from stockledger.core.entities.stock import CostLot, Movement, StockLine


@dataclass
class LineSnapshot:
    """A stock line and its cost lots observed at the same instant."""

    line: StockLine
    lots: list[CostLot] = field(default_factory=list)


class ILedgerSession(ABC):
    """
    Writes bound to one open transaction.

    Nothing done through a session is visible to other readers until the
    owning unit of work commits; an exception discards all of it.
    """

    @abstractmethod
    async def get_stock_line(
        self, product_id: int, warehouse_id: int
    ) -> StockLine | None:
        """Read a stock line inside the transaction."""

    @abstractmethod
    async def create_stock_line(self, product_id: int, warehouse_id: int) -> StockLine:
        """Insert a stock line at quantity 0."""

    @abstractmethod
    async def save_stock_line(self, line: StockLine) -> StockLine:
        """Persist quantity and last_updated of an existing line."""

    @abstractmethod
    async def add_movement(self, movement: Movement) -> Movement:
        """Append to the movement log."""

    @abstractmethod
    async def add_cost_lot(self, lot: CostLot) -> CostLot:
        """Append a cost lot."""


class IStockLedgerStore(ABC):
    """Interface for the stock line store, movement log and cost lot book."""

    @abstractmethod
    def unit_of_work(self) -> AbstractAsyncContextManager[ILedgerSession]:
        """
        Open a write transaction.

        Commits when the block exits normally and rolls back on any
        exception, including cancellation.
        """

    @abstractmethod
    async def read_snapshot(
        self,
        warehouse_id: int | None = None,
        product_id: int | None = None,
    ) -> list[LineSnapshot]:
        """Read matching lines with their lots in one read transaction."""

    @abstractmethod
    async def get_stock_line(
        self, product_id: int, warehouse_id: int
    ) -> StockLine | None:
        """Get a stock line by key."""

    @abstractmethod
    async def list_stock_lines(
        self,
        warehouse_id: int | None = None,
        product_id: int | None = None,
    ) -> list[StockLine]:
        """List stock lines ordered by product then warehouse."""

    @abstractmethod
    async def list_movements(
        self, product_id: int, warehouse_id: int, limit: int = 100
    ) -> list[Movement]:
        """Movements of a line, newest first."""

    @abstractmethod
    async def list_cost_lots(self, product_id: int, warehouse_id: int) -> list[CostLot]:
        """Cost lots of a line, ordered by receipt date then id."""
