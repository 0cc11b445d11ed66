"""
Per stock line mutual exclusion.

Each (product, warehouse) key owns one asyncio.Lock. Callers that need
several lines take them through a single ``hold`` call so every task
acquires in the same ascending key order, which rules out deadlock between
opposite-direction transfers.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from stockledger.config import get_logger
from stockledger.core.entities.stock import StockLineKey
from stockledger.core.exceptions import LedgerBusyError

logger = get_logger(__name__)


class StockLineLockTable:
    """Lock table keyed by StockLineKey.

    An entry exists only while some task holds or waits for its key.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: dict[StockLineKey, asyncio.Lock] = {}
        self._users: dict[StockLineKey, int] = {}

    def _check_out(self, key: StockLineKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _check_in(self, key: StockLineKey) -> None:
        users = self._users[key] - 1
        if users:
            self._users[key] = users
        else:
            del self._users[key]
            del self._locks[key]

    def is_locked(self, key: StockLineKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(
        self, *keys: StockLineKey, timeout: float | None = None
    ) -> AsyncIterator[list[StockLineKey]]:
        """
        Hold the locks for ``keys`` for the duration of the block.

        Keys are deduplicated and acquired in ascending order. If any lock
        is not obtained within ``timeout`` seconds, locks already taken are
        released and LedgerBusyError is raised.

        Usage:
            async with locks.hold(StockLineKey(1, 2), StockLineKey(1, 3)):
                ...
        """
        wait = self.timeout if timeout is None else timeout
        ordered = sorted({StockLineKey(*key) for key in keys})
        checked_out: list[StockLineKey] = []
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._check_out(key)
                checked_out.append(key)
                try:
                    await asyncio.wait_for(lock.acquire(), wait)
                except TimeoutError:
                    logger.warning(
                        "stock_line_lock_timeout",
                        product_id=key.product_id,
                        warehouse_id=key.warehouse_id,
                        timeout=wait,
                    )
                    raise LedgerBusyError(
                        f"stock line {key.product_id}/{key.warehouse_id}", wait
                    ) from None
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in reversed(checked_out):
                self._check_in(key)
