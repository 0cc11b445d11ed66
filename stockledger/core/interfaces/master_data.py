"""Abstract interface for read-only master data lookup."""

from abc import ABC, abstractmethod

from stockledger.core.entities.master_data import Product, ReorderPoint, Warehouse


class IMasterDataStore(ABC):
    """Product and warehouse identity, owned by the catalogue."""

    @abstractmethod
    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""

    @abstractmethod
    async def get_warehouse(self, warehouse_id: int) -> Warehouse | None:
        """Get warehouse by ID."""

    @abstractmethod
    async def get_products(self, product_ids: list[int]) -> dict[int, Product]:
        """Bulk lookup; unknown IDs are absent from the result."""

    @abstractmethod
    async def get_warehouses(self, warehouse_ids: list[int]) -> dict[int, Warehouse]:
        """Bulk lookup; unknown IDs are absent from the result."""

    @abstractmethod
    async def list_reorder_points(
        self, warehouse_id: int | None = None
    ) -> list[ReorderPoint]:
        """Reorder points, optionally for one warehouse."""
