"""
Domain exceptions for the stock ledger.

Every expected business outcome has its own exception type carrying a
machine-readable code. The application service turns them into structured
error results.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for structured responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed before any mutation."""

    pass


class InvalidQuantityError(ValidationError):
    """Movement or transfer quantity is not positive."""

    def __init__(self, quantity: Any, operation: str = "movement"):
        super().__init__(
            f"Quantity for {operation} must be positive.",
            code="INVALID_QUANTITY",
            details={"quantity": quantity, "operation": operation},
        )


class InvalidMovementTypeError(ValidationError):
    """Movement type is not one of the recordable types."""

    def __init__(self, movement_type: Any, allowed: list[str]):
        super().__init__(
            f"Invalid movement type. Allowed: {', '.join(allowed)}.",
            code="INVALID_MOVEMENT_TYPE",
            details={"movement_type": str(movement_type), "allowed": allowed},
        )


class InvalidUnitCostError(ValidationError):
    """Unit cost is negative or not a number."""

    def __init__(self, unit_cost: Any):
        super().__init__(
            f"Unit cost must be a non-negative amount, got {unit_cost!r}.",
            code="INVALID_UNIT_COST",
            details={"unit_cost": str(unit_cost)},
        )


class InvalidValuationMethodError(ValidationError):
    """Valuation method is unknown."""

    def __init__(self, method: Any, allowed: list[str]):
        super().__init__(
            f"Invalid valuation method. Choose {', '.join(allowed)}.",
            code="INVALID_METHOD",
            details={"method": str(method), "allowed": allowed},
        )


class SameWarehouseTransferError(ValidationError):
    """Source and destination warehouse are the same."""

    def __init__(self, warehouse_id: int):
        super().__init__(
            "Cannot transfer stock to the same warehouse.",
            code="SAME_WAREHOUSE_TRANSFER",
            details={"warehouse_id": warehouse_id},
        )


# Lookup Exceptions
class NotFoundError(LedgerError):
    """A referenced record does not exist."""

    def __init__(self, message: str, entity: str, **keys: Any):
        super().__init__(
            message,
            code="NOT_FOUND",
            details={"entity": entity, **keys},
        )


class StockLineNotFoundError(NotFoundError):
    """No stock line for the product in the warehouse."""

    def __init__(self, product_id: int, warehouse_id: int, movement_type: str | None = None):
        if movement_type:
            message = (
                f"Product {product_id} not found in warehouse {warehouse_id} "
                f"for {movement_type} movement."
            )
        else:
            message = f"Product {product_id} not found in warehouse {warehouse_id}."
        super().__init__(
            message,
            entity="stock_line",
            product_id=product_id,
            warehouse_id=warehouse_id,
        )


class ProductNotFoundError(NotFoundError):
    """Product is unknown to master data."""

    def __init__(self, product_id: int):
        super().__init__(
            f"Product not found: {product_id}",
            entity="product",
            product_id=product_id,
        )


class WarehouseNotFoundError(NotFoundError):
    """Warehouse is unknown to master data."""

    def __init__(self, warehouse_id: int):
        super().__init__(
            f"Warehouse not found: {warehouse_id}",
            entity="warehouse",
            warehouse_id=warehouse_id,
        )


# Stock Exceptions
class InsufficientStockError(LedgerError):
    """Movement would take the stock line below zero."""

    def __init__(
        self,
        product_id: int,
        warehouse_id: int,
        movement_type: str,
        available: int,
        requested: int,
    ):
        super().__init__(
            f"Insufficient stock for {movement_type} movement. "
            f"Current: {available}, Requested: {requested}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "movement_type": movement_type,
                "available": available,
                "requested": requested,
            },
        )


class TransferFailedError(LedgerError):
    """A transfer leg failed; the whole transfer was rolled back."""

    def __init__(self, cause: Exception):
        cause_message = cause.message if isinstance(cause, LedgerError) else str(cause)
        super().__init__(
            f"Transfer failed: {cause_message}",
            code="TRANSFER_FAILED",
            details={"cause": _describe(cause)},
        )
        self.cause = cause


# Infrastructure Exceptions
class StorageFailureError(LedgerError):
    """Unexpected persistence fault."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(
            f"Storage failure during {operation}: {cause}",
            code="STORAGE_FAILURE",
            details={"operation": operation, "cause": _describe(cause)},
        )
        self.cause = cause


class LedgerBusyError(LedgerError):
    """A lock, connection or snapshot was not obtained in time."""

    def __init__(self, resource: str, timeout: float):
        super().__init__(
            f"Timed out after {timeout}s waiting for {resource}",
            code="BUSY",
            details={"resource": resource, "timeout": timeout},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass


def _describe(cause: Exception) -> dict[str, Any]:
    if isinstance(cause, LedgerError):
        return cause.to_dict()
    return {"error": type(cause).__name__, "message": str(cause)}
