"""
Typed exceptions for the stock ledger.

Every error carries a machine-readable ``code`` so the HTTP layer can map it
to a status without matching on message text. Business conditions
(insufficient stock, validation) are never retried; a concurrency conflict
is transient and may be retried by the adjustment service.

    PharmaStockError
    |
    +-- ValidationError
    |   +-- InvalidArgumentError
    +-- NotFoundError
    +-- InsufficientStockError
    +-- AlreadyDisposedError
    +-- ConflictError
    |   +-- ConcurrencyConflictError
    +-- PersistenceError
"""


class PharmaStockError(Exception):
    code = "PHARMASTOCK_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_detail(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(PharmaStockError):
    code = "VALIDATION_ERROR"


class InvalidArgumentError(ValidationError):
    code = "INVALID_ARGUMENT"


class NotFoundError(PharmaStockError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__("{} not found: {}".format(entity, entity_id))


class InsufficientStockError(PharmaStockError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, current_quantity: int, delta: int):
        self.item_id = item_id
        self.current_quantity = current_quantity
        self.delta = delta
        super().__init__(
            "Insufficient stock for item {}: only {} units available, adjustment {}".format(
                item_id, current_quantity, delta
            )
        )

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["current_stock"] = self.current_quantity
        detail["requested_adjustment"] = self.delta
        return detail


class AlreadyDisposedError(PharmaStockError):
    code = "ALREADY_DISPOSED"

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__("Item {} is already disposed or inactive".format(item_id))


class ConflictError(PharmaStockError):
    code = "CONFLICT"


class ConcurrencyConflictError(ConflictError):
    code = "CONCURRENCY_CONFLICT"

    def __init__(self, item_id: int, message: str | None = None):
        self.item_id = item_id
        super().__init__(
            message or "Stock for item {} changed during the adjustment".format(item_id)
        )


class PersistenceError(PharmaStockError):
    code = "PERSISTENCE_ERROR"


__all__ = [
    "AlreadyDisposedError",
    "ConcurrencyConflictError",
    "ConflictError",
    "InsufficientStockError",
    "InvalidArgumentError",
    "NotFoundError",
    "PersistenceError",
    "PharmaStockError",
    "ValidationError",
]
