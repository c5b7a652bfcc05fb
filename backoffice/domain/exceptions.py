"""
Typed exceptions for the ledger and inventory engines.

    BackOfficeError (base)
    |
    +-- ValidationError         bad input, nothing was read or written
    +-- FormatError             amount string could not be parsed
    +-- NotFoundError           referenced record is missing
    +-- InsufficientStockError  expense exceeds quantity on hand
    +-- StorageError            the store rejected or aborted a commit

Every exception carries a machine-readable ``code``. ValidationError and
FormatError also derive from ValueError.
"""

from uuid import UUID


class BackOfficeError(Exception):
    """Base class for all back office errors."""

    code: str = "BACKOFFICE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BackOfficeError, ValueError):
    code = "VALIDATION_ERROR"


class FormatError(BackOfficeError, ValueError):
    code = "FORMAT_ERROR"

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Cannot parse amount from {raw!r}")


class NotFoundError(BackOfficeError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InsufficientStockError(BackOfficeError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, requested, available):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough {product_name} in stock: requested {requested}, available {available}"
        )


class StorageError(BackOfficeError):
    code = "STORAGE_ERROR"
