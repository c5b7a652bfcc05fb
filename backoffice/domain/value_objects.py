"""
Domain Layer - Value objects and enumerations for the ledger and warehouse.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum, IntEnum
from uuid import UUID

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce ints, strings and floats to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value) -> Decimal:
    """Round a monetary amount to whole cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class CategoryRow(IntEnum):
    """Row a category is shown in; doubles as its kind."""
    TOP = 1          # Warehouse and other top-level holders
    EMPLOYEE = 2     # Employees (suppliers of warehouse receipts)
    PROJECT = 3      # Projects (consumers of warehouse write-offs)


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class MovementDirection(str, Enum):
    IN = "in"
    OUT = "out"


@dataclass(frozen=True, slots=True)
class Attachment:
    """Value Object - reference to a file already uploaded to object storage."""
    name: str
    url: str
    content_type: str
    size: int
    path: str
    uploaded_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "url": self.url,
            "content_type": self.content_type,
            "size": self.size,
            "path": self.path,
            "uploaded_at": self.uploaded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        uploaded_at = data.get("uploaded_at")
        return cls(
            name=data["name"],
            url=data["url"],
            content_type=data.get("content_type", ""),
            size=int(data.get("size", 0)),
            path=data.get("path", ""),
            uploaded_at=datetime.fromisoformat(uploaded_at) if uploaded_at else datetime.utcnow(),
        )


@dataclass(frozen=True, slots=True)
class LineItem:
    """One product line of an income or expense document."""
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal = ZERO
    product_name: str = ""
    unit: str = ""
    cached_average_price: Decimal = ZERO
