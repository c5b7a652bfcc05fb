"""
Domain Entities - categories, ledger transactions, products and stock movements.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from .exceptions import InsufficientStockError
from .value_objects import (
    ZERO,
    Attachment,
    CategoryRow,
    MovementDirection,
    TransactionType,
    to_money,
)


@dataclass
class Category:
    """
    Entity - named balance holder of the fund ledger (employee, project, warehouse).
    Balance is the sum of all live transactions that reference the category.
    """
    title: str
    row: CategoryRow
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    balance: Decimal = ZERO
    is_visible: bool = True
    icon: str | None = None
    updated_at: datetime = field(default_factory=datetime.utcnow)
    version: int = 1

    @property
    def is_employee(self) -> bool:
        return self.row == CategoryRow.EMPLOYEE

    @property
    def is_project(self) -> bool:
        return self.row == CategoryRow.PROJECT

    def post(self, delta: Decimal, at: datetime | None = None) -> "Category":
        return replace(
            self,
            balance=self.balance + delta,
            updated_at=at or datetime.utcnow(),
            version=self.version + 1,
        )


@dataclass
class Transaction:
    """
    Entity - one leg of a transfer, or the monetary side of a stock movement.
    Created once and deleted on reversal; never edited.
    """
    category_id: uuid.UUID
    from_user: str
    to_user: str
    amount: Decimal
    description: str
    type: TransactionType
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    related_transaction_id: uuid.UUID | None = None
    movement_id: uuid.UUID | None = None
    document_id: uuid.UUID | None = None
    is_salary: bool | None = None
    is_warehouse_operation: bool = False
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def is_transfer_leg(self) -> bool:
        return self.related_transaction_id is not None

    def reversal_delta(self) -> Decimal:
        """Balance change that undoes this transaction on its category."""
        if self.type == TransactionType.EXPENSE:
            return abs(self.amount)
        return -self.amount


@dataclass
class Product:
    """
    Entity - stock-keeping unit valued at moving-average purchase cost.
    average_purchase_price == total_purchase_price / quantity while quantity > 0.
    """
    name: str
    category: str = ""
    unit: str = "pcs"
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    quantity: Decimal = ZERO
    min_quantity: Decimal = ZERO
    average_purchase_price: Decimal = ZERO
    total_purchase_price: Decimal = ZERO
    folder_id: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    version: int = 1

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    @property
    def stock_value(self) -> Decimal:
        return self.quantity * self.average_purchase_price

    def _with_stock(self, quantity: Decimal, total: Decimal, average: Decimal) -> "Product":
        return replace(
            self,
            quantity=quantity,
            total_purchase_price=total,
            average_purchase_price=average,
            updated_at=datetime.utcnow(),
            version=self.version + 1,
        )

    def receive(self, quantity: Decimal, unit_price: Decimal) -> "Product":
        new_quantity = self.quantity + quantity
        new_total = self.total_purchase_price + to_money(quantity * unit_price)
        return self._with_stock(new_quantity, new_total, new_total / new_quantity)

    def issue(self, quantity: Decimal) -> "Product":
        if quantity > self.quantity:
            raise InsufficientStockError(self.name, quantity, self.quantity)
        new_quantity = self.quantity - quantity
        if new_quantity == 0:
            return self._with_stock(ZERO, ZERO, ZERO)
        new_total = self.total_purchase_price - quantity * self.average_purchase_price
        return self._with_stock(new_quantity, new_total, self.average_purchase_price)

    def revert_receipt(self, quantity: Decimal, line_total: Decimal) -> "Product":
        new_quantity = self.quantity - quantity
        if new_quantity < 0:
            raise InsufficientStockError(self.name, quantity, self.quantity)
        if new_quantity == 0:
            return self._with_stock(ZERO, ZERO, ZERO)
        new_total = self.total_purchase_price - line_total
        return self._with_stock(new_quantity, new_total, new_total / new_quantity)

    def revert_issue(self, quantity: Decimal, issued_at_average: Decimal) -> "Product":
        # An emptied product has no average left; fall back to the one it left with.
        average = self.average_purchase_price if self.quantity > 0 else issued_at_average
        new_quantity = self.quantity + quantity
        return self._with_stock(new_quantity, new_quantity * average, average)


@dataclass
class Movement:
    """
    Entity - audit record of one stock change. Snapshots are written once
    and stay valid after the product moves on.
    """
    product_id: uuid.UUID
    direction: MovementDirection
    quantity: Decimal
    price: Decimal
    total_price: Decimal
    description: str
    warehouse: str
    previous_quantity: Decimal
    new_quantity: Decimal
    previous_average_price: Decimal
    new_average_price: Decimal
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    supplier: str | None = None
    account_id: uuid.UUID | None = None
    transaction_id: uuid.UUID | None = None
    document_id: uuid.UUID | None = None

    @classmethod
    def between(
        cls,
        before: Product,
        after: Product,
        direction: MovementDirection,
        quantity: Decimal,
        price: Decimal,
        **kwargs,
    ) -> "Movement":
        """Build a movement whose snapshots describe ``before`` -> ``after``."""
        return cls(
            product_id=before.id,
            direction=direction,
            quantity=quantity,
            price=price,
            total_price=to_money(quantity * price),
            previous_quantity=before.quantity,
            new_quantity=after.quantity,
            previous_average_price=before.average_purchase_price,
            new_average_price=after.average_purchase_price,
            **kwargs,
        )
