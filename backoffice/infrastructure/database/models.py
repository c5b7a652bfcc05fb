"""
Infrastructure - SQLModel table models.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Category(SQLModel, table=True):
    """Balance holder of the fund ledger."""

    __tablename__ = "categories"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(index=True)
    row: int = Field(index=True)  # 1 top, 2 employee, 3 project
    balance: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=2)
    is_visible: bool = True
    icon: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1


class Transaction(SQLModel, table=True):
    """One ledger leg."""

    __tablename__ = "transactions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    category_id: UUID = Field(foreign_key="categories.id", index=True)
    from_user: str
    to_user: str
    amount: Decimal = Field(max_digits=18, decimal_places=2)
    description: str
    type: str  # income, expense
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    related_transaction_id: UUID | None = Field(default=None, index=True)
    movement_id: UUID | None = Field(default=None, index=True)
    document_id: UUID | None = Field(default=None, index=True)
    is_salary: bool | None = None
    is_warehouse_operation: bool = False
    attachments: str | None = None  # JSON array of attachment metadata


class Product(SQLModel, table=True):
    """Stock-keeping unit."""

    __tablename__ = "products"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    category: str = ""
    unit: str = "pcs"
    quantity: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    min_quantity: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    average_purchase_price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    total_purchase_price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    folder_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1


class ProductMovement(SQLModel, table=True):
    """Audit record of one stock change."""

    __tablename__ = "product_movements"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    product_id: UUID = Field(foreign_key="products.id", index=True)
    type: str  # in, out
    quantity: Decimal = Field(max_digits=18, decimal_places=4)
    price: Decimal = Field(max_digits=18, decimal_places=4)
    total_price: Decimal = Field(max_digits=18, decimal_places=4)
    description: str
    warehouse: str
    previous_quantity: Decimal = Field(max_digits=18, decimal_places=4)
    new_quantity: Decimal = Field(max_digits=18, decimal_places=4)
    previous_average_price: Decimal = Field(max_digits=18, decimal_places=4)
    new_average_price: Decimal = Field(max_digits=18, decimal_places=4)
    supplier: str | None = None
    account_id: UUID | None = Field(default=None, index=True)
    transaction_id: UUID | None = None
    document_id: UUID | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
