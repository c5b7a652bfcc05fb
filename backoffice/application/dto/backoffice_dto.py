"""
API DTOs - Data Transfer Objects for API requests/responses.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from backoffice.core.config import settings
from backoffice.domain.amount_codec import format_amount, format_signed_amount
from backoffice.domain.value_objects import (
    Attachment,
    CategoryRow,
    MovementDirection,
    TransactionType,
)


class CategoryCreateDTO(BaseModel):
    """DTO - Create an employee, project or top-level category."""
    title: str = Field(..., min_length=1, max_length=200, description="Display name")
    row: CategoryRow = Field(..., description="1 top-level, 2 employee, 3 project")
    is_visible: bool = Field(True, description="Offered in selectors")
    icon: str | None = Field(None, description="Icon name")

    model_config = ConfigDict(json_schema_extra={
        "example": {"title": "Aidar", "row": 2, "is_visible": True, "icon": "person"}
    })


class CategoryResponseDTO(BaseModel):
    """DTO - Category with its balance."""
    id: UUID
    title: str
    row: CategoryRow
    balance: Decimal
    is_visible: bool
    icon: str | None
    updated_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def balance_display(self) -> str:
        return format_signed_amount(self.balance, settings.currency_suffix)


class AttachmentDTO(BaseModel):
    """DTO - Metadata of a file already uploaded to object storage."""
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    content_type: str = ""
    size: int = Field(0, ge=0, le=settings.max_attachment_bytes)
    path: str = ""
    uploaded_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> Attachment:
        if self.uploaded_at is None:
            return Attachment(self.name, self.url, self.content_type, self.size, self.path)
        return Attachment(
            self.name, self.url, self.content_type, self.size, self.path, self.uploaded_at
        )


class TransferCreateDTO(BaseModel):
    """DTO - Move funds from one category to another."""
    source_id: UUID = Field(..., description="Category the funds leave")
    target_id: UUID = Field(..., description="Category the funds arrive at")
    amount: Decimal = Field(..., description="Positive amount")
    description: str = Field(..., max_length=500, description="Mandatory comment")
    is_salary: bool | None = Field(None, description="Only kept for employee -> project")
    attachments: list[AttachmentDTO] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "source_id": "00000000-0000-0000-0000-000000000001",
            "target_id": "00000000-0000-0000-0000-000000000002",
            "amount": 300,
            "description": "Materials for site 4",
            "is_salary": False,
            "attachments": [],
        }
    })


class TransactionResponseDTO(BaseModel):
    """DTO - One ledger leg."""
    id: UUID
    category_id: UUID
    from_user: str
    to_user: str
    amount: Decimal
    description: str
    type: TransactionType
    created_at: datetime
    related_transaction_id: UUID | None
    movement_id: UUID | None
    document_id: UUID | None
    is_salary: bool | None
    is_warehouse_operation: bool
    attachments: list[AttachmentDTO] = []

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def amount_display(self) -> str:
        return format_signed_amount(self.amount, settings.currency_suffix)


class TransferResponseDTO(BaseModel):
    withdrawal: TransactionResponseDTO
    deposit: TransactionResponseDTO


class ReversalResponseDTO(BaseModel):
    """DTO - Ids removed by a reversal."""
    reversed_ids: list[UUID]


class ProductCreateDTO(BaseModel):
    """DTO - Register a stock-keeping unit with zero stock."""
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field("", description="Free-form product group")
    unit: str = Field("pcs", min_length=1, description="Unit of measure")
    min_quantity: Decimal = Field(Decimal("0"), ge=0, description="Low-stock threshold")
    folder_id: str | None = None


class ProductResponseDTO(BaseModel):
    """DTO - Product with stock and cost."""
    id: UUID
    name: str
    category: str
    unit: str
    quantity: Decimal
    min_quantity: Decimal
    average_purchase_price: Decimal
    total_purchase_price: Decimal
    folder_id: str | None
    created_at: datetime
    updated_at: datetime
    version: int
    is_low_stock: bool
    stock_value: Decimal

    model_config = ConfigDict(from_attributes=True)


class MovementResponseDTO(BaseModel):
    """DTO - Audit record of one stock change."""
    id: UUID
    product_id: UUID
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
    created_at: datetime
    supplier: str | None
    account_id: UUID | None
    transaction_id: UUID | None
    document_id: UUID | None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def total_display(self) -> str:
        return format_amount(self.total_price, settings.currency_suffix)


class DocumentLineDTO(BaseModel):
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal = Field(Decimal("0"), description="Ignored for expense documents")


class DocumentCreateDTO(BaseModel):
    """DTO - Income (receipt) or expense (write-off) document."""
    category_id: UUID | None = Field(None, description="Employee for income, project for expense")
    lines: list[DocumentLineDTO] = Field(default_factory=list)
    note: str = ""
    document_number: str | None = None
    document_date: date | None = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "category_id": "00000000-0000-0000-0000-000000000002",
            "lines": [
                {"product_id": "00000000-0000-0000-0000-000000000010", "quantity": 10, "unit_price": 50}
            ],
            "note": "Delivery #17",
        }
    })


class DocumentResponseDTO(BaseModel):
    """DTO - Committed document."""
    document_id: UUID
    kind: str
    category: CategoryResponseDTO
    total: Decimal
    movements: list[MovementResponseDTO]
    transactions: list[TransactionResponseDTO]

    @computed_field
    @property
    def total_display(self) -> str:
        return format_amount(self.total, settings.currency_suffix)


class ProductHistoryDTO(BaseModel):
    """DTO - Product card with its movements, newest first."""
    product: ProductResponseDTO
    movements: list[MovementResponseDTO]
    total_in: Decimal
    total_out: Decimal
    total_value: Decimal

    model_config = ConfigDict(from_attributes=True)


class CategoryStatementDTO(BaseModel):
    category: CategoryResponseDTO
    transactions: list[TransactionResponseDTO]


class WarehouseStatsDTO(BaseModel):
    """DTO - Dashboard totals."""
    total_products: int
    total_value: Decimal
    low_stock_count: int
    categories_count: int

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def total_value_display(self) -> str:
        return format_amount(self.total_value, settings.currency_suffix)
