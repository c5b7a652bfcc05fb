"""Domain layer - Pure Python business logic."""

from backoffice.domain.amount_codec import format_amount, format_signed_amount, parse_amount
from backoffice.domain.entities import Category, Movement, Product, Transaction
from backoffice.domain.exceptions import (
    BackOfficeError,
    FormatError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from backoffice.domain.services import (
    CatalogService,
    ICategoryRepository,
    IMovementRepository,
    InventoryCostingService,
    IProductRepository,
    ITransactionRepository,
    IUnitOfWork,
    LedgerTransferService,
    MovementReversalService,
    StagedLine,
    WarehouseReportService,
)
from backoffice.domain.value_objects import (
    Attachment,
    CategoryRow,
    LineItem,
    MovementDirection,
    TransactionType,
)
