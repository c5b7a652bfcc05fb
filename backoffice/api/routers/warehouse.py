"""
API Routers - Products, warehouse documents and movement reversal.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.application.documents import (
    DocumentDraft,
    DocumentKind,
    DocumentResult,
    DocumentSubmissionService,
)
from backoffice.application.dto.backoffice_dto import (
    CategoryResponseDTO,
    DocumentCreateDTO,
    DocumentResponseDTO,
    MovementResponseDTO,
    ProductCreateDTO,
    ProductHistoryDTO,
    ProductResponseDTO,
    ReversalResponseDTO,
    TransactionResponseDTO,
)
from backoffice.core.config import settings
from backoffice.domain.services import (
    CatalogService,
    InventoryCostingService,
    MovementReversalService,
    WarehouseReportService,
)
from backoffice.domain.value_objects import LineItem
from backoffice.infrastructure.database import get_uow
from backoffice.infrastructure.database.repositories import SqlUnitOfWork

router = APIRouter(prefix="/api/v1", tags=["Warehouse"])


@router.post("/products", response_model=ProductResponseDTO, status_code=status.HTTP_201_CREATED)
def create_product(dto: ProductCreateDTO, uow: SqlUnitOfWork = Depends(get_uow)):
    """Register a product; stock arrives only through income documents."""
    product = CatalogService(uow).create_product(
        dto.name, dto.category, dto.unit, dto.min_quantity, dto.folder_id
    )
    return ProductResponseDTO.model_validate(product)


@router.get("/products", response_model=list[ProductResponseDTO])
def list_products(
    low_stock: bool = Query(False, description="Only products at or below their minimum"),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    products = CatalogService(uow).list_products()
    if low_stock:
        products = [p for p in products if p.is_low_stock]
    return [ProductResponseDTO.model_validate(p) for p in products]


@router.get("/products/{product_id}", response_model=ProductResponseDTO)
def get_product(product_id: UUID, uow: SqlUnitOfWork = Depends(get_uow)):
    product = CatalogService(uow).get_product(product_id)
    return ProductResponseDTO.model_validate(product)


@router.get("/products/{product_id}/movements", response_model=ProductHistoryDTO)
def get_product_movements(product_id: UUID, uow: SqlUnitOfWork = Depends(get_uow)):
    """Product card with every movement, newest first, and in/out totals."""
    history = WarehouseReportService(uow).product_history(product_id)
    return ProductHistoryDTO.model_validate(history)


def _draft_from_dto(dto: DocumentCreateDTO, kind: DocumentKind) -> DocumentDraft:
    draft = DocumentDraft(
        kind=kind,
        category_id=dto.category_id,
        items=[
            LineItem(product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price)
            for line in dto.lines
        ],
        note=dto.note,
        document_number=dto.document_number,
    )
    if dto.document_date is not None:
        draft.document_date = dto.document_date
    return draft


def _document_response(result: DocumentResult) -> DocumentResponseDTO:
    return DocumentResponseDTO(
        document_id=result.document_id,
        kind=result.kind.value,
        category=CategoryResponseDTO.model_validate(result.category),
        total=result.total,
        movements=[MovementResponseDTO.model_validate(line.movement) for line in result.lines],
        transactions=[TransactionResponseDTO.model_validate(line.transaction) for line in result.lines],
    )


def _submission_service(uow: SqlUnitOfWork) -> DocumentSubmissionService:
    costing = InventoryCostingService(uow, settings.warehouse_label, settings.warehouse_title)
    return DocumentSubmissionService(uow, costing)


@router.post("/documents/income", response_model=DocumentResponseDTO, status_code=status.HTTP_201_CREATED)
def submit_income_document(dto: DocumentCreateDTO, uow: SqlUnitOfWork = Depends(get_uow)):
    """
    Receive stock from an employee.

    - Every line re-averages the product cost
    - The employee balance decreases by the document total
    - All lines commit together or not at all
    """
    draft = _draft_from_dto(dto, DocumentKind.INCOME)
    return _document_response(_submission_service(uow).submit_income(draft))


@router.post("/documents/expense", response_model=DocumentResponseDTO, status_code=status.HTTP_201_CREATED)
def submit_expense_document(dto: DocumentCreateDTO, uow: SqlUnitOfWork = Depends(get_uow)):
    """
    Write stock off to a project at the current average cost.

    - Fails as a whole if any line exceeds the quantity on hand
    """
    draft = _draft_from_dto(dto, DocumentKind.EXPENSE)
    return _document_response(_submission_service(uow).submit_expense(draft))


@router.delete("/movements/{movement_id}", response_model=ReversalResponseDTO)
def reverse_movement(
    movement_id: UUID,
    product_id: UUID | None = Query(None, description="Reject if the movement is not of this product"),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """Undo one stock movement and the balance changes linked to it."""
    movement = MovementReversalService(uow).reverse_movement(movement_id, product_id)
    return ReversalResponseDTO(reversed_ids=[movement.id])
