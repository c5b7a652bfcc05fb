"""
API Routers - Categories (employees, projects, warehouse) and their statements.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.application.dto.backoffice_dto import (
    CategoryCreateDTO,
    CategoryResponseDTO,
    CategoryStatementDTO,
    TransactionResponseDTO,
)
from backoffice.domain.services import CatalogService, WarehouseReportService
from backoffice.domain.value_objects import CategoryRow
from backoffice.infrastructure.database import get_uow
from backoffice.infrastructure.database.repositories import SqlUnitOfWork

router = APIRouter(prefix="/api/v1", tags=["Categories"])


@router.post("/categories", response_model=CategoryResponseDTO, status_code=status.HTTP_201_CREATED)
def create_category(dto: CategoryCreateDTO, uow: SqlUnitOfWork = Depends(get_uow)):
    """
    Create a category with a zero balance.

    - Titles are unique within a row
    - Balances only ever change through transfers and warehouse documents
    """
    category = CatalogService(uow).create_category(dto.title, dto.row, dto.is_visible, dto.icon)
    return CategoryResponseDTO.model_validate(category)


@router.get("/categories", response_model=list[CategoryResponseDTO])
def list_categories(
    row: CategoryRow | None = Query(None, description="1 top-level, 2 employee, 3 project"),
    selectable: bool = Query(False, description="Only visible categories, alphabetically"),
    uow: SqlUnitOfWork = Depends(get_uow),
):
    """List categories, optionally filtered by row."""
    if selectable and row is not None:
        categories = WarehouseReportService(uow).selectable_categories(row)
    else:
        categories = CatalogService(uow).list_categories(row)
        if selectable:
            categories = [c for c in categories if c.is_visible]
    return [CategoryResponseDTO.model_validate(c) for c in categories]


@router.get("/categories/{category_id}", response_model=CategoryResponseDTO)
def get_category(category_id: UUID, uow: SqlUnitOfWork = Depends(get_uow)):
    category = CatalogService(uow).get_category(category_id)
    return CategoryResponseDTO.model_validate(category)


@router.get("/categories/{category_id}/transactions", response_model=CategoryStatementDTO)
def get_category_statement(category_id: UUID, uow: SqlUnitOfWork = Depends(get_uow)):
    """Category with all of its live transactions, newest first."""
    category, transactions = WarehouseReportService(uow).category_statement(category_id)
    return CategoryStatementDTO(
        category=CategoryResponseDTO.model_validate(category),
        transactions=[TransactionResponseDTO.model_validate(t) for t in transactions],
    )
