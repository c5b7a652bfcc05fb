"""
API Routers - Warehouse reports.
"""

from fastapi import APIRouter, Depends

from backoffice.application.dto.backoffice_dto import WarehouseStatsDTO
from backoffice.domain.services import WarehouseReportService
from backoffice.infrastructure.database import get_uow
from backoffice.infrastructure.database.repositories import SqlUnitOfWork

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


@router.get("/warehouse-stats", response_model=WarehouseStatsDTO)
def get_warehouse_stats(uow: SqlUnitOfWork = Depends(get_uow)):
    """
    Dashboard totals: product count, stock value at average cost,
    low-stock products and category count.
    """
    stats = WarehouseReportService(uow).warehouse_stats()
    return WarehouseStatsDTO.model_validate(stats)
