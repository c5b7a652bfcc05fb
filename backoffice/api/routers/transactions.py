"""
API Routers - Fund transfers between categories and their reversal.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from backoffice.application.dto.backoffice_dto import (
    ReversalResponseDTO,
    TransactionResponseDTO,
    TransferCreateDTO,
    TransferResponseDTO,
)
from backoffice.domain.services import LedgerTransferService
from backoffice.infrastructure.database import get_uow
from backoffice.infrastructure.database.repositories import SqlUnitOfWork

router = APIRouter(prefix="/api/v1", tags=["Transfers"])


@router.post("/transfers", response_model=TransferResponseDTO, status_code=status.HTTP_201_CREATED)
def create_transfer(dto: TransferCreateDTO, uow: SqlUnitOfWork = Depends(get_uow)):
    """
    Move funds between two categories.

    - Records a withdrawal on the source and a deposit on the target
    - Each leg points at the other through related_transaction_id
    - Both balances change in the same commit
    """
    withdrawal, deposit = LedgerTransferService(uow).transfer(
        dto.source_id,
        dto.target_id,
        dto.amount,
        dto.description,
        attachments=[a.to_domain() for a in dto.attachments],
        is_salary=dto.is_salary,
    )
    return TransferResponseDTO(
        withdrawal=TransactionResponseDTO.model_validate(withdrawal),
        deposit=TransactionResponseDTO.model_validate(deposit),
    )


@router.delete("/transactions/{transaction_id}", response_model=ReversalResponseDTO)
def reverse_transaction(transaction_id: UUID, uow: SqlUnitOfWork = Depends(get_uow)):
    """Delete a transfer leg and its sibling, restoring both balances."""
    legs = LedgerTransferService(uow).reverse_transaction(transaction_id)
    return ReversalResponseDTO(reversed_ids=[leg.id for leg in legs])
