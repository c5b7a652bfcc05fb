"""Application layer - Use cases and DTOs."""

from backoffice.application.documents import (
    DocumentDraft,
    DocumentKind,
    DocumentResult,
    DocumentSubmissionService,
)
from backoffice.application.dto.backoffice_dto import (
    AttachmentDTO,
    CategoryCreateDTO,
    CategoryResponseDTO,
    CategoryStatementDTO,
    DocumentCreateDTO,
    DocumentLineDTO,
    DocumentResponseDTO,
    MovementResponseDTO,
    ProductCreateDTO,
    ProductHistoryDTO,
    ProductResponseDTO,
    ReversalResponseDTO,
    TransactionResponseDTO,
    TransferCreateDTO,
    TransferResponseDTO,
    WarehouseStatsDTO,
)
