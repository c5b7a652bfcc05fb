"""
Main FastAPI application - Warehouse back office: fund ledger and stock.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backoffice.api.routers import categories, reports, transactions, warehouse
from backoffice.core.config import settings
from backoffice.core.logging_config import configure_logging, get_logger
from backoffice.domain.exceptions import (
    BackOfficeError,
    FormatError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from backoffice.infrastructure.database import init_db

logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    FormatError: 400,
    NotFoundError: 404,
    InsufficientStockError: 409,
    StorageError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_db()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(
    title=settings.app_name,
    description="""
## Warehouse back office

### Features:
- **Fund ledger**: transfers between employees, projects and the warehouse as linked withdrawal/deposit pairs
- **Stock**: income and expense documents at moving-average purchase cost
- **Reversal**: any transfer or stock movement can be undone, restoring every balance it touched

### Rules:
- Every operation commits atomically or not at all
- A category balance always equals the sum of its transactions
    """,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(categories.router)
app.include_router(transactions.router)
app.include_router(warehouse.router)
app.include_router(reports.router)


@app.get("/")
def root():
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(BackOfficeError)
async def backoffice_error_handler(request: Request, exc: BackOfficeError):
    """Translate domain errors into one message per failure."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error("Unhandled back office error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
