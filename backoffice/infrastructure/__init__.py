"""Infrastructure layer."""

from backoffice.infrastructure.database import SessionLocal, get_db, get_uow, init_db
from backoffice.infrastructure.database.models import (
    Category,
    Product,
    ProductMovement,
    Transaction,
)
from backoffice.infrastructure.database.repositories import SqlUnitOfWork
