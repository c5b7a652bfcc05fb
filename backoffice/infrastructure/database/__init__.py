"""
Database initialization and session management.
"""

from collections.abc import Generator
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from backoffice.core.config import settings
from backoffice.infrastructure.database.models import (
    Category,
    Product,
    ProductMovement,
    Transaction,
)
from backoffice.infrastructure.database.repositories import SqlUnitOfWork

DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})
else:
    engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency - Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_uow() -> SqlUnitOfWork:
    """Dependency - Unit of work over fresh sessions."""
    return SqlUnitOfWork(SessionLocal)


def init_db(bind=None) -> None:
    """Initialize database - create all tables."""
    from sqlmodel import SQLModel

    bind = bind or engine
    url = make_url(str(bind.url))
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind=bind)


if __name__ == "__main__":
    init_db()
    print("Database initialized successfully!")
