"""
Pytest configuration and fixtures.
"""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.domain.entities import Category, Product
from backoffice.domain.exceptions import StorageError
from backoffice.domain.services import (
    ICategoryRepository,
    IMovementRepository,
    InventoryCostingService,
    IProductRepository,
    ITransactionRepository,
    IUnitOfWork,
    LedgerTransferService,
    MovementReversalService,
)
from backoffice.domain.value_objects import CategoryRow
from backoffice.infrastructure.database import init_db
from backoffice.infrastructure.database.repositories import SqlUnitOfWork


def _versioned_save(rows: dict, entity):
    current = rows.get(entity.id)
    if current is None or current.version != entity.version - 1:
        raise StorageError(f"{type(entity).__name__} {entity.id} was changed concurrently")
    rows[entity.id] = entity
    return entity


def _delete(rows: dict, entity) -> None:
    if rows.pop(entity.id, None) is None:
        raise StorageError(f"{type(entity).__name__} {entity.id} was already deleted")


class FakeCategoryRepository(ICategoryRepository):

    def __init__(self, uow: "FakeUnitOfWork", rows: dict):
        self.uow = uow
        self.rows = rows

    def get(self, category_id):
        self.uow.reads += 1
        found = self.rows.get(category_id)
        hook = self.uow.on_category_read
        if found is not None and hook is not None:
            self.uow.on_category_read = None
            hook(self.rows, found)
        return found

    def get_by_title(self, title, row=None):
        self.uow.reads += 1
        for category in self.rows.values():
            if category.title == title and (row is None or category.row == row):
                return category
        return None

    def list(self, row=None, visible_only=False):
        self.uow.reads += 1
        found = [
            c for c in self.rows.values()
            if (row is None or c.row == row) and (c.is_visible or not visible_only)
        ]
        return sorted(found, key=lambda c: c.title)

    def add(self, category):
        self.rows[category.id] = category
        return category

    def save(self, category):
        return _versioned_save(self.rows, category)


class FakeTransactionRepository(ITransactionRepository):

    def __init__(self, uow: "FakeUnitOfWork", rows: dict):
        self.uow = uow
        self.rows = rows

    def get(self, transaction_id):
        self.uow.reads += 1
        return self.rows.get(transaction_id)

    def add(self, transaction):
        self.rows[transaction.id] = transaction
        return transaction

    def delete(self, transaction):
        _delete(self.rows, transaction)

    def find_linked(self, transaction):
        links = {transaction.id}
        if transaction.related_transaction_id is not None:
            links.add(transaction.related_transaction_id)
        return [
            t for t in self.rows.values()
            if t.id != transaction.id and t.related_transaction_id in links
        ]

    def list_by_movement(self, movement_id):
        return [t for t in self.rows.values() if t.movement_id == movement_id]

    def list_by_category(self, category_id):
        found = [t for t in self.rows.values() if t.category_id == category_id]
        return sorted(found, key=lambda t: t.created_at, reverse=True)


class FakeProductRepository(IProductRepository):

    def __init__(self, uow: "FakeUnitOfWork", rows: dict):
        self.uow = uow
        self.rows = rows

    def get(self, product_id):
        self.uow.reads += 1
        return self.rows.get(product_id)

    def list(self):
        self.uow.reads += 1
        return sorted(self.rows.values(), key=lambda p: p.name)

    def add(self, product):
        self.rows[product.id] = product
        return product

    def save(self, product):
        return _versioned_save(self.rows, product)


class FakeMovementRepository(IMovementRepository):

    def __init__(self, uow: "FakeUnitOfWork", rows: dict):
        self.uow = uow
        self.rows = rows

    def get(self, movement_id):
        self.uow.reads += 1
        return self.rows.get(movement_id)

    def add(self, movement):
        self.rows[movement.id] = movement
        return movement

    def delete(self, movement):
        _delete(self.rows, movement)

    def list_by_product(self, product_id):
        found = [m for m in self.rows.values() if m.product_id == product_id]
        return sorted(found, key=lambda m: m.created_at, reverse=True)


class FakeUnitOfWork(IUnitOfWork):
    """
    In-memory unit of work. Writes go to a working copy that only replaces
    the committed state on commit(); leaving the block discards it.
    """

    def __init__(self):
        self.committed = {"categories": {}, "transactions": {}, "products": {}, "movements": {}}
        self.commits = 0
        self.reads = 0
        self.fail_on_commit = False
        self.on_category_read = None
        self._begin()

    def _begin(self) -> None:
        self.working = {name: dict(rows) for name, rows in self.committed.items()}
        self.categories = FakeCategoryRepository(self, self.working["categories"])
        self.transactions = FakeTransactionRepository(self, self.working["transactions"])
        self.products = FakeProductRepository(self, self.working["products"])
        self.movements = FakeMovementRepository(self, self.working["movements"])

    def __enter__(self):
        self._begin()
        return self

    def commit(self) -> None:
        if self.fail_on_commit:
            raise StorageError("Simulated commit failure")
        self.committed = {name: dict(rows) for name, rows in self.working.items()}
        self.commits += 1

    def rollback(self) -> None:
        self._begin()

    def seed(self, *entities) -> None:
        for entity in entities:
            table = "categories" if isinstance(entity, Category) else "products"
            self.committed[table][entity.id] = entity
        self._begin()

    def category(self, category_id) -> Category:
        return self.committed["categories"][category_id]

    def product(self, product_id) -> Product:
        return self.committed["products"][product_id]

    @property
    def stored_transactions(self) -> list:
        return list(self.committed["transactions"].values())

    @property
    def stored_movements(self) -> list:
        return list(self.committed["movements"].values())


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def employee(uow) -> Category:
    category = Category(title="Aidar", row=CategoryRow.EMPLOYEE, balance=Decimal("1000"))
    uow.seed(category)
    return category


@pytest.fixture
def project(uow) -> Category:
    category = Category(title="Residential block 4", row=CategoryRow.PROJECT)
    uow.seed(category)
    return category


@pytest.fixture
def warehouse(uow) -> Category:
    category = Category(title="Warehouse", row=CategoryRow.TOP)
    uow.seed(category)
    return category


@pytest.fixture
def product(uow) -> Product:
    item = Product(name="Cement M500", category="Building materials", unit="bag")
    uow.seed(item)
    return item


@pytest.fixture
def ledger(uow) -> LedgerTransferService:
    return LedgerTransferService(uow)


@pytest.fixture
def costing(uow) -> InventoryCostingService:
    return InventoryCostingService(uow)


@pytest.fixture
def reversal(uow) -> MovementReversalService:
    return MovementReversalService(uow)


@pytest.fixture
def sql_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def sql_uow(sql_session_factory) -> SqlUnitOfWork:
    return SqlUnitOfWork(sql_session_factory)
