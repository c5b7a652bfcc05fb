"""
Infrastructure - SQL repositories and the SQL unit of work.

Category and product writes are conditional on the version read in the same
session (``UPDATE ... WHERE id = :id AND version = :expected``); a miss means
another session committed first and the whole unit is abandoned.
"""

import json
import uuid
from collections.abc import Callable

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.logging_config import get_logger
from backoffice.domain import entities
from backoffice.domain.exceptions import StorageError
from backoffice.domain.services import (
    ICategoryRepository,
    IMovementRepository,
    IProductRepository,
    ITransactionRepository,
    IUnitOfWork,
)
from backoffice.domain.value_objects import (
    Attachment,
    CategoryRow,
    MovementDirection,
    TransactionType,
)
from backoffice.infrastructure.database.models import Category as CategoryModel
from backoffice.infrastructure.database.models import Product as ProductModel
from backoffice.infrastructure.database.models import ProductMovement as MovementModel
from backoffice.infrastructure.database.models import Transaction as TransactionModel

logger = get_logger(__name__)


def _flush(session: Session) -> None:
    try:
        session.flush()
    except SQLAlchemyError as exc:
        raise StorageError(f"Write rejected by the database: {exc}") from exc


def _fresh(stmt):
    return stmt.execution_options(populate_existing=True)


def _category_to_domain(row: CategoryModel) -> entities.Category:
    return entities.Category(
        id=row.id,
        title=row.title,
        row=CategoryRow(row.row),
        balance=row.balance,
        is_visible=row.is_visible,
        icon=row.icon,
        updated_at=row.updated_at,
        version=row.version,
    )


def _transaction_to_domain(row: TransactionModel) -> entities.Transaction:
    attachments = [Attachment.from_dict(a) for a in json.loads(row.attachments or "[]")]
    return entities.Transaction(
        id=row.id,
        category_id=row.category_id,
        from_user=row.from_user,
        to_user=row.to_user,
        amount=row.amount,
        description=row.description,
        type=TransactionType(row.type),
        created_at=row.created_at,
        related_transaction_id=row.related_transaction_id,
        movement_id=row.movement_id,
        document_id=row.document_id,
        is_salary=row.is_salary,
        is_warehouse_operation=row.is_warehouse_operation,
        attachments=attachments,
    )


def _product_to_domain(row: ProductModel) -> entities.Product:
    return entities.Product(
        id=row.id,
        name=row.name,
        category=row.category,
        unit=row.unit,
        quantity=row.quantity,
        min_quantity=row.min_quantity,
        average_purchase_price=row.average_purchase_price,
        total_purchase_price=row.total_purchase_price,
        folder_id=row.folder_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
    )


def _movement_to_domain(row: MovementModel) -> entities.Movement:
    return entities.Movement(
        id=row.id,
        product_id=row.product_id,
        direction=MovementDirection(row.type),
        quantity=row.quantity,
        price=row.price,
        total_price=row.total_price,
        description=row.description,
        warehouse=row.warehouse,
        previous_quantity=row.previous_quantity,
        new_quantity=row.new_quantity,
        previous_average_price=row.previous_average_price,
        new_average_price=row.new_average_price,
        created_at=row.created_at,
        supplier=row.supplier,
        account_id=row.account_id,
        transaction_id=row.transaction_id,
        document_id=row.document_id,
    )


def _conditional_update(session: Session, model, entity, values: dict) -> None:
    result = session.execute(
        update(model)
        .where(model.id == entity.id, model.version == entity.version - 1)
        .values(version=entity.version, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StorageError(
            f"{model.__name__} {entity.id} was changed by another session, retry the operation"
        )


class SqlCategoryRepository(ICategoryRepository):

    def __init__(self, session: Session):
        self.session = session

    def get(self, category_id: uuid.UUID) -> entities.Category | None:
        row = self.session.get(
            CategoryModel, category_id, populate_existing=True, with_for_update=True
        )
        return _category_to_domain(row) if row else None

    def get_by_title(self, title: str, row: CategoryRow | None = None) -> entities.Category | None:
        stmt = select(CategoryModel).where(CategoryModel.title == title)
        if row is not None:
            stmt = stmt.where(CategoryModel.row == int(row))
        found = self.session.execute(
            _fresh(stmt.order_by(CategoryModel.created_at).limit(1))
        ).scalars().first()
        return _category_to_domain(found) if found else None

    def list(self, row: CategoryRow | None = None, visible_only: bool = False) -> list[entities.Category]:
        stmt = select(CategoryModel)
        if row is not None:
            stmt = stmt.where(CategoryModel.row == int(row))
        if visible_only:
            stmt = stmt.where(CategoryModel.is_visible.is_(True))
        rows = self.session.execute(_fresh(stmt.order_by(CategoryModel.title))).scalars().all()
        return [_category_to_domain(r) for r in rows]

    def add(self, category: entities.Category) -> entities.Category:
        self.session.add(CategoryModel(
            id=category.id,
            title=category.title,
            row=int(category.row),
            balance=category.balance,
            is_visible=category.is_visible,
            icon=category.icon,
            updated_at=category.updated_at,
            version=category.version,
        ))
        _flush(self.session)
        return category

    def save(self, category: entities.Category) -> entities.Category:
        _conditional_update(self.session, CategoryModel, category, {
            "title": category.title,
            "row": int(category.row),
            "balance": category.balance,
            "is_visible": category.is_visible,
            "icon": category.icon,
            "updated_at": category.updated_at,
        })
        return category


class SqlTransactionRepository(ITransactionRepository):

    def __init__(self, session: Session):
        self.session = session

    def get(self, transaction_id: uuid.UUID) -> entities.Transaction | None:
        row = self.session.get(TransactionModel, transaction_id, populate_existing=True)
        return _transaction_to_domain(row) if row else None

    def add(self, transaction: entities.Transaction) -> entities.Transaction:
        attachments = [a.to_dict() for a in transaction.attachments]
        self.session.add(TransactionModel(
            id=transaction.id,
            category_id=transaction.category_id,
            from_user=transaction.from_user,
            to_user=transaction.to_user,
            amount=transaction.amount,
            description=transaction.description,
            type=transaction.type.value,
            created_at=transaction.created_at,
            related_transaction_id=transaction.related_transaction_id,
            movement_id=transaction.movement_id,
            document_id=transaction.document_id,
            is_salary=transaction.is_salary,
            is_warehouse_operation=transaction.is_warehouse_operation,
            attachments=json.dumps(attachments) if attachments else None,
        ))
        _flush(self.session)
        return transaction

    def delete(self, transaction: entities.Transaction) -> None:
        row = self.session.get(TransactionModel, transaction.id)
        if row is None:
            raise StorageError(f"Transaction {transaction.id} was already deleted")
        self.session.delete(row)
        _flush(self.session)

    def find_linked(self, transaction: entities.Transaction) -> list[entities.Transaction]:
        links = [TransactionModel.related_transaction_id == transaction.id]
        if transaction.related_transaction_id is not None:
            links.append(TransactionModel.related_transaction_id == transaction.related_transaction_id)
        stmt = select(TransactionModel).where(or_(*links), TransactionModel.id != transaction.id)
        return [_transaction_to_domain(r) for r in self.session.execute(_fresh(stmt)).scalars().all()]

    def list_by_movement(self, movement_id: uuid.UUID) -> list[entities.Transaction]:
        stmt = select(TransactionModel).where(TransactionModel.movement_id == movement_id)
        return [_transaction_to_domain(r) for r in self.session.execute(_fresh(stmt)).scalars().all()]

    def list_by_category(self, category_id: uuid.UUID) -> list[entities.Transaction]:
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.category_id == category_id)
            .order_by(TransactionModel.created_at.desc())
        )
        return [_transaction_to_domain(r) for r in self.session.execute(_fresh(stmt)).scalars().all()]


class SqlProductRepository(IProductRepository):

    def __init__(self, session: Session):
        self.session = session

    def get(self, product_id: uuid.UUID) -> entities.Product | None:
        row = self.session.get(ProductModel, product_id, populate_existing=True, with_for_update=True)
        return _product_to_domain(row) if row else None

    def list(self) -> list[entities.Product]:
        rows = self.session.execute(_fresh(select(ProductModel).order_by(ProductModel.name))).scalars().all()
        return [_product_to_domain(r) for r in rows]

    def add(self, product: entities.Product) -> entities.Product:
        self.session.add(ProductModel(
            id=product.id,
            name=product.name,
            category=product.category,
            unit=product.unit,
            quantity=product.quantity,
            min_quantity=product.min_quantity,
            average_purchase_price=product.average_purchase_price,
            total_purchase_price=product.total_purchase_price,
            folder_id=product.folder_id,
            created_at=product.created_at,
            updated_at=product.updated_at,
            version=product.version,
        ))
        _flush(self.session)
        return product

    def save(self, product: entities.Product) -> entities.Product:
        _conditional_update(self.session, ProductModel, product, {
            "name": product.name,
            "category": product.category,
            "unit": product.unit,
            "quantity": product.quantity,
            "min_quantity": product.min_quantity,
            "average_purchase_price": product.average_purchase_price,
            "total_purchase_price": product.total_purchase_price,
            "folder_id": product.folder_id,
            "updated_at": product.updated_at,
        })
        return product


class SqlMovementRepository(IMovementRepository):

    def __init__(self, session: Session):
        self.session = session

    def get(self, movement_id: uuid.UUID) -> entities.Movement | None:
        row = self.session.get(MovementModel, movement_id, populate_existing=True)
        return _movement_to_domain(row) if row else None

    def add(self, movement: entities.Movement) -> entities.Movement:
        self.session.add(MovementModel(
            id=movement.id,
            product_id=movement.product_id,
            type=movement.direction.value,
            quantity=movement.quantity,
            price=movement.price,
            total_price=movement.total_price,
            description=movement.description,
            warehouse=movement.warehouse,
            previous_quantity=movement.previous_quantity,
            new_quantity=movement.new_quantity,
            previous_average_price=movement.previous_average_price,
            new_average_price=movement.new_average_price,
            supplier=movement.supplier,
            account_id=movement.account_id,
            transaction_id=movement.transaction_id,
            document_id=movement.document_id,
            created_at=movement.created_at,
        ))
        _flush(self.session)
        return movement

    def delete(self, movement: entities.Movement) -> None:
        row = self.session.get(MovementModel, movement.id)
        if row is None:
            raise StorageError(f"Movement {movement.id} was already deleted")
        self.session.delete(row)
        _flush(self.session)

    def list_by_product(self, product_id: uuid.UUID) -> list[entities.Movement]:
        stmt = (
            select(MovementModel)
            .where(MovementModel.product_id == product_id)
            .order_by(MovementModel.created_at.desc())
        )
        return [_movement_to_domain(r) for r in self.session.execute(_fresh(stmt)).scalars().all()]


class SqlUnitOfWork(IUnitOfWork):
    """Unit of work backed by one SQLAlchemy session per ``with`` block."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> "SqlUnitOfWork":
        self.session = self.session_factory()
        self.categories = SqlCategoryRepository(self.session)
        self.transactions = SqlTransactionRepository(self.session)
        self.products = SqlProductRepository(self.session)
        self.movements = SqlMovementRepository(self.session)
        return self

    def __exit__(self, *args) -> None:
        try:
            super().__exit__(*args)
        finally:
            self.session.close()
            self.session = None

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Commit aborted: %s", exc)
            raise StorageError(f"Commit aborted by the database: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()
