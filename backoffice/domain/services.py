"""
Domain Services - ledger transfers, moving-average stock costing and reversals.

Every public operation runs inside one unit of work: all reads happen first,
all derived writes are staged, then a single commit publishes them together.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from .amount_codec import format_amount
from .entities import Category, Movement, Product, Transaction
from .exceptions import NotFoundError, ValidationError
from .value_objects import (
    ZERO,
    Attachment,
    CategoryRow,
    MovementDirection,
    TransactionType,
    to_decimal,
    to_money,
)

logger = logging.getLogger(__name__)

DEFAULT_WAREHOUSE_LABEL = "Main warehouse"
DEFAULT_WAREHOUSE_TITLE = "Warehouse"


class ICategoryRepository(ABC):

    @abstractmethod
    def get(self, category_id: uuid.UUID) -> Category | None:
        ...

    @abstractmethod
    def get_by_title(self, title: str, row: CategoryRow | None = None) -> Category | None:
        ...

    @abstractmethod
    def list(self, row: CategoryRow | None = None, visible_only: bool = False) -> list[Category]:
        ...

    @abstractmethod
    def add(self, category: Category) -> Category:
        ...

    @abstractmethod
    def save(self, category: Category) -> Category:
        """Persist ``category`` only if the stored version is ``category.version - 1``."""
        ...


class ITransactionRepository(ABC):

    @abstractmethod
    def get(self, transaction_id: uuid.UUID) -> Transaction | None:
        ...

    @abstractmethod
    def add(self, transaction: Transaction) -> Transaction:
        ...

    @abstractmethod
    def delete(self, transaction: Transaction) -> None:
        ...

    @abstractmethod
    def find_linked(self, transaction: Transaction) -> list[Transaction]:
        """Other legs whose link field points at ``transaction`` or shares its link."""
        ...

    @abstractmethod
    def list_by_movement(self, movement_id: uuid.UUID) -> list[Transaction]:
        ...

    @abstractmethod
    def list_by_category(self, category_id: uuid.UUID) -> list[Transaction]:
        """Newest first."""
        ...


class IProductRepository(ABC):

    @abstractmethod
    def get(self, product_id: uuid.UUID) -> Product | None:
        ...

    @abstractmethod
    def list(self) -> list[Product]:
        ...

    @abstractmethod
    def add(self, product: Product) -> Product:
        ...

    @abstractmethod
    def save(self, product: Product) -> Product:
        """Persist ``product`` only if the stored version is ``product.version - 1``."""
        ...


class IMovementRepository(ABC):

    @abstractmethod
    def get(self, movement_id: uuid.UUID) -> Movement | None:
        ...

    @abstractmethod
    def add(self, movement: Movement) -> Movement:
        ...

    @abstractmethod
    def delete(self, movement: Movement) -> None:
        ...

    @abstractmethod
    def list_by_product(self, product_id: uuid.UUID) -> list[Movement]:
        """Newest first."""
        ...


class IUnitOfWork(ABC):
    """
    One atomic scope over all four repositories.
    Leaving the ``with`` block without ``commit()`` discards every staged write.
    """

    categories: ICategoryRepository
    transactions: ITransactionRepository
    products: IProductRepository
    movements: IMovementRepository

    def __enter__(self) -> "IUnitOfWork":
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


def _get_category(uow: IUnitOfWork, category_id: uuid.UUID) -> Category:
    category = uow.categories.get(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def _get_product(uow: IUnitOfWork, product_id: uuid.UUID) -> Product:
    product = uow.products.get(product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def _apply_deltas(uow: IUnitOfWork, deltas: dict[uuid.UUID, Decimal], at: datetime) -> None:
    for category_id, delta in deltas.items():
        category = uow.categories.get(category_id)
        if category is None:
            logger.warning("Category %s is gone, balance correction skipped", category_id)
            continue
        uow.categories.save(category.post(delta, at))


class LedgerTransferService:
    """
    Service - double-entry transfers between categories and their exact reversal.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def transfer(
        self,
        source_id: uuid.UUID,
        target_id: uuid.UUID,
        amount: Decimal,
        description: str,
        attachments: list[Attachment] | None = None,
        is_salary: bool | None = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Move ``amount`` from source to target as a withdrawal/deposit pair.
        Both ids are generated up front so each leg can point at the other.
        """
        if amount is None or to_decimal(amount) <= 0:
            raise ValidationError("Transfer amount must be greater than zero")
        if not description or not description.strip():
            raise ValidationError("A comment is required for a transfer")
        if source_id == target_id:
            raise ValidationError("Source and target categories must differ")
        amount = to_decimal(amount)
        if amount != to_money(amount):
            raise ValidationError("Transfer amount cannot have fractions of a cent")
        description = description.strip()

        with self.uow as uow:
            source = _get_category(uow, source_id)
            target = _get_category(uow, target_id)

            withdrawal_id = uuid.uuid4()
            deposit_id = uuid.uuid4()
            now = datetime.utcnow()
            salary = is_salary if source.is_employee and target.is_project else None

            common = dict(
                from_user=source.title,
                to_user=target.title,
                description=description,
                created_at=now,
                is_salary=salary,
            )
            withdrawal = Transaction(
                id=withdrawal_id,
                category_id=source.id,
                amount=-amount,
                type=TransactionType.EXPENSE,
                related_transaction_id=deposit_id,
                attachments=list(attachments or []),
                **common,
            )
            deposit = Transaction(
                id=deposit_id,
                category_id=target.id,
                amount=amount,
                type=TransactionType.INCOME,
                related_transaction_id=withdrawal_id,
                attachments=list(attachments or []),
                **common,
            )

            uow.transactions.add(withdrawal)
            uow.transactions.add(deposit)
            uow.categories.save(source.post(-amount, now))
            uow.categories.save(target.post(amount, now))
            uow.commit()

        logger.info(
            "Transferred %s from %s to %s",
            amount, source.title, target.title,
            extra={"withdrawal_id": withdrawal_id, "deposit_id": deposit_id},
        )
        return withdrawal, deposit

    def reverse_transaction(self, transaction_id: uuid.UUID) -> list[Transaction]:
        """
        Delete a transfer leg together with its sibling and undo both balance changes.
        Returns the deleted transactions.
        """
        with self.uow as uow:
            transaction = uow.transactions.get(transaction_id)
            if transaction is None:
                raise NotFoundError("Transaction", transaction_id)
            if transaction.movement_id is not None:
                raise ValidationError(
                    "Transaction belongs to a stock movement; reverse the movement instead"
                )

            legs = [transaction]
            if transaction.related_transaction_id is not None:
                siblings = uow.transactions.find_linked(transaction)
                if not siblings:
                    logger.warning(
                        "Sibling of transaction %s not found, reversing the single leg",
                        transaction_id,
                    )
                legs.extend(siblings)

            deltas: dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
            for leg in legs:
                uow.transactions.delete(leg)
                deltas[leg.category_id] += leg.reversal_delta()

            _apply_deltas(uow, deltas, datetime.utcnow())
            uow.commit()

        logger.info("Reversed transaction %s (%d legs)", transaction_id, len(legs))
        return legs


@dataclass
class StagedLine:
    """Writes staged for one document line inside an open unit of work."""
    product: Product
    movement: Movement
    transaction: Transaction

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount


class InventoryCostingService:
    """
    Service - incoming/outgoing stock at moving-average purchase cost.

    ``stage_*`` methods write into an already open unit of work and leave the
    category balance to the caller, so a multi-line document can aggregate it.
    ``apply_*`` methods are complete single-line operations.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        warehouse_label: str = DEFAULT_WAREHOUSE_LABEL,
        warehouse_title: str = DEFAULT_WAREHOUSE_TITLE,
    ):
        self.uow = uow
        self.warehouse_label = warehouse_label
        self.warehouse_title = warehouse_title

    def stage_income(
        self,
        uow: IUnitOfWork,
        product_id: uuid.UUID,
        quantity: Decimal,
        unit_price: Decimal,
        supplier: Category,
        warehouse: str | None = None,
        document_id: uuid.UUID | None = None,
        at: datetime | None = None,
    ) -> StagedLine:
        quantity = to_decimal(quantity)
        unit_price = to_decimal(unit_price)
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")

        product = _get_product(uow, product_id)
        updated = product.receive(quantity, unit_price)
        at = at or datetime.utcnow()
        movement_id = uuid.uuid4()
        transaction_id = uuid.uuid4()

        movement = Movement.between(
            product, updated, MovementDirection.IN, quantity, unit_price,
            id=movement_id,
            created_at=at,
            description=f"Receipt from {supplier.title}",
            warehouse=warehouse or self.warehouse_label,
            supplier=supplier.title,
            account_id=supplier.id,
            transaction_id=transaction_id,
            document_id=document_id,
        )
        transaction = Transaction(
            id=transaction_id,
            category_id=supplier.id,
            from_user=supplier.title,
            to_user=self.warehouse_title,
            amount=-movement.total_price,
            description=(
                f"Warehouse restock: {product.name} - {quantity} {product.unit} x "
                f"{format_amount(unit_price)} = {format_amount(movement.total_price)}"
            ),
            type=TransactionType.EXPENSE,
            created_at=at,
            movement_id=movement_id,
            document_id=document_id,
        )

        uow.products.save(updated)
        uow.movements.add(movement)
        uow.transactions.add(transaction)
        return StagedLine(updated, movement, transaction)

    def stage_expense(
        self,
        uow: IUnitOfWork,
        product_id: uuid.UUID,
        quantity: Decimal,
        project: Category,
        warehouse: str | None = None,
        document_id: uuid.UUID | None = None,
        at: datetime | None = None,
    ) -> StagedLine:
        quantity = to_decimal(quantity)
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")

        product = _get_product(uow, product_id)
        updated = product.issue(quantity)
        price = product.average_purchase_price
        at = at or datetime.utcnow()
        movement_id = uuid.uuid4()
        transaction_id = uuid.uuid4()

        movement = Movement.between(
            product, updated, MovementDirection.OUT, quantity, price,
            id=movement_id,
            created_at=at,
            description=f"Written off to project: {project.title}",
            warehouse=warehouse or self.warehouse_label,
            account_id=project.id,
            transaction_id=transaction_id,
            document_id=document_id,
        )
        transaction = Transaction(
            id=transaction_id,
            category_id=project.id,
            from_user=self.warehouse_title,
            to_user=project.title,
            amount=-movement.total_price,
            description=f"Warehouse write-off: {product.name} ({quantity} {product.unit})",
            type=TransactionType.EXPENSE,
            created_at=at,
            movement_id=movement_id,
            document_id=document_id,
            is_warehouse_operation=True,
        )

        uow.products.save(updated)
        uow.movements.add(movement)
        uow.transactions.add(transaction)
        return StagedLine(updated, movement, transaction)

    def apply_income(
        self,
        product_id: uuid.UUID,
        quantity: Decimal,
        unit_price: Decimal,
        source_account_title: str,
        warehouse_label: str | None = None,
    ) -> StagedLine:
        with self.uow as uow:
            supplier = uow.categories.get_by_title(source_account_title)
            if supplier is None:
                raise NotFoundError("Category", source_account_title)
            line = self.stage_income(
                uow, product_id, quantity, unit_price, supplier, warehouse_label
            )
            uow.categories.save(supplier.post(line.amount, line.movement.created_at))
            uow.commit()

        logger.info(
            "Received %s x %s at %s from %s",
            line.movement.quantity, line.product.name, line.movement.price, supplier.title,
            extra={"movement_id": line.movement.id},
        )
        return line

    def apply_expense(
        self,
        product_id: uuid.UUID,
        quantity: Decimal,
        target_account_title: str,
        warehouse_label: str | None = None,
    ) -> StagedLine:
        with self.uow as uow:
            project = uow.categories.get_by_title(target_account_title)
            if project is None:
                raise NotFoundError("Category", target_account_title)
            line = self.stage_expense(uow, product_id, quantity, project, warehouse_label)
            uow.categories.save(project.post(line.amount, line.movement.created_at))
            uow.commit()

        logger.info(
            "Issued %s x %s to %s",
            line.movement.quantity, line.product.name, project.title,
            extra={"movement_id": line.movement.id},
        )
        return line


class MovementReversalService:
    """
    Service - undo one stock movement against the live product state.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def reverse_movement(
        self,
        movement_id: uuid.UUID,
        product_id: uuid.UUID | None = None,
    ) -> Movement:
        with self.uow as uow:
            movement = uow.movements.get(movement_id)
            if movement is None:
                raise NotFoundError("Movement", movement_id)
            if product_id is not None and product_id != movement.product_id:
                raise ValidationError("Movement does not belong to this product")
            product = _get_product(uow, movement.product_id)

            if movement.direction == MovementDirection.IN:
                updated = product.revert_receipt(movement.quantity, movement.total_price)
            else:
                updated = product.revert_issue(movement.quantity, movement.previous_average_price)

            deltas: dict[uuid.UUID, Decimal] = defaultdict(lambda: ZERO)
            linked = uow.transactions.list_by_movement(movement.id)
            for transaction in linked:
                uow.transactions.delete(transaction)
                deltas[transaction.category_id] += transaction.reversal_delta()

            if not linked and movement.direction == MovementDirection.IN and movement.supplier:
                # Receipts recorded without a linked transaction still owe the supplier.
                supplier = None
                if movement.account_id is not None:
                    supplier = uow.categories.get(movement.account_id)
                if supplier is None:
                    supplier = uow.categories.get_by_title(movement.supplier, CategoryRow.EMPLOYEE)
                if supplier is not None:
                    deltas[supplier.id] += movement.total_price

            _apply_deltas(uow, deltas, datetime.utcnow())
            uow.movements.delete(movement)
            uow.products.save(updated)
            uow.commit()

        logger.info(
            "Reversed %s movement %s of %s",
            movement.direction.value, movement_id, product.name,
            extra={"deleted_transactions": len(linked)},
        )
        return movement


class CatalogService:
    """
    Service - registration of categories and products with zero balance/stock.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def create_category(
        self,
        title: str,
        row: CategoryRow,
        is_visible: bool = True,
        icon: str | None = None,
    ) -> Category:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Category title is required")

        with self.uow as uow:
            if uow.categories.get_by_title(title, row) is not None:
                raise ValidationError(f"Category {title} already exists")
            category = uow.categories.add(
                Category(title=title, row=CategoryRow(row), is_visible=is_visible, icon=icon)
            )
            uow.commit()

        logger.info("Created category %s", title, extra={"category_id": category.id})
        return category

    def create_product(
        self,
        name: str,
        category: str = "",
        unit: str = "pcs",
        min_quantity: Decimal = ZERO,
        folder_id: str | None = None,
    ) -> Product:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name is required")
        min_quantity = to_decimal(min_quantity)
        if min_quantity < 0:
            raise ValidationError("Minimum quantity cannot be negative")

        with self.uow as uow:
            product = uow.products.add(Product(
                name=name, category=category, unit=unit,
                min_quantity=min_quantity, folder_id=folder_id,
            ))
            uow.commit()

        logger.info("Created product %s", name, extra={"product_id": product.id})
        return product

    def get_category(self, category_id: uuid.UUID) -> Category:
        with self.uow as uow:
            return _get_category(uow, category_id)

    def get_product(self, product_id: uuid.UUID) -> Product:
        with self.uow as uow:
            return _get_product(uow, product_id)

    def list_categories(self, row: CategoryRow | None = None) -> list[Category]:
        with self.uow as uow:
            return uow.categories.list(row=row)

    def list_products(self) -> list[Product]:
        with self.uow as uow:
            return uow.products.list()


@dataclass
class WarehouseStats:
    total_products: int
    total_value: Decimal
    low_stock_count: int
    categories_count: int


@dataclass
class ProductHistory:
    product: Product
    movements: list[Movement] = field(default_factory=list)

    @property
    def total_in(self) -> Decimal:
        return sum((m.quantity for m in self.movements if m.direction == MovementDirection.IN), ZERO)

    @property
    def total_out(self) -> Decimal:
        return sum((m.quantity for m in self.movements if m.direction == MovementDirection.OUT), ZERO)

    @property
    def total_value(self) -> Decimal:
        return sum((m.total_price for m in self.movements if m.direction == MovementDirection.IN), ZERO)


class WarehouseReportService:
    """
    Service - read-only views: dashboard totals, product history, statements.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def warehouse_stats(self) -> WarehouseStats:
        with self.uow as uow:
            products = uow.products.list()
            categories = uow.categories.list()
        return WarehouseStats(
            total_products=len(products),
            total_value=sum((p.stock_value for p in products), ZERO),
            low_stock_count=sum(1 for p in products if p.is_low_stock),
            categories_count=len(categories),
        )

    def product_history(self, product_id: uuid.UUID) -> ProductHistory:
        with self.uow as uow:
            product = _get_product(uow, product_id)
            movements = uow.movements.list_by_product(product_id)
        return ProductHistory(product=product, movements=movements)

    def category_statement(self, category_id: uuid.UUID) -> tuple[Category, list[Transaction]]:
        with self.uow as uow:
            category = _get_category(uow, category_id)
            transactions = uow.transactions.list_by_category(category_id)
        return category, transactions

    def selectable_categories(self, row: CategoryRow) -> list[Category]:
        """Visible categories of one kind, alphabetically, as offered in selectors."""
        with self.uow as uow:
            categories = uow.categories.list(row=row, visible_only=True)
        return sorted(categories, key=lambda c: c.title.lower())
