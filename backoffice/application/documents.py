"""
Use case - submit warehouse income/expense documents as one atomic unit.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from backoffice.core.logging_config import get_logger
from backoffice.domain.entities import Category, Product
from backoffice.domain.exceptions import BackOfficeError, NotFoundError, ValidationError
from backoffice.domain.services import InventoryCostingService, IUnitOfWork, StagedLine
from backoffice.domain.value_objects import ZERO, LineItem, to_decimal, to_money

logger = get_logger(__name__)


class DocumentKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass
class DocumentDraft:
    """
    In-progress document owned by one client session.
    Cleared by the coordinator after a successful commit, never on failure.
    """
    kind: DocumentKind
    category_id: uuid.UUID | None = None
    items: list[LineItem] = field(default_factory=list)
    note: str = ""
    document_number: str | None = None
    document_date: date = field(default_factory=date.today)

    def select_category(self, category_id: uuid.UUID | None) -> None:
        self.category_id = category_id

    def add_item(self, product: Product, quantity, unit_price=None) -> LineItem:
        """Add a product line; an existing line for the product gets the new quantity."""
        quantity = to_decimal(quantity)
        for index, item in enumerate(self.items):
            if item.product_id == product.id:
                price = item.unit_price if unit_price is None else to_decimal(unit_price)
                self.items[index] = LineItem(
                    product_id=item.product_id,
                    quantity=quantity,
                    unit_price=price,
                    product_name=item.product_name,
                    unit=item.unit,
                    cached_average_price=item.cached_average_price,
                )
                return self.items[index]

        price = product.average_purchase_price if unit_price is None else to_decimal(unit_price)
        item = LineItem(
            product_id=product.id,
            quantity=quantity,
            unit_price=price,
            product_name=product.name,
            unit=product.unit,
            cached_average_price=product.average_purchase_price,
        )
        self.items.append(item)
        return item

    def remove_item(self, product_id: uuid.UUID) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    @property
    def total_quantity(self) -> Decimal:
        return sum((item.quantity for item in self.items), ZERO)

    @property
    def preview_total(self) -> Decimal:
        """Estimate from cached product data; the committed value is recomputed."""
        if self.kind == DocumentKind.INCOME:
            return sum((to_money(item.quantity * item.unit_price) for item in self.items), ZERO)
        return sum((to_money(item.quantity * item.cached_average_price) for item in self.items), ZERO)

    def clear(self) -> None:
        self.category_id = None
        self.document_number = None
        self.document_date = date.today()
        self.items = []
        self.note = ""


@dataclass
class DocumentResult:
    document_id: uuid.UUID
    kind: DocumentKind
    category: Category
    lines: list[StagedLine]

    @property
    def total(self) -> Decimal:
        return sum((-line.amount for line in self.lines), ZERO)


class DocumentSubmissionService:
    """
    Coordinator - validates a draft, then stages every line and the aggregated
    category balance change in a single unit of work.
    """

    def __init__(self, uow: IUnitOfWork, costing: InventoryCostingService):
        self.uow = uow
        self.costing = costing

    def submit_income(self, draft: DocumentDraft) -> DocumentResult:
        return self._submit(draft, DocumentKind.INCOME)

    def submit_expense(self, draft: DocumentDraft) -> DocumentResult:
        return self._submit(draft, DocumentKind.EXPENSE)

    def _validate(self, draft: DocumentDraft, kind: DocumentKind) -> None:
        if draft.kind != kind:
            raise ValidationError(f"Draft is a {draft.kind.value} document, not {kind.value}")
        if draft.category_id is None:
            raise ValidationError(
                "Select an employee" if kind == DocumentKind.INCOME else "Select a project"
            )
        if not draft.items:
            raise ValidationError("Add at least one product")
        for item in draft.items:
            if item.quantity <= 0:
                raise ValidationError(f"Quantity of {item.product_name or item.product_id} must be positive")
            if kind == DocumentKind.INCOME and item.unit_price < 0:
                raise ValidationError(f"Price of {item.product_name or item.product_id} cannot be negative")

    def _check_category(self, category: Category, kind: DocumentKind) -> None:
        if not category.is_visible:
            raise ValidationError(f"Category {category.title} is hidden")
        if kind == DocumentKind.INCOME and not category.is_employee:
            raise ValidationError(f"{category.title} is not an employee")
        if kind == DocumentKind.EXPENSE and not category.is_project:
            raise ValidationError(f"{category.title} is not a project")

    def _submit(self, draft: DocumentDraft, kind: DocumentKind) -> DocumentResult:
        self._validate(draft, kind)

        document_id = uuid.uuid4()
        now = datetime.utcnow()
        try:
            with self.uow as uow:
                category = uow.categories.get(draft.category_id)
                if category is None:
                    raise NotFoundError("Category", draft.category_id)
                self._check_category(category, kind)

                lines: list[StagedLine] = []
                for item in draft.items:
                    if kind == DocumentKind.INCOME:
                        line = self.costing.stage_income(
                            uow, item.product_id, item.quantity, item.unit_price, category,
                            document_id=document_id, at=now,
                        )
                    else:
                        line = self.costing.stage_expense(
                            uow, item.product_id, item.quantity, category,
                            document_id=document_id, at=now,
                        )
                    lines.append(line)

                total = sum((line.amount for line in lines), ZERO)
                category = uow.categories.save(category.post(total, now))
                uow.commit()
        except BackOfficeError as exc:
            logger.warning("%s document rejected: %s", kind.value, exc.message)
            raise

        draft.clear()
        logger.info(
            "Committed %s document %s for %s: %d lines, total %s",
            kind.value, document_id, category.title, len(lines), -total,
        )
        return DocumentResult(document_id, kind, category, lines)
