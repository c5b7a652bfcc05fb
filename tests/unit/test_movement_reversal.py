"""
Unit tests - reversal of stock movements.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.domain.entities import Movement
from backoffice.domain.exceptions import InsufficientStockError, NotFoundError, ValidationError
from backoffice.domain.value_objects import MovementDirection


class TestReverseIncome:

    def test_income_then_reverse_restores_product_and_supplier(
        self, uow, costing, reversal, employee, product
    ):
        costing.apply_income(product.id, 10, 50, employee.title)
        before = uow.product(product.id)
        line = costing.apply_income(product.id, 10, 70, employee.title)

        reversal.reverse_movement(line.movement.id)

        stored = uow.product(product.id)
        assert stored.quantity == before.quantity
        assert abs(stored.average_purchase_price - before.average_purchase_price) < Decimal("0.0001")
        assert stored.total_purchase_price == before.total_purchase_price
        assert uow.category(employee.id).balance == Decimal("500")
        assert len(uow.stored_movements) == 1
        assert line.transaction.id not in {t.id for t in uow.stored_transactions}

    def test_reverse_only_receipt_defines_average_as_zero(
        self, uow, costing, reversal, employee, product
    ):
        line = costing.apply_income(product.id, 10, 50, employee.title)

        reversal.reverse_movement(line.movement.id)

        stored = uow.product(product.id)
        assert stored.quantity == 0
        assert stored.average_purchase_price == 0
        assert stored.total_purchase_price == 0
        assert uow.category(employee.id).balance == Decimal("1000")
        assert uow.stored_transactions == []

    def test_reverse_receipt_after_partial_issue_resets_cost(
        self, uow, costing, reversal, employee, project, product
    ):
        first = costing.apply_income(product.id, 10, 50, employee.title)
        costing.apply_income(product.id, 10, 70, employee.title)
        costing.apply_expense(product.id, 10, project.title)

        reversal.reverse_movement(first.movement.id)

        emptied = uow.product(product.id)
        assert emptied.quantity == 0
        assert emptied.total_purchase_price == 0

        costing.apply_income(product.id, 10, 50, employee.title)

        stored = uow.product(product.id)
        assert stored.average_purchase_price == Decimal("50")
        assert stored.total_purchase_price == Decimal("500")

    def test_reverse_consumed_receipt_rejected(
        self, uow, costing, reversal, employee, project, product
    ):
        line = costing.apply_income(product.id, 10, 50, employee.title)
        costing.apply_expense(product.id, 8, project.title)

        with pytest.raises(InsufficientStockError):
            reversal.reverse_movement(line.movement.id)
        assert uow.product(product.id).quantity == Decimal("2")
        assert len(uow.stored_movements) == 2

    def test_legacy_receipt_without_transaction_credits_supplier(
        self, uow, reversal, employee, product
    ):
        received = product.receive(Decimal("4"), Decimal("25"))
        movement = Movement.between(
            product, received, MovementDirection.IN, Decimal("4"), Decimal("25"),
            description="Receipt", warehouse="Main warehouse", supplier=employee.title,
        )
        uow.seed(received)
        uow.committed["movements"][movement.id] = movement

        reversal.reverse_movement(movement.id)

        assert uow.category(employee.id).balance == Decimal("1100")
        assert uow.product(product.id).quantity == 0


class TestReverseExpense:

    def test_reverse_expense_restores_quantity_and_project(
        self, uow, costing, reversal, employee, project, product
    ):
        costing.apply_income(product.id, 10, 50, employee.title)
        line = costing.apply_expense(product.id, 4, project.title)

        reversal.reverse_movement(line.movement.id)

        stored = uow.product(product.id)
        assert stored.quantity == Decimal("10")
        assert stored.average_purchase_price == Decimal("50")
        assert stored.total_purchase_price == Decimal("500")
        assert uow.category(project.id).balance == 0

    def test_reverse_expense_that_emptied_stock(
        self, uow, costing, reversal, employee, project, product
    ):
        costing.apply_income(product.id, 6, 30, employee.title)
        line = costing.apply_expense(product.id, 6, project.title)

        reversal.reverse_movement(line.movement.id)

        stored = uow.product(product.id)
        assert stored.quantity == Decimal("6")
        assert stored.average_purchase_price == Decimal("30")
        assert stored.total_purchase_price == Decimal("180")


class TestReverseErrors:

    def test_unknown_movement(self, reversal):
        with pytest.raises(NotFoundError):
            reversal.reverse_movement(uuid4())

    def test_movement_of_other_product(self, uow, costing, reversal, employee, product):
        line = costing.apply_income(product.id, 1, 1, employee.title)
        with pytest.raises(ValidationError):
            reversal.reverse_movement(line.movement.id, product_id=uuid4())
        assert len(uow.stored_movements) == 1
