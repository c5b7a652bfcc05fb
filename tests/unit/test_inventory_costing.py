"""
Unit tests - moving-average costing of incoming and outgoing stock.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from backoffice.domain.entities import Movement, Product
from backoffice.domain.exceptions import InsufficientStockError, NotFoundError, ValidationError
from backoffice.domain.value_objects import MovementDirection, TransactionType


class TestProductCosting:
    """Entity-level arithmetic."""

    def test_receive_reaverages(self):
        product = Product(name="Rebar", quantity=Decimal("4"),
                          average_purchase_price=Decimal("10"), total_purchase_price=Decimal("40"))
        updated = product.receive(Decimal("6"), Decimal("15"))
        assert updated.quantity == Decimal("10")
        assert updated.total_purchase_price == Decimal("130")
        assert updated.average_purchase_price == Decimal("13")
        assert updated.version == product.version + 1

    @pytest.mark.parametrize("old_qty,old_avg,qty,price", [
        ("0", "0", "10", "50"),
        ("10", "50", "10", "70"),
        ("3", "12.5", "7", "20"),
        ("1", "99", "1000", "0.01"),
    ])
    def test_receive_matches_weighted_average(self, old_qty, old_avg, qty, price):
        old_qty, old_avg, qty, price = map(Decimal, (old_qty, old_avg, qty, price))
        product = Product(name="Item", quantity=old_qty, average_purchase_price=old_avg,
                          total_purchase_price=old_qty * old_avg)
        updated = product.receive(qty, price)
        expected = (old_qty * old_avg + qty * price) / (old_qty + qty)
        assert abs(updated.average_purchase_price - expected) < Decimal("0.0001")

    def test_issue_keeps_average(self):
        product = Product(name="Board", quantity=Decimal("20"),
                          average_purchase_price=Decimal("60"), total_purchase_price=Decimal("1200"))
        updated = product.issue(Decimal("5"))
        assert updated.quantity == Decimal("15")
        assert updated.average_purchase_price == Decimal("60")
        assert updated.total_purchase_price == Decimal("900")

    def test_issue_to_zero_defines_average_as_zero(self):
        product = Product(name="Board", quantity=Decimal("3"),
                          average_purchase_price=Decimal("7"), total_purchase_price=Decimal("21"))
        updated = product.issue(Decimal("3"))
        assert updated.quantity == 0
        assert updated.average_purchase_price == 0
        assert updated.total_purchase_price == 0

    def test_revert_receipt_to_zero_clears_cost(self):
        product = Product(name="Board", quantity=Decimal("10"),
                          average_purchase_price=Decimal("60"), total_purchase_price=Decimal("600"))
        updated = product.revert_receipt(Decimal("10"), Decimal("500"))
        assert updated.quantity == 0
        assert updated.average_purchase_price == 0
        assert updated.total_purchase_price == 0

    def test_line_total_rounded_to_cents(self):
        product = Product(name="Board", quantity=Decimal("7"),
                          average_purchase_price=Decimal("8") / Decimal("7"), total_purchase_price=Decimal("8"))
        movement = Movement.between(product, product.issue(Decimal("1")), MovementDirection.OUT,
                                    Decimal("1"), product.average_purchase_price,
                                    description="used", warehouse="Main warehouse")
        assert movement.total_price == Decimal("1.14")

    def test_issue_more_than_on_hand(self):
        product = Product(name="Board", quantity=Decimal("5"))
        with pytest.raises(InsufficientStockError) as exc_info:
            product.issue(Decimal("10"))
        assert exc_info.value.available == Decimal("5")
        assert exc_info.value.code == "INSUFFICIENT_STOCK"

    def test_low_stock_threshold(self):
        assert Product(name="A", quantity=Decimal("5"), min_quantity=Decimal("5")).is_low_stock
        assert not Product(name="B", quantity=Decimal("6"), min_quantity=Decimal("5")).is_low_stock


class TestApplyIncome:

    def test_income_scenario(self, uow, costing, employee, product):
        """0 -> 10 @ 50 -> 20 @ avg 60, cumulative 1200."""
        costing.apply_income(product.id, 10, 50, employee.title)
        stored = uow.product(product.id)
        assert stored.quantity == Decimal("10")
        assert stored.average_purchase_price == Decimal("50")
        assert stored.total_purchase_price == Decimal("500")

        costing.apply_income(product.id, 10, 70, employee.title)
        stored = uow.product(product.id)
        assert stored.quantity == Decimal("20")
        assert stored.average_purchase_price == Decimal("60")
        assert stored.total_purchase_price == Decimal("1200")

    def test_income_charges_supplier_and_links_records(self, uow, costing, employee, product):
        line = costing.apply_income(product.id, 10, 50, employee.title)

        assert uow.category(employee.id).balance == Decimal("500")
        movement, transaction = line.movement, line.transaction
        assert movement.direction == MovementDirection.IN
        assert movement.total_price == Decimal("500")
        assert movement.previous_quantity == 0
        assert movement.new_quantity == Decimal("10")
        assert movement.new_average_price == Decimal("50")
        assert movement.supplier == employee.title
        assert movement.account_id == employee.id
        assert movement.warehouse == "Main warehouse"
        assert movement.transaction_id == transaction.id
        assert transaction.movement_id == movement.id
        assert transaction.amount == Decimal("-500")
        assert transaction.type == TransactionType.EXPENSE
        assert transaction.category_id == employee.id
        assert "10 bag x 50 ₸ = 500 ₸" in transaction.description
        assert uow.stored_movements == [movement]

    def test_custom_warehouse_label(self, costing, employee, product):
        line = costing.apply_income(product.id, 1, 5, employee.title, warehouse_label="Yard 2")
        assert line.movement.warehouse == "Yard 2"

    @pytest.mark.parametrize("quantity,price", [(0, 10), (-1, 10), (1, -10)])
    def test_invalid_input_rejected(self, uow, costing, employee, product, quantity, price):
        with pytest.raises(ValidationError):
            costing.apply_income(product.id, quantity, price, employee.title)
        assert uow.commits == 0

    def test_unknown_supplier(self, uow, costing, product):
        with pytest.raises(NotFoundError):
            costing.apply_income(product.id, 1, 5, "Nobody")
        assert uow.product(product.id).quantity == 0

    def test_unknown_product(self, costing, employee):
        with pytest.raises(NotFoundError):
            costing.apply_income(uuid4(), 1, 5, employee.title)


class TestApplyExpense:

    def test_expense_keeps_average_and_debits_project(self, uow, costing, employee, project, product):
        costing.apply_income(product.id, 10, 50, employee.title)
        costing.apply_income(product.id, 10, 70, employee.title)

        line = costing.apply_expense(product.id, 5, project.title)

        stored = uow.product(product.id)
        assert stored.quantity == Decimal("15")
        assert stored.average_purchase_price == Decimal("60")
        assert line.transaction.amount == Decimal("-300")
        assert line.transaction.is_warehouse_operation is True
        assert line.transaction.category_id == project.id
        assert line.movement.direction == MovementDirection.OUT
        assert line.movement.price == Decimal("60")
        assert uow.category(project.id).balance == Decimal("-300")

    def test_expense_over_stock_rejected(self, uow, costing, employee, project, product):
        """Quantity 5, request 10 -> rejected, quantity stays 5."""
        costing.apply_income(product.id, 5, 20, employee.title)
        commits = uow.commits

        with pytest.raises(InsufficientStockError):
            costing.apply_expense(product.id, 10, project.title)

        assert uow.product(product.id).quantity == Decimal("5")
        assert uow.commits == commits
        assert len(uow.stored_movements) == 1
        assert uow.category(project.id).balance == 0

    def test_expense_of_everything_zeroes_average(self, uow, costing, employee, project, product):
        costing.apply_income(product.id, 4, 25, employee.title)
        costing.apply_expense(product.id, 4, project.title)
        stored = uow.product(product.id)
        assert stored.quantity == 0
        assert stored.average_purchase_price == 0
