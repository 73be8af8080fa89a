"""
Order processor tests: immediate purchase/sale settlement, the pending order
state machine, atomic multi-line orders and order numbering.
"""

from decimal import Decimal

import pytest

from procsim.models import FinancialRecord, Order
from procsim.services.errors import (
    InsufficientFundsError,
    InsufficientStockError,
    InvalidStateError,
    OrderAlreadyCompletedError,
    OrderNotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
    TaskNotStartedError,
)
from procsim.services.order_service import (
    cancel_order,
    create_order,
    create_purchase_order,
    create_sales_order,
    get_order_statistics,
    list_orders,
    process_order,
)
from procsim.services.task_service import advance_day


def _buy(store, student, task, supplier, product, quantity=10, unit_price="50.00"):
    return create_purchase_order(
        student.id, task.id, supplier.id,
        [{"product_id": product.id, "quantity": quantity, "unit_price": unit_price}],
        store=store,
    )


class TestPurchaseOrders:

    def test_settles_immediately(self, store, progress, student, task, supplier, product):
        order = _buy(store, student, task, supplier, product)

        assert order.status == "completed"
        assert order.order_type == "purchase"
        assert order.order_number == "PO-000001"
        assert order.total_amount == Decimal("500.00")
        assert order.completed_at is not None

        progress = store.get_progress(student.id, task.id)
        assert progress.current_balance == Decimal("9500.00")
        assert progress.inventory_value == Decimal("500.00")
        assert store.get_inventory_record(student.id, task.id, product.id).current_stock == 10

        [expense] = store.list_financial_records(student.id, task.id, record_type="expense")
        assert expense.related_order_id == order.id

    def test_accepts_camel_case_items(self, store, progress, student, task, supplier, product):
        order = create_purchase_order(
            student.id, task.id, supplier.id,
            [{"productId": product.id, "quantity": 2, "unitPrice": 12.5}],
            store=store,
        )
        assert order.total_amount == Decimal("25.00")

    def test_insufficient_funds(self, store, progress, student, task, supplier, product):
        with pytest.raises(InsufficientFundsError) as exc:
            _buy(store, student, task, supplier, product, quantity=101, unit_price="100.00")

        assert exc.value.details == {"required": "10100.00", "available": "10000.00"}
        assert store.list_orders(student.id, task.id) == []
        assert store.get_progress(student.id, task.id).current_balance == Decimal("10000.00")

    def test_unknown_supplier(self, store, progress, student, task, product):
        with pytest.raises(SupplierNotFoundError):
            create_purchase_order(
                student.id, task.id, 9999,
                [{"product_id": product.id, "quantity": 1, "unit_price": "1.00"}],
                store=store,
            )

    def test_unknown_product_rejects_whole_order(self, store, progress, student, task, supplier, product):
        with pytest.raises(ProductNotFoundError):
            create_purchase_order(
                student.id, task.id, supplier.id,
                [
                    {"product_id": product.id, "quantity": 1, "unit_price": "1.00"},
                    {"product_id": 9999, "quantity": 1, "unit_price": "1.00"},
                ],
                store=store,
            )
        assert store.list_inventory_records(student.id, task.id) == []

    def test_not_started(self, store, student, task, supplier, product):
        with pytest.raises(TaskNotStartedError):
            _buy(store, student, task, supplier, product)

    @pytest.mark.parametrize("items", [[], None, [{"product_id": 1, "quantity": 0, "unit_price": "1"}]])
    def test_malformed_items(self, store, progress, student, task, supplier, items):
        with pytest.raises(ValueError):
            create_purchase_order(student.id, task.id, supplier.id, items, store=store)


class TestSalesOrders:

    def test_scenario(self, store, progress, student, task, supplier, product):
        advance_day(student.id, task.id, store=store)
        _buy(store, student, task, supplier, product)

        order = create_sales_order(
            student.id, task.id, "Walk-in customer",
            [{"product_id": product.id, "quantity": 5, "unit_price": "80.00"}],
            store=store,
        )

        assert order.order_number == "SO-000001"
        assert order.customer_name == "Walk-in customer"
        assert order.total_amount == Decimal("400.00")

        progress = store.get_progress(student.id, task.id)
        assert progress.current_day == 2
        assert progress.current_balance == Decimal("9800.00")
        assert progress.total_revenue == Decimal("400.00")
        assert store.get_inventory_record(student.id, task.id, product.id).current_stock == 5

    def test_oversell_is_rejected(self, store, progress, student, task, supplier, product):
        advance_day(student.id, task.id, store=store)
        _buy(store, student, task, supplier, product, quantity=10)
        create_sales_order(
            student.id, task.id, None,
            [{"product_id": product.id, "quantity": 5, "unit_price": "80.00"}],
            store=store,
        )

        with pytest.raises(InsufficientStockError) as exc:
            create_sales_order(
                student.id, task.id, None,
                [{"product_id": product.id, "quantity": 20, "unit_price": "80.00"}],
                store=store,
            )

        assert exc.value.details["items"][0]["available_quantity"] == 5
        assert store.get_inventory_record(student.id, task.id, product.id).current_stock == 5
        assert store.get_progress(student.id, task.id).current_balance == Decimal("9800.00")

    def test_multi_line_order_is_atomic(self, store, progress, student, task, supplier, product, second_product):
        _buy(store, student, task, supplier, product, quantity=10)
        _buy(store, student, task, supplier, second_product, quantity=2, unit_price="10.00")
        balance_before = store.get_progress(student.id, task.id).current_balance

        with pytest.raises(InsufficientStockError) as exc:
            create_sales_order(
                student.id, task.id, None,
                [
                    {"product_id": product.id, "quantity": 4, "unit_price": "80.00"},
                    {"product_id": second_product.id, "quantity": 3, "unit_price": "15.00"},
                ],
                store=store,
            )

        assert [i["product_id"] for i in exc.value.details["items"]] == [second_product.id]
        assert store.get_inventory_record(student.id, task.id, product.id).current_stock == 10
        assert store.get_progress(student.id, task.id).current_balance == balance_before
        assert store.list_orders(student.id, task.id, order_type="sale") == []

    def test_lines_for_same_product_are_summed(self, store, progress, student, task, supplier, product):
        _buy(store, student, task, supplier, product, quantity=5)

        with pytest.raises(InsufficientStockError) as exc:
            create_sales_order(
                student.id, task.id, None,
                [
                    {"product_id": product.id, "quantity": 3, "unit_price": "80.00"},
                    {"product_id": product.id, "quantity": 3, "unit_price": "80.00"},
                ],
                store=store,
            )
        assert exc.value.details["items"][0]["requested_quantity"] == 6


class TestPendingOrders:

    def test_create_then_process(self, store, progress, student, task, supplier, product):
        order = create_order(
            student.id, task.id, "purchase",
            [{"product_id": product.id, "quantity": 4, "unit_price": "25.00"}],
            supplier_id=supplier.id,
            store=store,
        )
        assert order.status == "pending"
        assert store.get_progress(student.id, task.id).current_balance == Decimal("10000.00")

        order = process_order(order.id, student.id, task.id, store=store)
        assert order.status == "completed"
        assert store.get_progress(student.id, task.id).current_balance == Decimal("9900.00")

    def test_process_checks_funds_at_processing_time(self, store, progress, student, task, supplier, product):
        order = create_order(
            student.id, task.id, "purchase",
            [{"product_id": product.id, "quantity": 90, "unit_price": "100.00"}],
            supplier_id=supplier.id,
            store=store,
        )
        _buy(store, student, task, supplier, product, quantity=20, unit_price="100.00")

        with pytest.raises(InsufficientFundsError):
            process_order(order.id, student.id, task.id, store=store)
        assert store.get_order(order.id).status == "pending"

    def test_cannot_process_twice(self, store, progress, student, task, supplier, product):
        order = _buy(store, student, task, supplier, product)
        with pytest.raises(OrderAlreadyCompletedError):
            process_order(order.id, student.id, task.id, store=store)

    def test_invalid_order_type(self, store, progress, student, task, product):
        with pytest.raises(ValueError):
            create_order(
                student.id, task.id, "barter",
                [{"product_id": product.id, "quantity": 1, "unit_price": "1.00"}],
                store=store,
            )

    def test_order_numbers_are_per_type(self, store, progress, student, task, supplier, product):
        items = [{"product_id": product.id, "quantity": 1, "unit_price": "1.00"}]
        numbers = [
            create_order(student.id, task.id, "purchase", items, supplier_id=supplier.id, store=store).order_number,
            create_order(student.id, task.id, "sale", items, customer_name="A", store=store).order_number,
            create_order(student.id, task.id, "purchase", items, supplier_id=supplier.id, store=store).order_number,
        ]
        assert numbers == ["PO-000001", "SO-000001", "PO-000002"]


class TestCancelOrder:

    def test_cancel_pending(self, store, db_session, progress, student, task, supplier, product):
        order = create_order(
            student.id, task.id, "purchase",
            [{"product_id": product.id, "quantity": 1, "unit_price": "1.00"}],
            supplier_id=supplier.id,
            store=store,
        )
        order = cancel_order(order.id, student.id, task.id, store=store)

        assert order.status == "cancelled"
        assert order.cancelled_at is not None

        audit = db_session.query(FinancialRecord).filter_by(related_order_id=order.id).one()
        assert audit.amount == Decimal("0.00")
        assert audit.record_type == "expense"
        assert store.get_progress(student.id, task.id).current_balance == Decimal("10000.00")

    def test_cannot_cancel_completed(self, store, progress, student, task, supplier, product):
        order = _buy(store, student, task, supplier, product)
        with pytest.raises(OrderAlreadyCompletedError):
            cancel_order(order.id, student.id, task.id, store=store)
        assert store.get_order(order.id).status == "completed"

    def test_cannot_cancel_twice(self, store, progress, student, task, supplier, product):
        order = create_order(
            student.id, task.id, "sale",
            [{"product_id": product.id, "quantity": 1, "unit_price": "1.00"}],
            store=store,
        )
        cancel_order(order.id, student.id, task.id, store=store)
        with pytest.raises(InvalidStateError):
            cancel_order(order.id, student.id, task.id, store=store)
        with pytest.raises(InvalidStateError):
            process_order(order.id, student.id, task.id, store=store)

    def test_other_students_order_is_not_found(self, store, progress, student, other_student, task, supplier, product):
        order = _buy(store, student, task, supplier, product)
        with pytest.raises(OrderNotFoundError):
            cancel_order(order.id, other_student.id, task.id, store=store)


class TestOrderStatistics:

    def test_counts_and_totals(self, store, db_session, progress, student, task, supplier, product):
        _buy(store, student, task, supplier, product, quantity=10, unit_price="50.00")
        create_sales_order(
            student.id, task.id, None,
            [{"product_id": product.id, "quantity": 5, "unit_price": "80.00"}],
            store=store,
        )
        pending = create_order(
            student.id, task.id, "sale",
            [{"product_id": product.id, "quantity": 1, "unit_price": "80.00"}],
            store=store,
        )

        stats = get_order_statistics(student.id, task.id, store=store)

        assert stats["total_orders"] == 3
        assert stats["purchase_orders"] == 1
        assert stats["sales_orders"] == 2
        assert stats["pending_orders"] == 1
        assert stats["completed_orders"] == 2
        assert stats["total_purchase_amount"] == Decimal("500.00")
        assert stats["total_sales_amount"] == Decimal("480.00")
        assert stats["average_sales_value"] == Decimal("240.00")
        assert stats["fulfillment_rate"] == pytest.approx(200 / 3)

        assert [o.id for o in list_orders(student.id, task.id, status="pending", store=store)] == [pending.id]
        assert db_session.query(Order).count() == 3
