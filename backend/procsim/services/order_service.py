"""
Order Processor - purchase and sales order processing

Orders are documents; stock and money only move when an order is
settled. Settlement validates everything first (supplier, products, funds,
stock aggregated per product) and then applies every line in one DB
transaction, so a multi-line order is all-or-nothing.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import update

from ..models import Order, OrderLine, OrderSequence, StudentProgress
from ..models.orders import ORDER_TYPES
from procsim.money import to_money, ZERO
from procsim.time_utils import utcnow
from .concurrency import run_with_retry
from .errors import (
    InsufficientFundsError,
    InsufficientStockError,
    InvalidStateError,
    OrderAlreadyCompletedError,
    OrderNotFoundError,
    ProductNotFoundError,
    SupplierNotFoundError,
)
from .inventory_service import _apply_incoming, _apply_outgoing
from .ledger_service import append_financial_record
from .progress_service import require_progress, validate_quantity
from .records import RecordStore

logger = logging.getLogger(__name__)

ORDER_PREFIXES = {"purchase": "PO", "sale": "SO"}


def _normalize_items(items) -> list[dict]:
    """
    Validate order items into {product_id, quantity, unit_price (Decimal)} dicts.

    Accepts snake_case or camelCase keys so HTTP payloads pass straight through.
    """
    if not items:
        raise ValueError("order requires at least one item")

    normalized = []
    for item in items:
        product_id = item.get("product_id", item.get("productId"))
        quantity = item.get("quantity")
        unit_price = item.get("unit_price", item.get("unitPrice"))

        if product_id is None:
            raise ValueError("item product_id is required")
        if unit_price is None:
            raise ValueError("item unit_price is required")

        quantity = validate_quantity(quantity)
        unit_price = to_money(unit_price)
        if unit_price < 0:
            raise ValueError("item unit_price must be >= 0")

        normalized.append({
            "product_id": int(product_id),
            "quantity": quantity,
            "unit_price": unit_price,
        })
    return normalized


def _order_total(items: list[dict]) -> Decimal:
    return to_money(sum((item["unit_price"] * item["quantity"] for item in items), ZERO))


def _require_products(items: list[dict], *, store: RecordStore) -> None:
    for item in items:
        if store.get_product(item["product_id"]) is None:
            raise ProductNotFoundError(item["product_id"])


def _quantities_by_product(lines) -> dict[int, int]:
    totals: dict[int, int] = {}
    for line in lines:
        product_id = line["product_id"] if isinstance(line, dict) else line.product_id
        quantity = line["quantity"] if isinstance(line, dict) else line.quantity
        totals[product_id] = totals.get(product_id, 0) + quantity
    return totals


def _validate_stock(progress: StudentProgress, lines, *, store: RecordStore) -> None:
    """Reject the whole order if any product (summed over lines) is short."""
    insufficient = []
    for product_id, qty in _quantities_by_product(lines).items():
        record = store.get_inventory_record(progress.user_id, progress.task_id, product_id)
        available = record.current_stock if record is not None else 0
        if available < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "available_quantity": available,
            })

    if insufficient:
        raise InsufficientStockError(insufficient)


def _validate_funds(progress: StudentProgress, total: Decimal) -> None:
    balance = to_money(progress.current_balance)
    if balance < total:
        raise InsufficientFundsError(required=total, available=balance)


def next_order_number(order_type: str, *, store: RecordStore) -> str:
    """
    Allocate the next order number for a type ("PO-000001", "SO-000001").

    Runs inside the caller's transaction; the counter row is bumped with a
    single UPDATE so concurrent allocations never hand out the same number.
    """
    prefix = ORDER_PREFIXES[order_type]
    stmt = (
        update(OrderSequence)
        .where(OrderSequence.order_type == order_type)
        .values(next_number=OrderSequence.next_number + 1)
    )
    result = store.session.execute(stmt)
    if result.rowcount:
        current = (
            store.session.query(OrderSequence.next_number)
            .filter_by(order_type=order_type)
            .scalar()
        )
        number = current - 1
    else:
        store.session.add(OrderSequence(order_type=order_type, next_number=2))
        store.session.flush()
        number = 1
    return f"{prefix}-{number:06d}"


def _build_order(
    *,
    store: RecordStore,
    progress: StudentProgress,
    order_type: str,
    items: list[dict],
    supplier_id: int | None = None,
    customer_name: str | None = None,
) -> Order:
    order = Order(
        order_number=next_order_number(order_type, store=store),
        user_id=progress.user_id,
        task_id=progress.task_id,
        supplier_id=supplier_id,
        customer_name=customer_name,
        order_type=order_type,
        total_amount=_order_total(items),
        status="pending",
    )
    for item in items:
        order.lines.append(OrderLine(
            product_id=item["product_id"],
            quantity=item["quantity"],
            unit_price=item["unit_price"],
            line_total=to_money(item["unit_price"] * item["quantity"]),
        ))
    return store.add(order)


def _settle_order_locked(order: Order, progress: StudentProgress, *, store: RecordStore) -> Order:
    """Move stock and money for every line, then mark the order completed."""
    if order.status == "completed":
        raise OrderAlreadyCompletedError(order.id, order.order_number)
    if order.status != "pending":
        raise InvalidStateError(
            f"Cannot process order with status {order.status}",
            details={"order_id": order.id, "status": order.status},
        )

    lines = list(order.lines)
    if order.order_type == "purchase":
        _validate_funds(progress, to_money(order.total_amount))
        for line in lines:
            _apply_incoming(
                store=store,
                progress=progress,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_cost=to_money(line.unit_price),
                related_order_id=order.id,
                description=f"Purchase {order.order_number} - product {line.product_id}, quantity {line.quantity}",
            )
    else:
        _validate_stock(progress, lines, store=store)
        for line in lines:
            _apply_outgoing(
                store=store,
                progress=progress,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=to_money(line.unit_price),
                related_order_id=order.id,
                description=f"Sale {order.order_number} - product {line.product_id}, quantity {line.quantity}",
            )

    order.status = "completed"
    order.completed_at = utcnow()
    store.flush()
    return order


def create_purchase_order(
    user_id: int,
    task_id: int,
    supplier_id: int,
    items,
    *,
    store: RecordStore | None = None,
) -> Order:
    """
    Create and immediately settle a purchase order.

    Order of checks: supplier, items/products, progress, funds.
    """
    store = store or RecordStore()
    items = _normalize_items(items)

    def _op():
        if store.get_supplier(supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)
        _require_products(items, store=store)

        progress = require_progress(user_id, task_id, store=store)
        _validate_funds(progress, _order_total(items))

        order = _build_order(
            store=store,
            progress=progress,
            order_type="purchase",
            items=items,
            supplier_id=supplier_id,
        )
        _settle_order_locked(order, progress, store=store)
        store.commit()
        logger.info("Purchase order %s settled for user %s task %s", order.order_number, user_id, task_id)
        return order

    return run_with_retry(_op, session=store.session)


def create_sales_order(
    user_id: int,
    task_id: int,
    customer_name: str | None,
    items,
    *,
    store: RecordStore | None = None,
) -> Order:
    """
    Create and immediately settle a sales order.

    Stock for every line is checked before any mutation.
    """
    store = store or RecordStore()
    items = _normalize_items(items)

    def _op():
        progress = require_progress(user_id, task_id, store=store)
        _validate_stock(progress, items, store=store)

        order = _build_order(
            store=store,
            progress=progress,
            order_type="sale",
            items=items,
            customer_name=customer_name,
        )
        _settle_order_locked(order, progress, store=store)
        store.commit()
        logger.info("Sales order %s settled for user %s task %s", order.order_number, user_id, task_id)
        return order

    return run_with_retry(_op, session=store.session)


def create_order(
    user_id: int,
    task_id: int,
    order_type: str,
    items,
    *,
    supplier_id: int | None = None,
    customer_name: str | None = None,
    store: RecordStore | None = None,
) -> Order:
    """
    Record a pending order without settling it.

    Settle later with process_order() or drop it with cancel_order().
    """
    store = store or RecordStore()
    if order_type not in ORDER_TYPES:
        raise ValueError(f"invalid order_type: {order_type}")
    items = _normalize_items(items)

    def _op():
        if order_type == "purchase":
            if supplier_id is None or store.get_supplier(supplier_id) is None:
                raise SupplierNotFoundError(supplier_id)
        _require_products(items, store=store)
        progress = require_progress(user_id, task_id, store=store)

        order = _build_order(
            store=store,
            progress=progress,
            order_type=order_type,
            items=items,
            supplier_id=supplier_id if order_type == "purchase" else None,
            customer_name=customer_name if order_type == "sale" else None,
        )
        store.commit()
        return order

    return run_with_retry(_op, session=store.session)


def process_order(order_id: int, user_id: int, task_id: int, *, store: RecordStore | None = None) -> Order:
    """Settle a pending order. Funds/stock are checked against the state at processing time."""
    store = store or RecordStore()

    def _op():
        order = store.get_order(order_id, user_id=user_id, task_id=task_id, lock=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        progress = require_progress(user_id, task_id, store=store)
        _settle_order_locked(order, progress, store=store)
        store.commit()
        return order

    return run_with_retry(_op, session=store.session)


def cancel_order(order_id: int, user_id: int, task_id: int, *, store: RecordStore | None = None) -> Order:
    """
    Cancel a pending order.

    Completed orders are immutable (no stock/money reversal). A zero-amount
    expense record is appended as the audit trail of the cancellation.
    """
    store = store or RecordStore()

    def _op():
        order = store.get_order(order_id, user_id=user_id, task_id=task_id, lock=True)
        if order is None:
            raise OrderNotFoundError(order_id)

        if order.status == "completed":
            raise OrderAlreadyCompletedError(order.id, order.order_number)
        if order.status == "cancelled":
            raise InvalidStateError(
                "Order already cancelled",
                details={"order_id": order.id, "order_number": order.order_number},
            )

        order.status = "cancelled"
        order.cancelled_at = utcnow()

        append_financial_record(
            user_id=user_id,
            task_id=task_id,
            record_type="expense",
            amount=ZERO,
            category="operational",
            description=f"Order cancelled: {order.order_number}",
            related_order_id=order.id,
            store=store,
        )

        store.commit()
        return order

    return run_with_retry(_op, session=store.session)


def list_orders(
    user_id: int,
    task_id: int,
    *,
    order_type: str | None = None,
    status: str | None = None,
    store: RecordStore | None = None,
) -> list[Order]:
    store = store or RecordStore()
    return store.list_orders(user_id, task_id, order_type=order_type, status=status)


def get_order_statistics(user_id: int, task_id: int, *, store: RecordStore | None = None) -> dict:
    store = store or RecordStore()
    orders = store.list_orders(user_id, task_id)

    purchases = [o for o in orders if o.order_type == "purchase"]
    sales = [o for o in orders if o.order_type == "sale"]

    total_purchase_amount = to_money(sum((Decimal(o.total_amount) for o in purchases), ZERO))
    total_sales_amount = to_money(sum((Decimal(o.total_amount) for o in sales), ZERO))

    completed = sum(1 for o in orders if o.status == "completed")
    total_orders = len(orders)

    return {
        "total_orders": total_orders,
        "purchase_orders": len(purchases),
        "sales_orders": len(sales),
        "pending_orders": sum(1 for o in orders if o.status == "pending"),
        "completed_orders": completed,
        "cancelled_orders": sum(1 for o in orders if o.status == "cancelled"),
        "total_purchase_amount": total_purchase_amount,
        "total_sales_amount": total_sales_amount,
        "average_purchase_value": to_money(total_purchase_amount / len(purchases)) if purchases else ZERO,
        "average_sales_value": to_money(total_sales_amount / len(sales)) if sales else ZERO,
        "fulfillment_rate": (completed / total_orders * 100) if total_orders else 0.0,
        "gross_profit": total_sales_amount - total_purchase_amount,
    }
