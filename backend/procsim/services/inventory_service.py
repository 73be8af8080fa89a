# Overview: Service-layer operations for inventory; stock movements that also move money.

# backend/procsim/services/inventory_service.py
"""
Inventory Ledger Invariants (authoritative)

Stock model:
- One InventoryRecord per (user, task, product), upserted on every movement.
- current_stock never goes negative: an outgoing movement larger than the
  stock on hand is rejected before anything is written.

Money:
- Incoming: expense record (category 'procurement') for qty * unit_cost;
  balance decreases and inventory_value increases by the same amount.
  No funds check here: purchases are authorized by the order processor.
- Outgoing: income record (category 'sales') for qty * unit_price;
  balance and total_revenue increase by the revenue.

Cost basis:
- average_unit_cost is a running weighted average over incoming movements.
- Cost of goods sold for an outgoing movement is qty * average_unit_cost;
  total_profit += revenue - cogs, inventory_value -= cogs (floored at 0).
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP

from ..models import InventoryRecord, StudentProgress
from procsim.money import to_money, to_decimal, ZERO
from .concurrency import run_with_retry
from .errors import InsufficientStockError, ProductNotFoundError
from .ledger_service import append_financial_record
from .progress_service import require_progress, validate_quantity
from .records import RecordStore

DEFAULT_SAFETY_STOCK = 10
AVERAGE_COST_PLACES = Decimal("0.0001")

# Yearly holding cost as a fraction of unit price
HOLDING_COST_RATE = Decimal("0.20")


def _validate_unit_amount(value, field: str) -> Decimal:
    amount = to_money(value)
    if amount < 0:
        raise ValueError(f"{field} must be >= 0")
    return amount


def _apply_incoming(
    *,
    store: RecordStore,
    progress: StudentProgress,
    product_id: int,
    quantity: int,
    unit_cost: Decimal,
    related_order_id: int | None = None,
    description: str | None = None,
) -> InventoryRecord:
    """Core incoming logic without locking, retry, or commit.

    Called by both the public process_incoming() and the order processor.
    """
    record = store.get_inventory_record(progress.user_id, progress.task_id, product_id, lock=True)
    if record is None:
        record = InventoryRecord(
            user_id=progress.user_id,
            task_id=progress.task_id,
            product_id=product_id,
            current_stock=0,
            reserved_stock=0,
            average_unit_cost=Decimal("0"),
        )
        store.session.add(record)

    old_stock = record.current_stock or 0
    old_avg = Decimal(record.average_unit_cost or 0)
    new_stock = old_stock + quantity
    record.average_unit_cost = (
        (old_avg * old_stock + unit_cost * quantity) / new_stock
    ).quantize(AVERAGE_COST_PLACES, rounding=ROUND_HALF_UP)
    record.current_stock = new_stock

    total_cost = to_money(unit_cost * quantity)
    append_financial_record(
        user_id=progress.user_id,
        task_id=progress.task_id,
        record_type="expense",
        amount=total_cost,
        category="procurement",
        description=description or f"Stock received - product {product_id}, quantity {quantity}",
        related_order_id=related_order_id,
        store=store,
    )

    progress.current_balance = to_money(progress.current_balance) - total_cost
    progress.inventory_value = to_money(progress.inventory_value) + total_cost

    store.flush()
    return record


def process_incoming(
    user_id: int,
    task_id: int,
    product_id: int,
    quantity: int,
    unit_cost,
    *,
    store: RecordStore | None = None,
) -> InventoryRecord:
    """
    Receive stock into a student's inventory and pay for it.

    Fails with TaskNotStartedError / ProductNotFoundError before any write.
    """
    store = store or RecordStore()
    quantity = validate_quantity(quantity)
    unit_cost = _validate_unit_amount(unit_cost, "unit_cost")

    def _op():
        progress = require_progress(user_id, task_id, store=store)
        if store.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)

        record = _apply_incoming(
            store=store,
            progress=progress,
            product_id=product_id,
            quantity=quantity,
            unit_cost=unit_cost,
        )
        store.commit()
        return record

    return run_with_retry(_op, session=store.session)


def _apply_outgoing(
    *,
    store: RecordStore,
    progress: StudentProgress,
    product_id: int,
    quantity: int,
    unit_price: Decimal,
    related_order_id: int | None = None,
    description: str | None = None,
) -> InventoryRecord:
    """Core outgoing logic without retry or commit.

    Re-checks stock so the invariant holds even when called directly.
    """
    record = store.get_inventory_record(progress.user_id, progress.task_id, product_id, lock=True)
    available = record.current_stock if record is not None else 0
    if record is None or available < quantity:
        raise InsufficientStockError([
            {
                "product_id": product_id,
                "requested_quantity": quantity,
                "available_quantity": available,
            }
        ])

    record.current_stock = available - quantity

    revenue = to_money(unit_price * quantity)
    append_financial_record(
        user_id=progress.user_id,
        task_id=progress.task_id,
        record_type="income",
        amount=revenue,
        category="sales",
        description=description or f"Stock shipped - product {product_id}, quantity {quantity}",
        related_order_id=related_order_id,
        store=store,
    )

    cogs = to_money(Decimal(record.average_unit_cost or 0) * quantity)
    progress.current_balance = to_money(progress.current_balance) + revenue
    progress.total_revenue = to_money(progress.total_revenue) + revenue
    progress.total_profit = to_money(progress.total_profit) + (revenue - cogs)
    progress.inventory_value = max(ZERO, to_money(progress.inventory_value) - cogs)

    store.flush()
    return record


def process_outgoing(
    user_id: int,
    task_id: int,
    product_id: int,
    quantity: int,
    unit_price,
    *,
    store: RecordStore | None = None,
) -> InventoryRecord:
    """
    Ship stock out of a student's inventory and book the revenue.

    Fails with InsufficientStockError (stock unchanged) when no record exists
    or the stock on hand is below quantity.
    """
    store = store or RecordStore()
    quantity = validate_quantity(quantity)
    unit_price = _validate_unit_amount(unit_price, "unit_price")

    def _op():
        progress = require_progress(user_id, task_id, store=store)
        record = _apply_outgoing(
            store=store,
            progress=progress,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
        )
        store.commit()
        return record

    return run_with_retry(_op, session=store.session)


def list_inventory(user_id: int, task_id: int, *, store: RecordStore | None = None) -> list[InventoryRecord]:
    store = store or RecordStore()
    return store.list_inventory_records(user_id, task_id)


def units_sold_by_product(user_id: int, task_id: int, *, store: RecordStore) -> dict[int, int]:
    """Units shipped per product across completed sales orders."""
    sold: dict[int, int] = {}
    for order in store.list_orders(user_id, task_id, order_type="sale", status="completed"):
        for line in order.lines:
            sold[line.product_id] = sold.get(line.product_id, 0) + line.quantity
    return sold


def check_low_stock(user_id: int, task_id: int, *, store: RecordStore | None = None) -> list[dict]:
    """
    Alert on every product at or below its safety stock.

    severity: 'critical' when stock is 0, 'warning' when 0 < stock <= safety stock.
    """
    store = store or RecordStore()
    alerts = []
    for record in store.list_inventory_records(user_id, task_id):
        product = store.get_product(record.product_id)
        if product is None:
            continue

        safety_stock = product.safety_stock if product.safety_stock is not None else DEFAULT_SAFETY_STOCK
        if record.current_stock > safety_stock:
            continue

        alerts.append({
            "product_id": record.product_id,
            "product_name": product.name,
            "current_stock": record.current_stock,
            "safety_stock": safety_stock,
            "severity": "critical" if record.current_stock == 0 else "warning",
            "recommended_reorder_quantity": safety_stock * 2,
        })
    return alerts


def economic_order_quantity(average_demand, ordering_cost, holding_cost) -> int:
    """
    Classic EOQ: ceil(sqrt(2 * D * S / H)).

    D = average daily demand * 365, S = cost per order, H = yearly holding cost per unit.
    """
    average_demand = float(to_decimal(average_demand))
    ordering_cost = float(to_decimal(ordering_cost))
    holding_cost = float(to_decimal(holding_cost))

    if holding_cost <= 0:
        raise ValueError("holding_cost must be > 0")
    if average_demand < 0:
        raise ValueError("average_demand must be >= 0")
    if ordering_cost < 0:
        raise ValueError("ordering_cost must be >= 0")

    annual_demand = average_demand * 365
    return math.ceil(math.sqrt((2 * annual_demand * ordering_cost) / holding_cost))


def calculate_reorder_quantity(
    product_id: int,
    average_demand,
    ordering_cost,
    holding_cost,
    *,
    store: RecordStore | None = None,
) -> int:
    store = store or RecordStore()
    if store.get_product(product_id) is None:
        raise ProductNotFoundError(product_id)
    return economic_order_quantity(average_demand, ordering_cost, holding_cost)


def _turnover_tier(turnover_rate: float) -> str:
    if turnover_rate > 4:
        return "excellent"
    if turnover_rate > 2:
        return "good"
    return "needs improvement"


def analyze_inventory_turnover(user_id: int, task_id: int, *, store: RecordStore | None = None) -> list[dict]:
    """Per-product sold units vs. current stock."""
    store = store or RecordStore()
    sold = units_sold_by_product(user_id, task_id, store=store)

    analysis = []
    for record in store.list_inventory_records(user_id, task_id):
        product = store.get_product(record.product_id)
        if product is None:
            continue

        total_sold = sold.get(record.product_id, 0)
        turnover_rate = total_sold / record.current_stock if record.current_stock > 0 else 0.0

        analysis.append({
            "product_id": record.product_id,
            "product_name": product.name,
            "current_stock": record.current_stock,
            "total_sold": total_sold,
            "turnover_rate": round(turnover_rate, 4),
            "performance": _turnover_tier(turnover_rate),
        })
    return analysis


def generate_optimization_suggestions(
    user_id: int, task_id: int, *, store: RecordStore | None = None
) -> list[str]:
    store = store or RecordStore()
    alerts = check_low_stock(user_id, task_id, store=store)
    turnover = analyze_inventory_turnover(user_id, task_id, store=store)

    suggestions = []

    critical = [a for a in alerts if a["severity"] == "critical"]
    if critical:
        suggestions.append(f"Urgent: {len(critical)} product(s) out of stock, restock immediately")

    warning = [a for a in alerts if a["severity"] == "warning"]
    if warning:
        suggestions.append(f"Warning: {len(warning)} product(s) below safety stock")

    slow = [t for t in turnover if t["performance"] == "needs improvement"]
    if slow:
        suggestions.append(f"{len(slow)} product(s) turn over slowly, consider promotions or smaller purchases")

    fast = [t for t in turnover if t["performance"] == "excellent"]
    if fast:
        suggestions.append(f"{len(fast)} product(s) sell well, consider holding more stock")

    if not suggestions:
        suggestions.append("Inventory is healthy, keep the current strategy")

    return suggestions


def calculate_holding_cost(user_id: int, task_id: int, *, store: RecordStore | None = None) -> Decimal:
    """Daily holding cost: stock * unit_price * 20% / 365, summed over products."""
    store = store or RecordStore()
    total = Decimal("0")
    for record in store.list_inventory_records(user_id, task_id):
        product = store.get_product(record.product_id)
        if product is None:
            continue
        per_unit_daily = Decimal(product.unit_price) * HOLDING_COST_RATE / Decimal(365)
        total += per_unit_daily * record.current_stock
    return to_money(total)
