# backend/procsim/routes/inventory.py
"""
Inventory routes, scoped to the caller's progress in one task.

Stock movements always carry a price: incoming stock is paid for at
unit_cost, outgoing stock earns unit_price.
"""
from flask import Blueprint, request, g

from ..decorators import require_user
from ..services import inventory_service
from procsim.money import money_str
from ..validation import require_fields, parse_int

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/tasks/<int:task_id>/inventory")


@inventory_bp.get("")
@require_user
def list_inventory_route(task_id: int):
    records = inventory_service.list_inventory(g.current_user.id, task_id)
    return {"items": [r.to_dict() for r in records], "count": len(records)}


@inventory_bp.post("/incoming")
@require_user
def incoming_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "product_id", "quantity", "unit_cost")

    record = inventory_service.process_incoming(
        g.current_user.id,
        task_id,
        parse_int(payload["product_id"], "product_id"),
        parse_int(payload["quantity"], "quantity"),
        payload["unit_cost"],
    )
    return {"inventory": record.to_dict()}, 201


@inventory_bp.post("/outgoing")
@require_user
def outgoing_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "product_id", "quantity", "unit_price")

    record = inventory_service.process_outgoing(
        g.current_user.id,
        task_id,
        parse_int(payload["product_id"], "product_id"),
        parse_int(payload["quantity"], "quantity"),
        payload["unit_price"],
    )
    return {"inventory": record.to_dict()}


@inventory_bp.get("/low-stock")
@require_user
def low_stock_route(task_id: int):
    alerts = inventory_service.check_low_stock(g.current_user.id, task_id)
    return {"items": alerts, "count": len(alerts)}


@inventory_bp.get("/turnover")
@require_user
def turnover_route(task_id: int):
    return {"items": inventory_service.analyze_inventory_turnover(g.current_user.id, task_id)}


@inventory_bp.get("/optimization")
@require_user
def optimization_route(task_id: int):
    return {"suggestions": inventory_service.generate_optimization_suggestions(g.current_user.id, task_id)}


@inventory_bp.get("/holding-cost")
@require_user
def holding_cost_route(task_id: int):
    cost = inventory_service.calculate_holding_cost(g.current_user.id, task_id)
    return {"daily_holding_cost": money_str(cost)}


@inventory_bp.post("/reorder-quantity")
@require_user
def reorder_quantity_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "product_id", "average_demand", "ordering_cost", "holding_cost")

    quantity = inventory_service.calculate_reorder_quantity(
        parse_int(payload["product_id"], "product_id"),
        payload["average_demand"],
        payload["ordering_cost"],
        payload["holding_cost"],
    )
    return {"product_id": payload["product_id"], "reorder_quantity": quantity}
