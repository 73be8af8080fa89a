# backend/procsim/routes/orders.py
"""
Order routes and supplier price negotiation.

/purchase and /sale create and settle an order in one step; /pending records
an order to be settled later through /process or dropped through /cancel.
"""
from flask import Blueprint, request, g

from ..decorators import require_user
from ..services import order_service
from ..services.negotiation_service import negotiate_price
from ..validation import require_fields, parse_int, parse_optional_int, ValidationError

orders_bp = Blueprint("orders", __name__, url_prefix="/api")


def _items(payload: dict) -> list:
    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")
    if not all(isinstance(item, dict) for item in items):
        raise ValidationError("each item must be an object")
    return items


@orders_bp.get("/tasks/<int:task_id>/orders")
@require_user
def list_orders_route(task_id: int):
    orders = order_service.list_orders(
        g.current_user.id,
        task_id,
        order_type=request.args.get("type"),
        status=request.args.get("status"),
    )
    return {"items": [o.to_dict() for o in orders], "count": len(orders)}


@orders_bp.post("/tasks/<int:task_id>/orders/purchase")
@require_user
def create_purchase_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "supplier_id", "items")

    order = order_service.create_purchase_order(
        g.current_user.id,
        task_id,
        parse_int(payload["supplier_id"], "supplier_id"),
        _items(payload),
    )
    return {"order": order.to_dict()}, 201


@orders_bp.post("/tasks/<int:task_id>/orders/sale")
@require_user
def create_sale_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "items")

    order = order_service.create_sales_order(
        g.current_user.id,
        task_id,
        payload.get("customer_name"),
        _items(payload),
    )
    return {"order": order.to_dict()}, 201


@orders_bp.post("/tasks/<int:task_id>/orders/pending")
@require_user
def create_pending_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "order_type", "items")

    order = order_service.create_order(
        g.current_user.id,
        task_id,
        payload["order_type"],
        _items(payload),
        supplier_id=parse_optional_int(payload.get("supplier_id"), "supplier_id"),
        customer_name=payload.get("customer_name"),
    )
    return {"order": order.to_dict()}, 201


@orders_bp.post("/tasks/<int:task_id>/orders/<int:order_id>/process")
@require_user
def process_order_route(task_id: int, order_id: int):
    order = order_service.process_order(order_id, g.current_user.id, task_id)
    return {"order": order.to_dict()}


@orders_bp.post("/tasks/<int:task_id>/orders/<int:order_id>/cancel")
@require_user
def cancel_order_route(task_id: int, order_id: int):
    order = order_service.cancel_order(order_id, g.current_user.id, task_id)
    return {"order": order.to_dict()}


@orders_bp.get("/tasks/<int:task_id>/orders/statistics")
@require_user
def order_statistics_route(task_id: int):
    return {"statistics": order_service.get_order_statistics(g.current_user.id, task_id)}


@orders_bp.post("/negotiations")
@require_user
def negotiate_route():
    """Quote only: a negotiation never writes anything."""
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "supplier_id", "product_id", "requested_price", "quantity")

    outcome = negotiate_price(
        parse_int(payload["supplier_id"], "supplier_id"),
        parse_int(payload["product_id"], "product_id"),
        payload["requested_price"],
        parse_int(payload["quantity"], "quantity"),
    )
    return {"negotiation": outcome.to_dict()}
