# backend/procsim/routes/catalog.py
"""
Catalog routes: users, suppliers and products.

Reads are open to any known user; supplier/product creation requires the
teacher or admin role. User registration is the gateway's job, so only
admins create users here.
"""
from flask import Blueprint, request, g

from ..decorators import require_user, require_author_role
from ..services import catalog_service
from ..validation import require_fields, parse_int, parse_optional_int

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/users/me")
@require_user
def current_user_route():
    return {"user": g.current_user.to_dict()}


@catalog_bp.post("/users")
@require_user
def create_user_route():
    if g.current_user.role != "admin":
        return {"error": "forbidden", "message": "Admin role required", "details": {}}, 403

    payload = request.get_json(silent=True) or {}
    require_fields(payload, "username")
    user = catalog_service.create_user(
        payload["username"],
        name=payload.get("name"),
        role=payload.get("role", "student"),
        student_number=payload.get("student_number"),
    )
    return {"user": user.to_dict()}, 201


@catalog_bp.get("/suppliers")
@require_user
def list_suppliers_route():
    active_only = request.args.get("active_only", "").lower() in ("1", "true", "yes")
    suppliers = catalog_service.list_suppliers(active_only=active_only)
    return {"items": [s.to_dict() for s in suppliers], "count": len(suppliers)}


@catalog_bp.post("/suppliers")
@require_user
@require_author_role
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "name")

    supplier = catalog_service.create_supplier(
        payload["name"],
        description=payload.get("description"),
        categories=payload.get("categories"),
        rating=payload.get("rating", 0),
        reliability=parse_int(payload.get("reliability", 0), "reliability"),
        quality_level=payload.get("quality_level", "medium"),
        cooperation_years=parse_int(payload.get("cooperation_years", 0), "cooperation_years"),
        is_active=payload.get("is_active", True),
    )
    return {"supplier": supplier.to_dict()}, 201


@catalog_bp.get("/products")
@require_user
def list_products_route():
    products = catalog_service.list_products(category=request.args.get("category"))
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@catalog_bp.post("/products")
@require_user
@require_author_role
def create_product_route():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "sku", "name", "unit_price")

    product = catalog_service.create_product(
        payload["sku"],
        payload["name"],
        payload["unit_price"],
        category=payload.get("category"),
        description=payload.get("description"),
        safety_stock=parse_optional_int(payload.get("safety_stock"), "safety_stock"),
    )
    return {"product": product.to_dict()}, 201
