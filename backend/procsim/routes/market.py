# backend/procsim/routes/market.py
"""
Market routes.

Ticks draw from the app-wide generator seeded once from MARKET_RNG_SEED.
An explicit request "seed" replays from a fresh generator instead.
"""
from flask import Blueprint, current_app, request

from ..decorators import require_user, require_author_role
from ..services import market_service
from procsim.money import money_str
from ..validation import require_fields, parse_int, parse_optional_int, parse_categories

market_bp = Blueprint("market", __name__, url_prefix="/api/market")


def _rng_from(payload: dict):
    seed = parse_optional_int(payload.get("seed"), "seed")
    if seed is None:
        return current_app.extensions["market_rng"]
    return market_service.make_rng(seed)


@market_bp.get("")
@require_user
def list_market_route():
    snapshots = market_service.list_market_data()
    items = []
    for snapshot in snapshots:
        data = snapshot.to_dict()
        data["score"] = market_service.calculate_market_score(snapshot)
        items.append(data)
    return {"items": items, "count": len(items)}


@market_bp.post("/tick")
@require_user
@require_author_role
def tick_route():
    payload = request.get_json(silent=True) or {}
    categories = parse_categories(payload)
    rng = _rng_from(payload)

    snapshots = [market_service.generate_market_data(c, rng=rng) for c in categories]
    return {"items": [s.to_dict() for s in snapshots], "count": len(snapshots)}


@market_bp.post("/analysis")
@require_user
def analysis_route():
    payload = request.get_json(silent=True) or {}
    categories = parse_categories(payload)
    return {"analysis": market_service.analyze_market_trends(categories, rng=_rng_from(payload))}


@market_bp.post("/optimal-price")
@require_user
def optimal_price_route():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, "product_id", "base_cost", "target_margin")

    result = market_service.calculate_optimal_price(
        parse_int(payload["product_id"], "product_id"),
        payload["base_cost"],
        payload["target_margin"],
    )
    return {
        "pricing": {
            "recommended_price": money_str(result["recommended_price"]),
            "min_price": money_str(result["min_price"]),
            "max_price": money_str(result["max_price"]),
            "explanation": result["explanation"],
        }
    }


@market_bp.get("/competitors")
@require_user
def competitors_route():
    return {"actions": market_service.simulate_competitors()}
