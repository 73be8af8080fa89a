# Overview: Market simulator - bounded random walk of per-category demand/competition/price index.

"""
Market Simulator

One MarketData snapshot per category, shared by all students and only
written by a market tick. A tick:
- starts from the prior snapshot (defaults: demand 50, competition 50, index 1.00)
- moves demand and competition independently by a uniform draw in [-10, +10],
  clamped to [0, 100]
- scales the price index by 1 + 0.1 * (demand - 50)/100 + 0.1 * (50 - competition)/100,
  clamped to [0.50, 2.00]
- derives the trend from the demand move (> +5 rising, < -5 falling)
- emits threshold events plus two low-probability random events

Randomness always comes from an injected random.Random, so a seeded generator
reproduces a sequence of ticks exactly.
"""

from __future__ import annotations

import logging
import random
from decimal import Decimal, ROUND_HALF_UP

from ..models import MarketData
from procsim.money import to_money, to_decimal
from .concurrency import run_with_retry
from .errors import ProductNotFoundError
from .records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_DEMAND = 50
DEFAULT_COMPETITION = 50
DEFAULT_PRICE_INDEX = Decimal("1.00")

FLUCTUATION = 10.0
MIN_PRICE_INDEX = 0.5
MAX_PRICE_INDEX = 2.0
TREND_THRESHOLD = 5

SEASONAL_EVENT_DRAW = 0.9
SUPPLY_DISRUPTION_DRAW = 0.95

THRESHOLD_EVENTS = {
    "high_demand": {
        "type": "high_demand",
        "title": "Strong demand",
        "description": "Demand in this category is surging; consider building stock.",
        "impact": "positive",
    },
    "low_demand": {
        "type": "low_demand",
        "title": "Weak demand",
        "description": "Buyers are holding back; consider promotions or smaller purchases.",
        "impact": "negative",
    },
    "high_competition": {
        "type": "high_competition",
        "title": "Competition heating up",
        "description": "New competitors entered the market; a price war is possible.",
        "impact": "negative",
    },
    "low_competition": {
        "type": "low_competition",
        "title": "Competitive advantage",
        "description": "Competitors are thinning out; there is room to raise prices.",
        "impact": "positive",
    },
}

RANDOM_EVENTS = {
    "seasonal": {
        "type": "seasonal",
        "title": "Seasonal promotion",
        "description": "Holidays are approaching; demand is expected to grow by 30%.",
        "impact": "positive",
    },
    "supply_disruption": {
        "type": "supply_disruption",
        "title": "Supply chain disruption",
        "description": "A major supplier ran into trouble; purchase costs may rise.",
        "impact": "negative",
    },
}

COMPETITORS = (
    {"id": "comp1", "name": "Competitor A", "strategy": "aggressive", "market_share": 25, "relative_price": 0.9},
    {"id": "comp2", "name": "Competitor B", "strategy": "quality", "market_share": 20, "relative_price": 1.2},
    {"id": "comp3", "name": "Competitor C", "strategy": "balanced", "market_share": 15, "relative_price": 1.0},
)


def make_rng(seed: int | None = None) -> random.Random:
    """Seeded generator for reproducible ticks; None draws from system entropy."""
    return random.Random(seed)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_market_events(demand: float, competition: float, rng: random.Random) -> list[dict]:
    events = []
    if demand > 80:
        events.append(dict(THRESHOLD_EVENTS["high_demand"]))
    if demand < 20:
        events.append(dict(THRESHOLD_EVENTS["low_demand"]))
    if competition > 80:
        events.append(dict(THRESHOLD_EVENTS["high_competition"]))
    if competition < 20:
        events.append(dict(THRESHOLD_EVENTS["low_competition"]))

    # Exactly two draws per tick regardless of thresholds
    seasonal_draw = rng.random()
    disruption_draw = rng.random()
    if seasonal_draw > SEASONAL_EVENT_DRAW:
        events.append(dict(RANDOM_EVENTS["seasonal"]))
    if disruption_draw > SUPPLY_DISRUPTION_DRAW:
        events.append(dict(RANDOM_EVENTS["supply_disruption"]))
    return events


def _tick_inner(category: str, *, rng: random.Random, store: RecordStore) -> MarketData:
    """Core tick without retry or commit."""
    prior = store.get_market_data(category)

    current_demand = prior.demand_level if prior is not None and prior.demand_level is not None else DEFAULT_DEMAND
    current_competition = (
        prior.competition_level
        if prior is not None and prior.competition_level is not None
        else DEFAULT_COMPETITION
    )
    current_index = (
        float(prior.price_index)
        if prior is not None and prior.price_index is not None
        else float(DEFAULT_PRICE_INDEX)
    )

    new_demand = _clamp(current_demand + rng.uniform(-FLUCTUATION, FLUCTUATION), 0.0, 100.0)
    new_competition = _clamp(current_competition + rng.uniform(-FLUCTUATION, FLUCTUATION), 0.0, 100.0)

    demand_effect = (new_demand - 50) / 100
    competition_effect = (50 - new_competition) / 100
    new_index = _clamp(
        current_index * (1 + demand_effect * 0.1 + competition_effect * 0.1),
        MIN_PRICE_INDEX,
        MAX_PRICE_INDEX,
    )

    if new_demand > current_demand + TREND_THRESHOLD:
        trend = "rising"
    elif new_demand < current_demand - TREND_THRESHOLD:
        trend = "falling"
    else:
        trend = "stable"

    events = generate_market_events(new_demand, new_competition, rng)

    return store.upsert_market_data(
        category,
        demand_level=_round_half_up(new_demand),
        competition_level=_round_half_up(new_competition),
        price_index=Decimal(str(new_index)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        trend_direction=trend,
        market_events=events,
    )


def generate_market_data(
    category: str,
    *,
    rng: random.Random | None = None,
    store: RecordStore | None = None,
) -> MarketData:
    """Run one market tick for a category and persist the new snapshot."""
    store = store or RecordStore()
    rng = rng or make_rng()
    if not category or not category.strip():
        raise ValueError("category is required")
    category = category.strip()

    def _op():
        snapshot = _tick_inner(category, rng=rng, store=store)
        store.commit()
        logger.debug(
            "Market tick %s: demand=%s competition=%s index=%s trend=%s",
            category,
            snapshot.demand_level,
            snapshot.competition_level,
            snapshot.price_index,
            snapshot.trend_direction,
        )
        return snapshot

    return run_with_retry(_op, session=store.session)


def list_market_data(*, store: RecordStore | None = None) -> list[MarketData]:
    store = store or RecordStore()
    return store.list_market_data()


def calculate_market_score(snapshot: MarketData) -> int:
    """Attractiveness: demand 40%, lack of competition 30%, price index x30."""
    demand_score = snapshot.demand_level / 100 * 40
    competition_score = (100 - snapshot.competition_level) / 100 * 30
    price_score = float(snapshot.price_index) * 30
    return _round_half_up(demand_score + competition_score + price_score)


def analyze_market_trends(
    categories: list[str],
    *,
    rng: random.Random | None = None,
    store: RecordStore | None = None,
) -> dict:
    """
    Tick every category, then apply the fixed decision rules:
    - demand > 70 and competition < 50: opportunity, 'increase_inventory' (+25)
    - demand < 30: risk, 'reduce_inventory' (-10)
    - competition > 80: risk, 'price_adjustment' (+5)
    """
    store = store or RecordStore()
    rng = rng or make_rng()

    analysis = {"trends": [], "recommendations": [], "opportunities": [], "risks": []}

    for category in categories:
        snapshot = generate_market_data(category, rng=rng, store=store)

        analysis["trends"].append({
            "category": snapshot.category,
            "demand": snapshot.demand_level,
            "competition": snapshot.competition_level,
            "price_index": str(snapshot.price_index),
            "trend": snapshot.trend_direction,
            "score": calculate_market_score(snapshot),
        })

        if snapshot.demand_level > 70 and snapshot.competition_level < 50:
            analysis["opportunities"].append({
                "category": snapshot.category,
                "type": "high_potential",
                "message": f"{snapshot.category}: high demand and little competition, invest more",
            })
            analysis["recommendations"].append({
                "category": snapshot.category,
                "action": "increase_inventory",
                "reason": "favourable market conditions",
                "expected_return": 25,
            })

        if snapshot.demand_level < 30:
            analysis["risks"].append({
                "category": snapshot.category,
                "type": "low_demand",
                "message": f"{snapshot.category}: demand is weak, reduce stock",
            })
            analysis["recommendations"].append({
                "category": snapshot.category,
                "action": "reduce_inventory",
                "reason": "insufficient demand",
                "expected_return": -10,
            })

        if snapshot.competition_level > 80:
            analysis["risks"].append({
                "category": snapshot.category,
                "type": "high_competition",
                "message": f"{snapshot.category}: fierce competition, margins may shrink",
            })
            analysis["recommendations"].append({
                "category": snapshot.category,
                "action": "price_adjustment",
                "reason": "competitive pressure",
                "expected_return": 5,
            })

    return analysis


def _pricing_explanation(demand: int, competition: int) -> str:
    parts = []
    if demand > 70:
        parts.append("Demand is strong, prices can go up.")
    elif demand < 30:
        parts.append("Demand is weak, lower prices to stimulate sales.")

    if competition > 70:
        parts.append("Competition is fierce, keep prices moderate.")
    elif competition < 30:
        parts.append("Competition is thin, there is pricing headroom.")

    return " ".join(parts) or "Market conditions are normal, sell at the recommended price."


def calculate_optimal_price(
    product_id: int,
    base_cost,
    target_margin,
    *,
    store: RecordStore | None = None,
) -> dict:
    """
    Price recommendation from cost, target margin and the product category's market.

    Falls back to the first known snapshot, then to neutral defaults, when the
    category has no market data yet.
    """
    store = store or RecordStore()
    product = store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    base_cost = to_money(base_cost)
    target_margin = to_decimal(target_margin)
    if base_cost < 0:
        raise ValueError("base_cost must be >= 0")

    snapshot = store.get_market_data(product.category) if product.category else None
    if snapshot is None:
        snapshots = store.list_market_data()
        snapshot = snapshots[0] if snapshots else None

    price_index = Decimal(snapshot.price_index) if snapshot is not None else DEFAULT_PRICE_INDEX
    demand = snapshot.demand_level if snapshot is not None else DEFAULT_DEMAND
    competition = snapshot.competition_level if snapshot is not None else DEFAULT_COMPETITION

    base_price = base_cost * (1 + target_margin)
    demand_multiplier = Decimal("0.8") + Decimal(demand) / 100 * Decimal("0.4")
    competition_multiplier = Decimal("1.2") - Decimal(competition) / 100 * Decimal("0.4")

    recommended = base_price * price_index * demand_multiplier * competition_multiplier

    return {
        "recommended_price": to_money(recommended),
        "min_price": to_money(base_cost * Decimal("1.1")),
        "max_price": to_money(base_price * Decimal("1.5")),
        "explanation": _pricing_explanation(demand, competition),
    }


def simulate_competitors(*, store: RecordStore | None = None) -> list[dict]:
    """Canned competitor moves keyed off the average demand across categories."""
    store = store or RecordStore()
    snapshots = store.list_market_data()
    avg_demand = (
        sum(s.demand_level for s in snapshots) / len(snapshots) if snapshots else DEFAULT_DEMAND
    )

    actions = []
    for competitor in COMPETITORS:
        if competitor["strategy"] == "aggressive" and avg_demand > 60:
            actions.append({
                "competitor": competitor["name"],
                "action": "price_cut_promotion",
                "impact": "Market prices may drop 5-10%",
                "response": "Differentiate on service or product quality",
            })
        if competitor["strategy"] == "quality" and avg_demand > 70:
            actions.append({
                "competitor": competitor["name"],
                "action": "premium_line_launch",
                "impact": "Premium segment competition intensifies",
                "response": "Focus on the mid/low segment or raise quality",
            })
        if competitor["strategy"] == "balanced":
            actions.append({
                "competitor": competitor["name"],
                "action": "market_share_expansion",
                "impact": "Overall competition increases",
                "response": "Clarify your positioning and strengths",
            })
    return actions
