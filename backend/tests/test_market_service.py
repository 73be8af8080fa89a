"""
Market simulator tests: bounded random walk, seeded reproducibility,
events, scoring and pricing.
"""

from decimal import Decimal

import pytest

from procsim.models import MarketData
from procsim.services.errors import ProductNotFoundError
from procsim.services.market_service import (
    analyze_market_trends,
    calculate_market_score,
    calculate_optimal_price,
    generate_market_data,
    generate_market_events,
    make_rng,
    simulate_competitors,
)


class FixedRng:
    """Stands in for random.Random with a constant draw."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def uniform(self, a, b):
        return a + (b - a) * self.value


def _seed_snapshot(store, category, demand, competition, index="1.00"):
    snapshot = store.upsert_market_data(
        category,
        demand_level=demand,
        competition_level=competition,
        price_index=Decimal(index),
        trend_direction="stable",
        market_events=[],
    )
    store.commit()
    return snapshot


class TestMarketTick:

    def test_first_tick_starts_from_defaults(self, store):
        snapshot = generate_market_data("electronics", rng=FixedRng(0.5), store=store)

        # uniform(-10, 10) at 0.5 is 0: nothing moves
        assert snapshot.demand_level == 50
        assert snapshot.competition_level == 50
        assert snapshot.price_index == Decimal("1.00")
        assert snapshot.trend_direction == "stable"
        assert snapshot.market_events == []

    def test_rising_demand_lifts_price_index(self, store):
        snapshot = generate_market_data("electronics", rng=FixedRng(1.0), store=store)

        # demand +10, competition +10: 1 + 0.1*0.1 + 0.1*(-0.1) = 1.00
        assert snapshot.demand_level == 60
        assert snapshot.competition_level == 60
        assert snapshot.trend_direction == "rising"
        assert snapshot.price_index == Decimal("1.00")
        assert [e["type"] for e in snapshot.market_events] == ["seasonal", "supply_disruption"]

    def test_falling_trend(self, store):
        _seed_snapshot(store, "clothing", 50, 50)
        snapshot = generate_market_data("clothing", rng=FixedRng(0.0), store=store)

        assert snapshot.demand_level == 40
        assert snapshot.competition_level == 40
        assert snapshot.trend_direction == "falling"

    def test_same_seed_same_sequence(self, store):
        rng_a, rng_b = make_rng(42), make_rng(42)
        for _ in range(20):
            a = generate_market_data("alpha", rng=rng_a, store=store)
            b = generate_market_data("beta", rng=rng_b, store=store)
            assert (a.demand_level, a.competition_level, a.price_index, a.trend_direction) == (
                b.demand_level, b.competition_level, b.price_index, b.trend_direction,
            )
            assert a.market_events == b.market_events

    def test_random_walk_stays_in_bounds(self, store):
        rng = make_rng(7)
        previous = 50
        for _ in range(200):
            snapshot = generate_market_data("toys", rng=rng, store=store)
            assert 0 <= snapshot.demand_level <= 100
            assert 0 <= snapshot.competition_level <= 100
            assert Decimal("0.50") <= snapshot.price_index <= Decimal("2.00")
            assert snapshot.trend_direction in {"rising", "falling", "stable"}
            assert abs(snapshot.demand_level - previous) <= 10
            previous = snapshot.demand_level

    def test_one_snapshot_per_category(self, store, db_session):
        rng = make_rng(1)
        for _ in range(3):
            generate_market_data("books", rng=rng, store=store)
        assert db_session.query(MarketData).filter_by(category="books").count() == 1

    def test_blank_category(self, store):
        with pytest.raises(ValueError):
            generate_market_data("  ", rng=make_rng(1), store=store)


class TestMarketEvents:

    def test_threshold_events(self):
        events = generate_market_events(85, 10, FixedRng(0.0))
        assert [e["type"] for e in events] == ["high_demand", "low_competition"]

    def test_low_demand_high_competition(self):
        events = generate_market_events(15, 90, FixedRng(0.0))
        assert [e["type"] for e in events] == ["low_demand", "high_competition"]

    def test_seasonal_only(self):
        events = generate_market_events(50, 50, FixedRng(0.93))
        assert [e["type"] for e in events] == ["seasonal"]

    def test_events_are_copies(self):
        events = generate_market_events(85, 50, FixedRng(0.0))
        events[0]["title"] = "changed"
        assert generate_market_events(85, 50, FixedRng(0.0))[0]["title"] == "Strong demand"


class TestMarketAnalysis:

    def test_market_score(self):
        snapshot = MarketData(category="x", demand_level=50, competition_level=50, price_index=Decimal("1.00"))
        assert calculate_market_score(snapshot) == 65

    def test_opportunity_recommendation(self, store):
        _seed_snapshot(store, "electronics", 90, 20)

        analysis = analyze_market_trends(["electronics"], rng=make_rng(3), store=store)

        assert [t["category"] for t in analysis["trends"]] == ["electronics"]
        assert analysis["opportunities"][0]["type"] == "high_potential"
        assert {"category": "electronics", "action": "increase_inventory",
                "reason": "favourable market conditions", "expected_return": 25} in analysis["recommendations"]

    def test_risk_recommendations(self, store):
        _seed_snapshot(store, "clothing", 10, 95)

        analysis = analyze_market_trends(["clothing"], rng=make_rng(3), store=store)

        actions = [r["action"] for r in analysis["recommendations"]]
        assert actions == ["reduce_inventory", "price_adjustment"]
        assert {r["type"] for r in analysis["risks"]} == {"low_demand", "high_competition"}
        assert analysis["opportunities"] == []


class TestPricingAndCompetitors:

    def test_optimal_price_neutral_market(self, store, product):
        result = calculate_optimal_price(product.id, "50.00", "0.3", store=store)

        assert result["recommended_price"] == Decimal("65.00")
        assert result["min_price"] == Decimal("55.00")
        assert result["max_price"] == Decimal("97.50")
        assert result["explanation"] == "Market conditions are normal, sell at the recommended price."

    def test_optimal_price_hot_market(self, store, product):
        _seed_snapshot(store, "electronics", 80, 20, index="1.20")

        result = calculate_optimal_price(product.id, "50.00", "0.3", store=store)

        # 65 * 1.20 * 1.12 * 1.12
        assert result["recommended_price"] == Decimal("97.84")
        assert "Demand is strong" in result["explanation"]
        assert "Competition is thin" in result["explanation"]

    def test_optimal_price_unknown_product(self, store):
        with pytest.raises(ProductNotFoundError):
            calculate_optimal_price(9999, "50.00", "0.3", store=store)

    def test_competitors_without_market_data(self, store):
        actions = simulate_competitors(store=store)
        assert [a["action"] for a in actions] == ["market_share_expansion"]

    def test_competitors_in_hot_market(self, store):
        _seed_snapshot(store, "electronics", 75, 50)
        actions = simulate_competitors(store=store)
        assert [a["action"] for a in actions] == [
            "price_cut_promotion", "premium_line_launch", "market_share_expansion",
        ]
