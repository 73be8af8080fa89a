"""
Negotiation tests: volume discounts, counter-offers and monotonicity.
"""

from decimal import Decimal

import pytest

from procsim.services.errors import ProductNotFoundError, SupplierNotFoundError
from procsim.services.negotiation_service import evaluate_offer, max_discount_for, negotiate_price


def test_max_discount_scales_with_volume():
    assert max_discount_for(1) == Decimal("0.151")
    assert max_discount_for(50) == Decimal("0.20")
    assert max_discount_for(100) == Decimal("0.25")
    assert max_discount_for(150) == Decimal("0.25")


def test_volume_order_accepted_within_discount():
    outcome = evaluate_offer("100.00", "80.00", 150)

    assert outcome.accepted is True
    assert outcome.final_price == Decimal("80.00")
    assert outcome.discount == Decimal("0.2")
    assert outcome.max_discount == Decimal("0.25")


def test_price_at_or_above_base_is_accepted():
    outcome = evaluate_offer("100.00", "105.00", 1)
    assert outcome.accepted is True
    assert outcome.final_price == Decimal("105.00")


def test_counter_offer_band():
    # quantity 10 -> max discount 16%; 20% is within the extra 5% band
    outcome = evaluate_offer("100.00", "80.00", 10)

    assert outcome.accepted is False
    assert outcome.final_price == Decimal("84.00")
    assert "84.00" in outcome.message


def test_far_below_cost_holds_base_price():
    outcome = evaluate_offer("100.00", "50.00", 10)
    assert outcome.accepted is False
    assert outcome.final_price == Decimal("100.00")


def test_acceptance_is_monotone_in_requested_price():
    for quantity in (1, 25, 60, 100, 500):
        seen_accept = False
        for cents in range(0, 10001, 50):
            requested = Decimal(cents) / 100
            accepted = evaluate_offer("100.00", requested, quantity).accepted
            if seen_accept:
                assert accepted, f"quantity={quantity} flipped to rejected at {requested}"
            seen_accept = seen_accept or accepted
        assert seen_accept


@pytest.mark.parametrize("base,requested,quantity", [
    ("0", "10", 1),
    ("100", "-1", 1),
    ("100", "80", 0),
])
def test_rejects_malformed_input(base, requested, quantity):
    with pytest.raises(ValueError):
        evaluate_offer(base, requested, quantity)


def test_to_dict():
    data = evaluate_offer("100.00", "80.00", 150).to_dict()
    assert data == {
        "accepted": True,
        "final_price": "80.00",
        "message": data["message"],
        "discount": "0.2000",
        "max_discount": "0.2500",
    }


class TestNegotiatePrice:

    def test_uses_product_list_price(self, store, supplier, product):
        outcome = negotiate_price(supplier.id, product.id, "80.00", 150, store=store)
        assert outcome.accepted is True
        assert outcome.final_price == Decimal("80.00")

    def test_unknown_supplier(self, store, product):
        with pytest.raises(SupplierNotFoundError):
            negotiate_price(9999, product.id, "80.00", 1, store=store)

    def test_unknown_product(self, store, supplier):
        with pytest.raises(ProductNotFoundError):
            negotiate_price(supplier.id, 9999, "80.00", 1, store=store)
