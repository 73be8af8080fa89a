# Overview: Single-shot supplier price negotiation (accept / counter-offer / reject).

"""
Negotiation Simulator

Each call is an independent evaluation; there is no negotiation session
state. Acceptance is monotone in requested_price: for a fixed quantity,
raising the requested price can only move the outcome toward acceptance.

    discount     = (base_price - requested_price) / base_price
    max_discount = 0.15 + min(quantity / 100, 1) * 0.10      (15%..25%)

    discount <= max_discount            -> accepted at requested_price
    discount <= max_discount + 0.05     -> rejected, counter at base * (1 - max_discount)
    otherwise                           -> rejected, holds at base_price
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from procsim.money import to_money, to_decimal, money_str
from .errors import ProductNotFoundError, SupplierNotFoundError
from .progress_service import validate_quantity
from .records import RecordStore

BASE_MAX_DISCOUNT = Decimal("0.15")
VOLUME_DISCOUNT = Decimal("0.10")
VOLUME_FULL_QUANTITY = Decimal("100")
COUNTER_OFFER_BAND = Decimal("0.05")


@dataclass(frozen=True)
class NegotiationOutcome:
    accepted: bool
    final_price: Decimal
    message: str
    discount: Decimal
    max_discount: Decimal

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "final_price": money_str(self.final_price),
            "message": self.message,
            "discount": str(self.discount.quantize(Decimal("0.0001"))),
            "max_discount": str(self.max_discount.quantize(Decimal("0.0001"))),
        }


def max_discount_for(quantity: int) -> Decimal:
    volume_factor = min(Decimal(quantity) / VOLUME_FULL_QUANTITY, Decimal(1))
    return BASE_MAX_DISCOUNT + volume_factor * VOLUME_DISCOUNT


def evaluate_offer(base_price, requested_price, quantity: int) -> NegotiationOutcome:
    base_price = to_money(base_price)
    requested_price = to_money(requested_price)
    quantity = validate_quantity(quantity)

    if base_price <= 0:
        raise ValueError("base_price must be > 0")
    if requested_price < 0:
        raise ValueError("requested_price must be >= 0")

    discount = (base_price - requested_price) / base_price
    max_discount = max_discount_for(quantity)

    if discount <= 0:
        return NegotiationOutcome(
            accepted=True,
            final_price=requested_price,
            message="The price is acceptable, deal!",
            discount=discount,
            max_discount=max_discount,
        )

    if discount <= max_discount:
        return NegotiationOutcome(
            accepted=True,
            final_price=requested_price,
            message=f"For an order of {quantity} units we can accept this price.",
            discount=discount,
            max_discount=max_discount,
        )

    if discount <= max_discount + COUNTER_OFFER_BAND:
        counter = to_money(base_price * (1 - max_discount))
        return NegotiationOutcome(
            accepted=False,
            final_price=counter,
            message=f"That price is too low. The best we can do is {counter} per unit.",
            discount=discount,
            max_discount=max_discount,
        )

    return NegotiationOutcome(
        accepted=False,
        final_price=base_price,
        message="That price is far below our cost, we cannot accept it.",
        discount=discount,
        max_discount=max_discount,
    )


def negotiate_price(
    supplier_id: int,
    product_id: int,
    requested_price,
    quantity: int,
    *,
    store: RecordStore | None = None,
) -> NegotiationOutcome:
    """Negotiate against the product's list price (Product.unit_price)."""
    store = store or RecordStore()

    if store.get_supplier(supplier_id) is None:
        raise SupplierNotFoundError(supplier_id)
    product = store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    return evaluate_offer(to_decimal(product.unit_price), requested_price, quantity)
