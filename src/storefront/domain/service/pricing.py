"""Domain service: Pricing.

A pure function of the captured line prices, the shipping method, the tax
rate and the discount.  Nothing here reads the catalog or the clock.

Rounding happens exactly once, on the grand total.  The stored tax line is
the amount that makes ``total == subtotal + shipping + tax - discount``
hold exactly, so the half-cent of rounding (if any) lands in tax.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from storefront.domain.model.order import OrderLineItem, ShippingMethod
from storefront.domain.model.value_objects import Money

DEFAULT_TAX_RATE = Decimal("0.08")

SHIPPING_RATES = {
    ShippingMethod.STANDARD: Decimal("0.00"),  # free standard shipping
    ShippingMethod.EXPRESS: Decimal("15.99"),
    ShippingMethod.OVERNIGHT: Decimal("29.99"),
}


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Money
    shipping_cost: Money
    tax: Money
    discount: Money
    total: Money


def shipping_cost_for(method: ShippingMethod | None, currency: str = "USD") -> Money:
    """Fixed-table lookup; an unknown method costs the cheapest tier."""
    rate = SHIPPING_RATES.get(method, min(SHIPPING_RATES.values()))  # type: ignore[arg-type]
    return Money(rate, currency)


def quote(
    items: Iterable[OrderLineItem],
    shipping_method: ShippingMethod,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
    discount: Money | None = None,
    currency: str = "USD",
) -> PriceQuote:
    # TODO: coupon validation; discount stays zero until coupons are modelled.
    discount = discount or Money.zero(currency)

    subtotal = Money.zero(currency)
    for item in items:
        subtotal = subtotal + item.line_total

    shipping = shipping_cost_for(shipping_method, currency)
    raw_tax = subtotal.percent(tax_rate)

    gross = subtotal + shipping + raw_tax
    # A discount can at most cancel the whole order.
    discount = min(discount, gross)
    total = (gross - discount).rounded()

    tax_amount = total.amount - subtotal.amount - shipping.amount + discount.amount
    tax = Money(max(tax_amount, Decimal("0")), currency)

    return PriceQuote(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax=tax,
        discount=discount,
        total=total,
    )
