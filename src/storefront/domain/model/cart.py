"""Cart — the mutable, per-user input to checkout.

A cart is not part of any order.  Its totals are a pure function of its
items, and it is emptied by the checkout that consumes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money, Quantity


@dataclass
class CartItem:
    product_id: str
    quantity: Quantity
    price: Money  # effective price when the item was added
    variant: str | None = None

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity.value


@dataclass
class Cart:
    user_id: str
    items: list[CartItem] = field(default_factory=list)

    def add_item(
        self,
        product_id: str,
        quantity: int,
        price: Money,
        variant: str | None = None,
    ) -> CartItem:
        """Add units of a product, merging with an existing (product, variant) line."""
        qty = Quantity(quantity)
        existing = self._find(product_id, variant)
        if existing is not None:
            existing.quantity = Quantity(existing.quantity.value + qty.value)
            return existing
        item = CartItem(product_id=product_id, quantity=qty, price=price, variant=variant)
        self.items.append(item)
        return item

    def remove_item(self, product_id: str, variant: str | None = None) -> None:
        item = self._find(product_id, variant)
        if item is None:
            raise ValidationError(f"Product '{product_id}' is not in the cart")
        self.items.remove(item)

    def clear(self) -> None:
        self.items = []

    @property
    def subtotal(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def _find(self, product_id: str, variant: str | None) -> CartItem | None:
        for item in self.items:
            if item.product_id == product_id and item.variant == variant:
                return item
        return None
