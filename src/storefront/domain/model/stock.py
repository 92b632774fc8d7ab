"""StockEntry aggregate — per-product stock count and selling price.

Each product has exactly one StockEntry.  Entries are mutated only through
the inventory repository's conditional decrement / increment operations,
which call ``take()`` and ``put_back()`` while holding that entry's lock.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import InsufficientStockError, ValidationError
from storefront.domain.model.value_objects import Money


@dataclass
class StockEntry:
    """Aggregate root for a product's stock.

    Invariants:
    - ``quantity_on_hand`` is never negative
    - ``available`` is exactly ``quantity_on_hand > 0``
    """

    product_id: str
    name: str
    price: Money
    quantity_on_hand: int = 0
    sale_price: Money | None = None

    def __post_init__(self) -> None:
        if self.quantity_on_hand < 0:
            raise ValidationError(
                f"Stock for {self.name} cannot be negative, got {self.quantity_on_hand}"
            )

    @property
    def available(self) -> bool:
        return self.quantity_on_hand > 0

    @property
    def effective_price(self) -> Money:
        """Price a customer pays right now: the sale price when one is set."""
        if self.sale_price is not None and not self.sale_price.is_zero:
            return self.sale_price
        return self.price

    def take(self, quantity: int) -> None:
        """Decrement stock, refusing to go below zero."""
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.quantity_on_hand:
            raise InsufficientStockError(
                f"{self.name} is not available in requested quantity "
                f"(need {quantity}, have {self.quantity_on_hand})"
            )
        self.quantity_on_hand -= quantity

    def put_back(self, quantity: int) -> None:
        """Return previously taken stock (cancellation or rollback)."""
        if quantity <= 0:
            raise ValidationError("Restore quantity must be positive")
        self.quantity_on_hand += quantity
