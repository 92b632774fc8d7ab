"""Catalog Snapshot Reader — read-only view of price and stock.

Checkout consumes this interface; it does not own the catalog.  Lookups
are always bulk so one checkout costs one read regardless of how many
lines it has.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: str
    name: str
    price: Money
    sale_price: Money | None
    quantity: int
    available: bool

    @property
    def effective_price(self) -> Money:
        if self.sale_price is not None and not self.sale_price.is_zero:
            return self.sale_price
        return self.price

    def can_supply(self, quantity: int) -> bool:
        return self.available and self.quantity >= quantity


class CatalogSnapshotReader(ABC):

    @abstractmethod
    def get_many(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        """Return a snapshot per known product id; unknown ids are omitted."""
