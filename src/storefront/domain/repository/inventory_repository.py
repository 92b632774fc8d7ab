"""Abstract repository for the StockEntry aggregate.

Stock is the one hot, shared, mutable resource in the system.  Concrete
implementations must make ``decrement_if_available`` and ``increment``
linearizable per product: the check and the write happen under the same
per-entry lock (or a storage-level conditional update), so two racing
reservations can never both succeed past the stock on hand.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from storefront.domain.model.stock import StockEntry


class InventoryRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str) -> StockEntry | None:
        """Return the stock entry for a product, or None."""

    @abstractmethod
    def get_many(self, product_ids: Iterable[str]) -> dict[str, StockEntry]:
        """Bulk read; unknown ids are simply absent from the result."""

    @abstractmethod
    def list_all(self) -> list[StockEntry]:
        """Return every stock entry."""

    @abstractmethod
    def save(self, entry: StockEntry) -> None:
        """Create or overwrite an entry (catalog administration only)."""

    @abstractmethod
    def decrement_if_available(self, product_id: str, quantity: int) -> StockEntry:
        """Atomically take ``quantity`` units.

        Raises ProductNotFoundError or InsufficientStockError; on error the
        entry is left untouched.
        """

    @abstractmethod
    def increment(self, product_id: str, quantity: int) -> StockEntry:
        """Atomically return ``quantity`` units.  Raises ProductNotFoundError."""
