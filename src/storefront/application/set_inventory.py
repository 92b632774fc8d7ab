"""Application service: Set Inventory use case (catalog administration)."""

from __future__ import annotations

import structlog

from storefront.domain.exceptions import ProductNotFoundError
from storefront.domain.model.stock import StockEntry
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.inventory_repository import InventoryRepository

logger = structlog.get_logger(__name__)


class SetInventoryHandler:

    def __init__(self, inventory_repo: InventoryRepository, currency: str = "USD") -> None:
        self._inventory_repo = inventory_repo
        self._currency = currency

    def handle(
        self,
        product_id: str,
        quantity: int,
        name: str | None = None,
        price: str | None = None,
        sale_price: str | None = None,
    ) -> None:
        """Set the stock on hand for a product, creating its entry if needed.

        A new entry needs a name and a price; an existing one keeps its
        name and prices unless new ones are given.  An empty ``sale_price``
        ends a sale.
        """
        existing = self._inventory_repo.get_by_product_id(product_id)
        if existing is None:
            if not name or price is None:
                raise ProductNotFoundError(
                    f"Product not found: '{product_id}' (give a name and price to create it)"
                )
            entry = StockEntry(
                product_id=product_id,
                name=name,
                price=Money.of(price, self._currency),
                quantity_on_hand=quantity,
                sale_price=Money.of(sale_price, self._currency) if sale_price else None,
            )
        else:
            entry = StockEntry(
                product_id=existing.product_id,
                name=name or existing.name,
                price=Money.of(price, self._currency) if price is not None else existing.price,
                quantity_on_hand=quantity,
                sale_price=(
                    existing.sale_price if sale_price is None
                    else Money.of(sale_price, self._currency) if sale_price else None
                ),
            )

        self._inventory_repo.save(entry)
        logger.info("stock_set", product_id=product_id, quantity=quantity)
