"""Catalog Snapshot Reader backed by the inventory store."""

from __future__ import annotations

from typing import Iterable

from storefront.domain.repository.catalog_reader import CatalogSnapshotReader, ProductSnapshot
from storefront.domain.repository.inventory_repository import InventoryRepository


class InventoryCatalogReader(CatalogSnapshotReader):

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def get_many(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        return {
            product_id: ProductSnapshot(
                product_id=entry.product_id,
                name=entry.name,
                price=entry.price,
                sale_price=entry.sale_price,
                quantity=entry.quantity_on_hand,
                available=entry.available,
            )
            for product_id, entry in self._inventory_repo.get_many(product_ids).items()
        }
