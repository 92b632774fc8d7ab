"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.repository.inventory_repository import InventoryRepository


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    name: str
    price: str
    on_hand: int
    available: bool


class ShowInventoryHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(self) -> list[InventoryLineDTO]:
        entries = self._inventory_repo.list_all()
        return [
            InventoryLineDTO(
                product_id=entry.product_id,
                name=entry.name,
                price=str(entry.effective_price),
                on_hand=entry.quantity_on_hand,
                available=entry.available,
            )
            for entry in entries
        ]
