"""JSON-backed implementation of InventoryRepository.

Each product's stock is its own small document (``<dir>/<product_id>.json``)
with its own lock, so reservations on different products never contend
and a reservation on one product is a single locked read-check-write.
"""

from __future__ import annotations

import re
from decimal import Decimal
from pathlib import Path
from typing import Iterable

from storefront.domain.exceptions import ProductNotFoundError, ValidationError
from storefront.domain.model.stock import StockEntry
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.infrastructure.persistence.json_file import (
    exclusive_lock,
    read_json,
    write_json,
)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class JsonInventoryRepository(InventoryRepository):

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._directory.mkdir(parents=True, exist_ok=True)

    # --- InventoryRepository interface ----------------------------------------

    def get_by_product_id(self, product_id: str) -> StockEntry | None:
        path = self._path_for(product_id)
        if path is None:
            return None
        return self._read(path)

    def get_many(self, product_ids: Iterable[str]) -> dict[str, StockEntry]:
        found: dict[str, StockEntry] = {}
        for product_id in dict.fromkeys(product_ids):
            entry = self.get_by_product_id(product_id)
            if entry is not None:
                found[product_id] = entry
        return found

    def list_all(self) -> list[StockEntry]:
        entries = [self._read(path) for path in sorted(self._directory.glob("*.json"))]
        return [entry for entry in entries if entry is not None]

    def save(self, entry: StockEntry) -> None:
        path = self._path_for(entry.product_id)
        if path is None:
            raise ValidationError(f"Invalid product id '{entry.product_id}'")
        with exclusive_lock(path):
            write_json(path, self._to_raw(entry))

    def decrement_if_available(self, product_id: str, quantity: int) -> StockEntry:
        path = self._require_path(product_id)
        with exclusive_lock(path):
            entry = self._require(path, product_id)
            entry.take(quantity)
            write_json(path, self._to_raw(entry))
        return entry

    def increment(self, product_id: str, quantity: int) -> StockEntry:
        path = self._require_path(product_id)
        with exclusive_lock(path):
            entry = self._require(path, product_id)
            entry.put_back(quantity)
            write_json(path, self._to_raw(entry))
        return entry

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(entry: StockEntry) -> dict:
        return {
            "product_id": entry.product_id,
            "name": entry.name,
            "price": str(entry.price.amount),
            "sale_price": str(entry.sale_price.amount) if entry.sale_price else None,
            "currency": entry.price.currency,
            "quantity_on_hand": entry.quantity_on_hand,
            "in_stock": entry.available,
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockEntry:
        currency = raw.get("currency", "USD")
        sale_price = raw.get("sale_price")
        return StockEntry(
            product_id=raw["product_id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"]), currency),
            sale_price=Money(Decimal(sale_price), currency) if sale_price else None,
            quantity_on_hand=raw.get("quantity_on_hand", 0),
        )

    # --- File helpers ---------------------------------------------------------

    def _path_for(self, product_id: str) -> Path | None:
        if not _SAFE_ID.match(product_id or ""):
            return None
        return self._directory / f"{product_id}.json"

    def _require_path(self, product_id: str) -> Path:
        path = self._path_for(product_id)
        if path is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return path

    def _read(self, path: Path) -> StockEntry | None:
        raw = read_json(path, None)
        return self._to_domain(raw) if raw else None

    def _require(self, path: Path, product_id: str) -> StockEntry:
        entry = self._read(path)
        if entry is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return entry
