"""JSON-file-backed implementation of CartRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from storefront.domain.model.cart import Cart, CartItem
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.cart_repository import CartRepository
from storefront.infrastructure.persistence.json_file import (
    ensure_file,
    exclusive_lock,
    read_json,
    write_json,
)


class JsonCartRepository(CartRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        ensure_file(self._file_path, {})

    def get_for_user(self, user_id: str) -> Cart:
        raw_items = read_json(self._file_path, {}).get(user_id, [])
        return Cart(user_id=user_id, items=[self._to_domain(raw) for raw in raw_items])

    def save(self, cart: Cart) -> None:
        with exclusive_lock(self._file_path):
            carts = read_json(self._file_path, {})
            carts[cart.user_id] = [self._to_raw(item) for item in cart.items]
            write_json(self._file_path, carts)

    def clear(self, user_id: str) -> None:
        with exclusive_lock(self._file_path):
            carts = read_json(self._file_path, {})
            carts[user_id] = []
            write_json(self._file_path, carts)

    @staticmethod
    def _to_raw(item: CartItem) -> dict:
        return {
            "product_id": item.product_id,
            "quantity": item.quantity.value,
            "price": str(item.price.amount),
            "currency": item.price.currency,
            "variant": item.variant,
        }

    @staticmethod
    def _to_domain(raw: dict) -> CartItem:
        return CartItem(
            product_id=raw["product_id"],
            quantity=Quantity(raw["quantity"]),
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            variant=raw.get("variant"),
        )
