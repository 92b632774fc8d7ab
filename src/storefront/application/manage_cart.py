"""Application services: cart use cases.

The cart only records what the customer intends to buy.  Adding checks
the product against the catalog so obvious mistakes surface early, but
nothing is reserved until checkout.
"""

from __future__ import annotations

from storefront.application.dto import CartDTO, to_cart_dto
from storefront.domain.exceptions import InsufficientStockError, ProductNotFoundError
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.catalog_reader import CatalogSnapshotReader


class AddToCartHandler:

    def __init__(self, cart_repo: CartRepository, catalog: CatalogSnapshotReader) -> None:
        self._cart_repo = cart_repo
        self._catalog = catalog

    def handle(self, user_id: str, product_id: str, quantity: int = 1, variant: str | None = None) -> CartDTO:
        product = self._catalog.get_many([product_id]).get(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product not found: '{product_id}'")

        cart = self._cart_repo.get_for_user(user_id)
        in_cart = sum(
            item.quantity.value for item in cart.items if item.product_id == product_id
        )
        if not product.can_supply(in_cart + quantity):
            raise InsufficientStockError(f"{product.name} is not available in requested quantity")

        cart.add_item(product_id, quantity, product.effective_price, variant)
        self._cart_repo.save(cart)
        return to_cart_dto(cart)


class RemoveFromCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str, product_id: str, variant: str | None = None) -> CartDTO:
        cart = self._cart_repo.get_for_user(user_id)
        cart.remove_item(product_id, variant)
        self._cart_repo.save(cart)
        return to_cart_dto(cart)


class ShowCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str) -> CartDTO:
        return to_cart_dto(self._cart_repo.get_for_user(user_id))


class ClearCartHandler:

    def __init__(self, cart_repo: CartRepository) -> None:
        self._cart_repo = cart_repo

    def handle(self, user_id: str) -> None:
        self._cart_repo.clear(user_id)
