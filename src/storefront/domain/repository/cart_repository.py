"""Abstract repository for per-user carts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get_for_user(self, user_id: str) -> Cart:
        """Return the user's cart; a new empty cart if they have none."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""

    @abstractmethod
    def clear(self, user_id: str) -> None:
        """Empty the user's cart in one write."""
