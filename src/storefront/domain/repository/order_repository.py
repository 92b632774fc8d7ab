"""Abstract repository for Order aggregate.

Orders are inserted once with ``add`` and afterwards only written back
through ``replace``, a compare-and-swap on the order's ``version``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a fresh internal order ID."""

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its internal ID, or None if not found."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its human-readable number, or None."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Order | None:
        """Return the order carrying this gateway reference, or None."""

    @abstractmethod
    def get_by_tracking_number(self, tracking_number: str) -> Order | None:
        """Return the order shipped under this tracking number, or None."""

    @abstractmethod
    def list_for_user(self, user_id: str, offset: int = 0, limit: int | None = None) -> list[Order]:
        """Return a user's orders, newest first."""

    @abstractmethod
    def count_for_user(self, user_id: str) -> int:
        """Return how many orders a user has."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Insert a new order, assigning its ID.

        Raises DuplicateIdentifierError if the order number is taken.
        """

    @abstractmethod
    def replace(self, order: Order, expected_version: int) -> bool:
        """Overwrite a stored order only if it is still at ``expected_version``.

        On success the order's version is bumped and True is returned.
        Returns False when another writer got there first.  Raises
        DuplicateIdentifierError if the tracking number is already used by
        another order.
        """
