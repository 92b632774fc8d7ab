"""Dual-key order lookup.

Callers may hold either the human-readable order number
(``ATW-12345678-0042``) or the internal id, and must not need to know
which.  The number is tried first because it is what customers quote.
"""

from __future__ import annotations

from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.repository.order_repository import OrderRepository


def find_order(order_repo: OrderRepository, reference: str) -> Order | None:
    reference = (reference or "").strip()
    if not reference:
        return None
    return order_repo.get_by_order_number(reference) or order_repo.get_by_id(reference)


def resolve_order(order_repo: OrderRepository, reference: str) -> Order:
    order = find_order(order_repo, reference)
    if order is None:
        raise OrderNotFoundError(f"Order '{reference}' not found")
    return order
