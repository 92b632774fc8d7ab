"""Domain service: Inventory Reservation.

This service coordinates the cross-aggregate operation of reserving
or restoring stock for an order.  It lives in the domain layer
because the logic is a core business rule, not just orchestration.

Reservation is all-or-nothing across an order's lines.  Each line is an
atomic conditional decrement on its own stock entry; if a later line
fails, the decrements already applied are compensated with restores
before the error propagates, so a rejected order never leaves stock
partially taken.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import structlog

from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import Order, OrderLineItem
from storefront.domain.repository.inventory_repository import InventoryRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RestoreFailure:
    product_id: str
    quantity: int
    reason: str


class InventoryReservationService:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def reserve(self, product_id: str, quantity: int) -> None:
        self._inventory_repo.decrement_if_available(product_id, quantity)

    def restore(self, product_id: str, quantity: int) -> None:
        self._inventory_repo.increment(product_id, quantity)

    def reserve_for_order(self, lines: Iterable[OrderLineItem]) -> None:
        """Reserve stock for every line, or for none of them."""
        reserved: list[tuple[str, int]] = []
        try:
            for line in lines:
                self.reserve(line.product_id, line.quantity.value)
                reserved.append((line.product_id, line.quantity.value))
        except Exception:
            # Storage errors (disk full, corrupt file) roll back too.
            failures = self.release(reserved)
            logger.warning(
                "reservation_rolled_back",
                lines=len(reserved),
                restore_failures=len(failures),
            )
            raise

    def release(self, reserved: Iterable[tuple[str, int]]) -> list[RestoreFailure]:
        """Compensate earlier reservations, newest first."""
        failures: list[RestoreFailure] = []
        for product_id, quantity in reversed(list(reserved)):
            failure = self._try_restore(product_id, quantity)
            if failure is not None:
                failures.append(failure)
        return failures

    def restore_for_order(self, order: Order) -> list[RestoreFailure]:
        """Put back every line of a cancelled order.

        Best-effort per line: one failing restore is logged and reported but
        does not stop the others.
        """
        failures: list[RestoreFailure] = []
        for line in order.items:
            failure = self._try_restore(line.product_id, line.quantity.value)
            if failure is not None:
                failures.append(failure)
        return failures

    def _try_restore(self, product_id: str, quantity: int) -> RestoreFailure | None:
        try:
            self.restore(product_id, quantity)
        except (DomainException, OSError) as exc:
            logger.warning(
                "stock_restore_failed",
                product_id=product_id,
                quantity=quantity,
                error=str(exc),
            )
            return RestoreFailure(product_id=product_id, quantity=quantity, reason=str(exc))
        return None
