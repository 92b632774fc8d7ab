"""Application service: Cancel Order use case.

Only pending or processing orders can be cancelled.  The cancelled order
is persisted first (compare-and-swap, so a concurrent payment or shipment
cannot be overwritten); stock is then put back line by line.  A line that
cannot be restored does not undo the cancellation; it is reported back to
the caller as a warning instead.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import CancellationDTO, to_order_dto
from storefront.domain.model.order import Order
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.guarded_update import apply_guarded
from storefront.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from storefront.domain.service.order_resolver import resolve_order

logger = structlog.get_logger(__name__)


class CancelOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        inventory_repo: InventoryRepository,
    ) -> None:
        self._order_repo = order_repo
        self._reservations = InventoryReservationService(inventory_repo)

    def handle(self, user_id: str, reference: str, reason: str | None = None) -> CancellationDTO:
        order = resolve_order(self._order_repo, reference)
        order.ensure_owned_by(user_id)

        def cancel(current: Order) -> bool:
            current.cancel(reason)
            return True

        result = apply_guarded(self._order_repo, order.id, cancel)  # type: ignore[arg-type]
        cancelled = result.order
        logger.info(
            "order_cancelled",
            order_number=cancelled.order_number,
            reason=cancelled.cancellation_reason,
        )

        failures = self._reservations.restore_for_order(cancelled)
        warnings = [
            f"Could not restore {failure.quantity} x {failure.product_id}: {failure.reason}"
            for failure in failures
        ]
        return CancellationDTO(order=to_order_dto(cancelled), warnings=warnings)
