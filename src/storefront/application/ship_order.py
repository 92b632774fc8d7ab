"""Application services: Ship Order and Deliver Order use cases.

Fulfillment is driven by staff, not the customer, so neither handler
checks ownership.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import OrderDTO, to_order_dto
from storefront.domain.model.order import Order
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.guarded_update import apply_guarded
from storefront.domain.service.order_resolver import resolve_order

logger = structlog.get_logger(__name__)


class ShipOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, reference: str, tracking_number: str) -> OrderDTO:
        order = resolve_order(self._order_repo, reference)

        def ship(current: Order) -> bool:
            current.ship(tracking_number)
            return True

        shipped = apply_guarded(self._order_repo, order.id, ship).order  # type: ignore[arg-type]
        logger.info(
            "order_shipped",
            order_number=shipped.order_number,
            tracking_number=shipped.tracking_number,
        )
        return to_order_dto(shipped)


class DeliverOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, reference: str) -> OrderDTO:
        order = resolve_order(self._order_repo, reference)

        def deliver(current: Order) -> bool:
            current.deliver()
            return True

        delivered = apply_guarded(self._order_repo, order.id, deliver).order  # type: ignore[arg-type]
        logger.info(
            "order_delivered",
            order_number=delivered.order_number,
            payment_status=delivered.payment_status.value,
        )
        return to_order_dto(delivered)
