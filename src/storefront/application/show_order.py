"""Application service: Show Order use case (query).

Reading a gateway-paid order that is still pending doubles as a payment
check: the stored session or intent is looked up at the gateway and, if
it has been paid, the order is settled before it is returned.  That
check is an optimisation only; whatever goes wrong there, the customer
still gets the order as stored.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import OrderDTO, to_order_dto
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.order_resolver import resolve_order
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)

logger = structlog.get_logger(__name__)


class ShowOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        reconciliation: PaymentReconciliationService | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._reconciliation = reconciliation

    def handle(self, user_id: str, reference: str) -> OrderDTO:
        order = resolve_order(self._order_repo, reference)
        order.ensure_owned_by(user_id)

        if self._reconciliation is not None and order.awaits_gateway_payment:
            try:
                order = self._reconciliation.refresh_from_gateway(order).order
            except Exception:
                logger.warning(
                    "lazy_payment_check_failed",
                    order_number=order.order_number,
                    payment_reference=order.payment_reference,
                    exc_info=True,
                )

        return to_order_dto(order)
