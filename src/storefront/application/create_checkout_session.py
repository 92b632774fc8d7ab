"""Application service: Create Checkout Session use case.

Opens a hosted payment page for an existing order and remembers the
session id on the order, which is what the pull and lazy verification
paths later look up.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import CheckoutSessionDTO
from storefront.domain.exceptions import InvalidStateError
from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.domain.model.order import PAYABLE_STATUSES, Order, OrderStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.guarded_update import apply_guarded
from storefront.domain.service.order_resolver import resolve_order

logger = structlog.get_logger(__name__)


class CreateCheckoutSessionHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: PaymentGateway,
        frontend_url: str,
    ) -> None:
        self._order_repo = order_repo
        self._gateway = gateway
        self._frontend_url = frontend_url.rstrip("/")

    def handle(self, user_id: str, reference: str, customer_email: str | None = None) -> CheckoutSessionDTO:
        order = resolve_order(self._order_repo, reference)
        order.ensure_owned_by(user_id)
        # Refuse before talking to the gateway; the guarded write re-checks.
        if order.order_status is OrderStatus.CANCELLED or order.payment_status not in PAYABLE_STATUSES:
            raise InvalidStateError(
                f"Order {order.order_number} cannot be paid "
                f"(order {order.order_status.value}, payment {order.payment_status.value})"
            )

        session = self._gateway.create_checkout_session(
            order,
            customer_email,
            success_url=f"{self._frontend_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self._frontend_url}/checkout?canceled=true",
        )

        def attach(current: Order) -> bool:
            return current.attach_payment_reference(session.session_id)

        apply_guarded(self._order_repo, order.id, attach)  # type: ignore[arg-type]
        logger.info(
            "payment_reference_attached",
            order_number=order.order_number,
            session_id=session.session_id,
        )
        return CheckoutSessionDTO(
            order_number=order.order_number,
            session_id=session.session_id,
            url=session.url,
        )
