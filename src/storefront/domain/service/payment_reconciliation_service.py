"""Domain service: Payment Reconciliation.

The webhook push, the user's pull verification and the lazy check on
order read all converge on ``mark_paid`` / ``mark_failed`` here.  Both
are guarded compare-and-swap transitions, so a signal that arrives twice,
late, or after a contradicting one cannot double-apply or regress:

    pending   --paid-->    completed   (order pending -> processing)
    pending   --failed-->  failed
    failed    --paid-->    completed   (recovery)
    completed --any-->     completed   (no-op)
"""

from __future__ import annotations

import structlog

from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.gateway.payment_gateway import GatewayPayment, PaymentGateway
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.guarded_update import UpdateResult, apply_guarded

logger = structlog.get_logger(__name__)


class PaymentReconciliationService:

    def __init__(self, order_repo: OrderRepository, gateway: PaymentGateway | None = None) -> None:
        self._order_repo = order_repo
        self._gateway = gateway

    # --- Guarded transitions --------------------------------------------------

    def mark_paid(self, order_id: str, payment_reference: str | None) -> UpdateResult:
        result = apply_guarded(
            self._order_repo,
            order_id,
            lambda order: order.mark_paid(payment_reference),
        )
        order = result.order
        if not result.changed:
            logger.info(
                "payment_already_settled",
                order_number=order.order_number,
                payment_status=order.payment_status.value,
                changed=False,
            )
        elif order.order_status is OrderStatus.CANCELLED:
            logger.warning(
                "payment_completed_for_cancelled_order",
                order_number=order.order_number,
                payment_reference=order.payment_reference,
            )
        else:
            logger.info(
                "payment_completed",
                order_number=order.order_number,
                payment_reference=order.payment_reference,
                changed=True,
            )
        return result

    def mark_failed(self, order_id: str) -> UpdateResult:
        result = apply_guarded(self._order_repo, order_id, lambda order: order.mark_failed())
        logger.info(
            "payment_failed" if result.changed else "payment_failure_ignored",
            order_number=result.order.order_number,
            payment_status=result.order.payment_status.value,
            changed=result.changed,
        )
        return result

    # --- Gateway-driven reconciliation ----------------------------------------

    def apply_gateway_payment(self, payment: GatewayPayment) -> UpdateResult:
        """Bring the matching local order in line with the gateway's answer.

        Only a confirmed payment moves the order; anything else leaves it as
        it is, since the customer may still complete payment.
        """
        order = self.order_for(payment)
        if not payment.paid:
            return UpdateResult(order=order, changed=False)
        return self.mark_paid(order.id, payment.payment_reference or payment.reference)  # type: ignore[arg-type]

    def refresh_from_gateway(self, order: Order) -> UpdateResult:
        """Ask the gateway about the order's stored reference and apply it.

        May raise GatewayUnavailableError or PaymentSessionNotFoundError;
        the order is untouched in either case.
        """
        if self._gateway is None or not order.payment_reference:
            return UpdateResult(order=order, changed=False)
        payment = self._gateway.retrieve_payment(order.payment_reference)
        if not payment.paid:
            return UpdateResult(order=order, changed=False)
        return self.mark_paid(order.id, payment.payment_reference or payment.reference)  # type: ignore[arg-type]

    def order_for(self, payment: GatewayPayment) -> Order:
        """Locate the local order a gateway payment belongs to."""
        order = None
        if payment.order_id:
            order = self._order_repo.get_by_id(payment.order_id)
        if order is None:
            order = self._order_repo.get_by_payment_reference(payment.reference)
        if order is None:
            raise OrderNotFoundError(
                f"No order found for payment reference '{payment.reference}'"
            )
        return order
