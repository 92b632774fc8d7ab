"""Application service: Payment Webhook use case (gateway push).

The signature is checked before anything else is looked at.  After that
the gateway must always get an acknowledgement for events we cannot act
on (unknown type, unknown order), otherwise it keeps redelivering them.
Redelivered and out-of-order events are harmless: every transition goes
through the guarded reconciliation service.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import WebhookAckDTO
from storefront.domain.gateway.payment_gateway import PaymentGateway, WebhookEvent
from storefront.domain.model.order import Order
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.guarded_update import UpdateResult
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)

logger = structlog.get_logger(__name__)

PAID_SESSION_STATUSES = ("paid", "no_payment_required")


class HandlePaymentWebhookHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: PaymentGateway,
        reconciliation: PaymentReconciliationService,
    ) -> None:
        self._order_repo = order_repo
        self._gateway = gateway
        self._reconciliation = reconciliation

    def handle(self, payload: bytes, signature: str | None) -> WebhookAckDTO:
        # Raises SignatureInvalidError before any lookup.
        event = self._gateway.construct_webhook_event(payload, signature)
        logger.info("webhook_received", event_id=event.id, event_type=event.type)

        handlers = {
            "checkout.session.completed": self._session_completed,
            "checkout.session.async_payment_succeeded": self._session_paid,
            "checkout.session.async_payment_failed": self._session_failed,
            "payment_intent.succeeded": self._intent_succeeded,
            "payment_intent.payment_failed": self._intent_failed,
        }
        handler = handlers.get(event.type)
        if handler is None:
            logger.info("webhook_event_ignored", event_id=event.id, event_type=event.type)
            return WebhookAckDTO(received=True, event_type=event.type)

        result = handler(event)
        if result is None:
            return WebhookAckDTO(received=True, event_type=event.type)
        return WebhookAckDTO(
            received=True,
            event_type=event.type,
            order_number=result.order.order_number,
            changed=result.changed,
        )

    # --- Checkout session events ----------------------------------------------

    def _session_completed(self, event: WebhookEvent) -> UpdateResult | None:
        # Delayed methods complete the session before the money arrives;
        # those settle through async_payment_succeeded.
        if event.data.get("payment_status") not in PAID_SESSION_STATUSES:
            logger.info(
                "checkout_completed_unpaid",
                session_id=event.data.get("id"),
                payment_status=event.data.get("payment_status"),
            )
            return None
        return self._session_paid(event)

    def _session_paid(self, event: WebhookEvent) -> UpdateResult | None:
        order = self._session_order(event)
        if order is None:
            return None
        reference = _object_id(event.data.get("payment_intent")) or event.data.get("id")
        return self._reconciliation.mark_paid(order.id, reference)  # type: ignore[arg-type]

    def _session_failed(self, event: WebhookEvent) -> UpdateResult | None:
        order = self._session_order(event)
        if order is None:
            return None
        return self._reconciliation.mark_failed(order.id)  # type: ignore[arg-type]

    def _session_order(self, event: WebhookEvent) -> Order | None:
        order_id = event.metadata.get("orderId") or event.data.get("client_reference_id")
        return self._locate(event, order_id, event.data.get("id"))

    # --- Payment intent events ------------------------------------------------

    def _intent_succeeded(self, event: WebhookEvent) -> UpdateResult | None:
        order = self._intent_order(event)
        if order is None:
            return None
        return self._reconciliation.mark_paid(order.id, event.data.get("id"))  # type: ignore[arg-type]

    def _intent_failed(self, event: WebhookEvent) -> UpdateResult | None:
        order = self._intent_order(event)
        if order is None:
            return None
        return self._reconciliation.mark_failed(order.id)  # type: ignore[arg-type]

    def _intent_order(self, event: WebhookEvent) -> Order | None:
        return self._locate(event, event.metadata.get("orderId"), event.data.get("id"))

    # --- Lookup ---------------------------------------------------------------

    def _locate(self, event: WebhookEvent, order_id: str | None, reference: str | None) -> Order | None:
        order = None
        if order_id:
            order = self._order_repo.get_by_id(order_id)
        if order is None and reference:
            order = self._order_repo.get_by_payment_reference(reference)
        if order is None:
            logger.warning(
                "webhook_order_not_found",
                event_id=event.id,
                event_type=event.type,
                order_id=order_id,
                reference=reference,
            )
        return order


def _object_id(value: object) -> str | None:
    if isinstance(value, dict):
        return value.get("id")
    return value if isinstance(value, str) else None
