"""Application service: Verify Payment use case (customer pull).

The customer returns from the hosted checkout holding a session id and
asks whether payment went through.  The gateway's answer is authoritative;
gateway errors propagate so the caller can tell "not paid" apart from
"could not find out".
"""

from __future__ import annotations

from storefront.application.dto import PaymentVerificationDTO, to_order_dto
from storefront.domain.exceptions import ValidationError
from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)


class VerifyPaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: PaymentGateway,
        reconciliation: PaymentReconciliationService,
    ) -> None:
        self._order_repo = order_repo
        self._gateway = gateway
        self._reconciliation = reconciliation

    def handle(self, user_id: str, session_id: str) -> PaymentVerificationDTO:
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("Session ID is required")

        payment = self._gateway.retrieve_payment(session_id)
        order = self._reconciliation.order_for(payment)
        order.ensure_owned_by(user_id)

        result = self._reconciliation.apply_gateway_payment(payment)
        return PaymentVerificationDTO(
            gateway_status=payment.status,
            paid=payment.paid,
            changed=result.changed,
            order=to_order_dto(result.order),
        )
