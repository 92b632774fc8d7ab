"""Payment gateway port (abstract interface).

Defines the contract the reconciliation engine relies on.  The Stripe
adapter lives in infrastructure; tests swap in a fake.  Every call may
raise GatewayUnavailableError, which callers must treat as "outcome
unknown", never as a failed payment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from storefront.domain.model.order import Order


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str | None = None


@dataclass(frozen=True)
class GatewayPayment:
    """Authoritative payment state as reported by the gateway."""

    reference: str
    status: str  # gateway's own vocabulary, e.g. "paid", "unpaid", "succeeded"
    paid: bool
    payment_reference: str | None = None  # canonical id to store once paid
    order_id: str | None = None  # from metadata attached at session creation


@dataclass(frozen=True)
class WebhookEvent:
    id: str
    type: str
    data: dict = field(default_factory=dict)  # the event's ``data.object``

    @property
    def metadata(self) -> dict:
        return self.data.get("metadata") or {}


class PaymentGateway(ABC):

    @abstractmethod
    def create_checkout_session(
        self,
        order: Order,
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Open a hosted checkout for the order's stored totals."""

    @abstractmethod
    def retrieve_payment(self, reference: str) -> GatewayPayment:
        """Look up a session or payment intent.

        Raises PaymentSessionNotFoundError for unknown references and
        GatewayUnavailableError on timeout or transport failure.
        """

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        """Authenticate and parse an inbound webhook.

        Raises SignatureInvalidError without side effects if the payload
        cannot be verified against the shared secret.
        """
