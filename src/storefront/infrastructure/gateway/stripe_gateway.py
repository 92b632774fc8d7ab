"""
Stripe adapter for the PaymentGateway port, built on the ``stripe`` SDK:
- Creating hosted checkout sessions for an order
- Retrieving checkout sessions (``cs_...``) and payment intents (``pi_...``)
- Verifying and parsing signed webhook events

Requests are bounded by the HTTP client's timeout and are not retried.
Connection failures and gateway-side errors surface as
GatewayUnavailableError so callers can leave the order untouched.
"""

from __future__ import annotations

import json

import stripe
import structlog

from storefront.domain.exceptions import (
    GatewayUnavailableError,
    PaymentSessionNotFoundError,
    SignatureInvalidError,
    ValidationError,
)
from storefront.domain.gateway.payment_gateway import (
    CheckoutSession,
    GatewayPayment,
    PaymentGateway,
    WebhookEvent,
)
from storefront.domain.model.order import Order

logger = structlog.get_logger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300
PAID_SESSION_STATUSES = ("paid", "no_payment_required")


class StripeGateway(PaymentGateway):
    """Synchronous Stripe client with bounded request time."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        api_base: str | None = None,
        timeout: float = 10.0,
        tolerance: int = DEFAULT_TOLERANCE_SECONDS,
        stripe_client=stripe,
    ) -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._tolerance = tolerance
        self._stripe = stripe_client
        self._stripe.max_network_retries = 0
        self._stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        if api_base:
            self._stripe.api_base = api_base

    # --- PaymentGateway interface ---------------------------------------------

    def create_checkout_session(
        self,
        order: Order,
        customer_email: str | None,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        metadata = {
            "orderId": order.id or "",
            "userId": order.user_id,
            "orderNumber": order.order_number,
        }
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": _line_items(order),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": order.id or "",
            "metadata": metadata,
            "payment_intent_data": {"metadata": {"orderId": order.id or ""}},
        }
        if customer_email:
            params["customer_email"] = customer_email

        session = self._call(self._stripe.checkout.Session.create, **params)
        logger.info(
            "checkout_session_created",
            order_number=order.order_number,
            session_id=session.id,
        )
        return CheckoutSession(session_id=session.id, url=_field(session, "url"))

    def retrieve_payment(self, reference: str) -> GatewayPayment:
        if reference.startswith("cs_"):
            session = self._call(self._stripe.checkout.Session.retrieve, reference)
            metadata = _field(session, "metadata")
            status = _field(session, "payment_status") or "unpaid"
            return GatewayPayment(
                reference=reference,
                status=status,
                paid=status in PAID_SESSION_STATUSES,
                payment_reference=_object_id(_field(session, "payment_intent")),
                order_id=_field(metadata, "orderId") or _field(session, "client_reference_id"),
            )
        if reference.startswith("pi_"):
            intent = self._call(self._stripe.PaymentIntent.retrieve, reference)
            status = _field(intent, "status") or "unknown"
            return GatewayPayment(
                reference=reference,
                status=status,
                paid=status == "succeeded",
                payment_reference=reference,
                order_id=_field(_field(intent, "metadata"), "orderId"),
            )
        raise PaymentSessionNotFoundError(f"Unrecognised payment reference '{reference}'")

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not self._webhook_secret:
            raise SignatureInvalidError("Webhook signing secret is not configured")
        if not signature:
            raise SignatureInvalidError("Missing webhook signature header")
        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature, self._webhook_secret, self._tolerance
            )
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise SignatureInvalidError(f"Invalid webhook signature: {exc}") from exc

        try:
            event = json.loads(body)
            return WebhookEvent(
                id=event.get("id", ""),
                type=event["type"],
                data=(event.get("data") or {}).get("object") or {},
            )
        except (ValueError, KeyError, AttributeError) as exc:
            raise ValidationError(f"Malformed webhook payload: {exc}") from exc

    # --- SDK calls ------------------------------------------------------------

    def _call(self, method, *args, **params):
        """Invoke an SDK method, translating its errors into domain ones."""
        try:
            return method(*args, api_key=self._secret_key, **params)
        except stripe.InvalidRequestError as exc:
            if exc.http_status == 404:
                raise PaymentSessionNotFoundError(
                    f"Payment gateway has no record: {exc.user_message or exc}"
                ) from exc
            raise self._unavailable(exc) from exc
        except stripe.APIConnectionError as exc:
            raise GatewayUnavailableError(f"Payment gateway unreachable: {exc}") from exc
        except stripe.StripeError as exc:
            raise self._unavailable(exc) from exc

    @staticmethod
    def _unavailable(exc: stripe.StripeError) -> GatewayUnavailableError:
        logger.error(
            "gateway_request_failed",
            status_code=exc.http_status,
            message=exc.user_message or str(exc),
        )
        return GatewayUnavailableError(f"Payment gateway error {exc.http_status}: {exc}")


def _line_items(order: Order) -> list[dict]:
    """Items, shipping and tax in cents.

    Falls back to one line for the order total when the per-unit cents do
    not add up to it (sub-cent prices), so the charge always equals
    ``order.total``.
    """
    currency = order.total.currency.lower()
    lines = [(item.name, item.unit_price.cents, item.quantity.value) for item in order.items]
    if not order.shipping_cost.is_zero:
        lines.append((f"Shipping - {order.shipping_method.value}", order.shipping_cost.cents, 1))
    if not order.tax.is_zero:
        lines.append(("Tax", order.tax.cents, 1))

    if sum(amount * quantity for _, amount, quantity in lines) != order.total.cents:
        lines = [(f"Order {order.order_number}", order.total.cents, 1)]

    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {"name": name},
                "unit_amount": unit_amount,
            },
            "quantity": quantity,
        }
        for name, unit_amount, quantity in lines
    ]


def _field(obj, key: str):
    """Read a key from a Stripe object (or a plain dict); None when absent."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _object_id(value: object) -> str | None:
    """Stripe returns either an id or an expanded object for references."""
    if isinstance(value, str):
        return value
    return _field(value, "id")
