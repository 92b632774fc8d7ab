"""Order confirmation e-mails through the Resend HTTP API."""

from __future__ import annotations

import httpx
import structlog

from storefront.domain.exceptions import NotificationError
from storefront.domain.gateway.notification_sink import NotificationSink
from storefront.domain.model.order import Order

logger = structlog.get_logger(__name__)


def render_confirmation(order: Order) -> str:
    """Plain-text confirmation body."""
    address = order.shipping_address
    lines = [
        f"Hi {address.full_name},",
        "",
        "We've received your order and it's being processed.",
        "",
        f"Order #{order.order_number}",
    ]
    lines += [
        f"  {item.name} x {item.quantity} - {item.line_total}" for item in order.items
    ]
    lines += [
        "",
        f"Subtotal: {order.subtotal}",
        f"Shipping: {order.shipping_cost}",
        f"Tax:      {order.tax}",
        f"Total:    {order.total}",
        "",
        "Shipping to:",
        f"  {address.full_name}",
        f"  {address.street}",
        f"  {address.city}, {address.state} {address.zip_code}",
        f"  {address.country}",
        f"  Phone: {address.phone}",
        "",
        "We'll send you another email when your order ships.",
    ]
    return "\n".join(lines)


class ResendNotificationSink(NotificationSink):

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_base: str = "https://api.resend.com",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def notify_order_created(self, order: Order, recipient: str) -> None:
        payload = {
            "from": self._sender,
            "to": [recipient],
            "subject": f"Order Confirmation - {order.order_number}",
            "text": render_confirmation(order),
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self._api_base}/emails",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            raise NotificationError(f"Failed to reach e-mail service: {exc}") from exc

        if not response.is_success:
            raise NotificationError(
                f"E-mail service rejected message ({response.status_code}): {response.text}"
            )
        logger.info("order_confirmation_sent", order_number=order.order_number)
