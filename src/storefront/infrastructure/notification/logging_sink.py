"""Notification sink for environments without an e-mail provider."""

from __future__ import annotations

import structlog

from storefront.domain.gateway.notification_sink import NotificationSink
from storefront.domain.model.order import Order

logger = structlog.get_logger(__name__)


class LoggingNotificationSink(NotificationSink):

    def notify_order_created(self, order: Order, recipient: str) -> None:
        logger.info(
            "order_confirmation_logged",
            order_number=order.order_number,
            recipient=recipient,
            total=str(order.total),
        )
