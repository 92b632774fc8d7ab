"""Fire-and-forget delivery of customer notifications.

Checkout hands the message to a background worker and returns; the worker
logs any failure.  Nothing here is ever awaited by the request path, and a
failed notification never rolls back the order it describes.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor

import structlog

from storefront.domain.gateway.notification_sink import NotificationSink
from storefront.domain.model.order import Order

logger = structlog.get_logger(__name__)


class NotificationDispatcher:

    def __init__(self, sink: NotificationSink, executor: Executor | None = None) -> None:
        self._sink = sink
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="notify"
        )

    def order_created(self, order: Order, recipient: str | None) -> Future | None:
        if not recipient:
            return None
        try:
            return self._executor.submit(self._deliver, order, recipient)
        except RuntimeError:
            # Executor already shut down (process exiting).
            logger.warning("notification_not_queued", order_number=order.order_number)
            return None

    def close(self) -> None:
        """Wait for queued notifications to finish."""
        self._executor.shutdown(wait=True)

    def _deliver(self, order: Order, recipient: str) -> None:
        try:
            self._sink.notify_order_created(order, recipient)
        except Exception:
            logger.warning(
                "order_confirmation_failed",
                order_number=order.order_number,
                recipient=recipient,
                exc_info=True,
            )
