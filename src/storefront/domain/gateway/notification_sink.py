"""Notification Sink port — fire-and-forget customer messages."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class NotificationSink(ABC):

    @abstractmethod
    def notify_order_created(self, order: Order, recipient: str) -> None:
        """Send an order confirmation.  Raises NotificationError on failure."""
