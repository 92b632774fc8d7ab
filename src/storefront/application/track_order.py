"""Application service: Track Order use case (public query).

Anyone holding a tracking number may see where the parcel is, so the
result deliberately leaves out the customer and the shipping address.
"""

from __future__ import annotations

from storefront.application.dto import TrackingDTO
from storefront.domain.exceptions import OrderNotFoundError, ValidationError
from storefront.domain.repository.order_repository import OrderRepository


class TrackOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, tracking_number: str) -> TrackingDTO:
        tracking_number = (tracking_number or "").strip()
        if not tracking_number:
            raise ValidationError("Tracking number is required")

        order = self._order_repo.get_by_tracking_number(tracking_number)
        if order is None:
            raise OrderNotFoundError(f"No order found with tracking number '{tracking_number}'")

        return TrackingDTO(
            order_number=order.order_number,
            tracking_number=tracking_number,
            order_status=order.order_status.value,
            shipping_method=order.shipping_method.value,
            estimated_delivery=order.estimated_delivery.isoformat() if order.estimated_delivery else None,
            delivered_at=order.delivered_at.strftime("%Y-%m-%d %H:%M UTC") if order.delivered_at else None,
            items=[(item.name, item.quantity.value) for item in order.items],
        )
