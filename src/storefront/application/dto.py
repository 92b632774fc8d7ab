"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.domain.model.cart import Cart
from storefront.domain.model.order import Order


@dataclass(frozen=True)
class CheckoutItemSpec:
    """Input: what the customer asked for."""

    product_id: str
    quantity: int
    variant: str | None = None


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    name: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    line_total: str
    variant: str | None = None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to its owner."""

    id: str
    order_number: str
    user_id: str
    order_status: str
    payment_status: str
    payment_method: str
    shipping_method: str
    items: list[OrderLineItemDTO]
    subtotal: str
    shipping_cost: str
    tax: str
    discount: str
    total: str
    estimated_delivery: str | None
    created_at: str
    payment_reference: str | None = None
    tracking_number: str | None = None
    cancelled_at: str | None = None
    cancellation_reason: str | None = None


@dataclass(frozen=True)
class TrackingDTO:
    """Output: the public, ownership-agnostic view behind a tracking number."""

    order_number: str
    tracking_number: str
    order_status: str
    shipping_method: str
    estimated_delivery: str | None
    delivered_at: str | None
    items: list[tuple[str, int]]


@dataclass(frozen=True)
class OrderPageDTO:
    orders: list[OrderDTO]
    page: int
    limit: int
    total: int
    pages: int


@dataclass(frozen=True)
class CancellationDTO:
    """Output: the cancelled order plus any stock that could not be restored."""

    order: OrderDTO
    warnings: list[str] = field(default_factory=list)

    @property
    def fully_restored(self) -> bool:
        return not self.warnings


@dataclass(frozen=True)
class CheckoutSessionDTO:
    order_number: str
    session_id: str
    url: str | None


@dataclass(frozen=True)
class PaymentVerificationDTO:
    gateway_status: str
    paid: bool
    changed: bool
    order: OrderDTO | None


@dataclass(frozen=True)
class WebhookAckDTO:
    received: bool
    event_type: str
    order_number: str | None = None
    changed: bool = False


@dataclass(frozen=True)
class CartLineDTO:
    product_id: str
    quantity: int
    price: str
    line_total: str
    variant: str | None = None


@dataclass(frozen=True)
class CartDTO:
    user_id: str
    items: list[CartLineDTO]
    subtotal: str
    item_count: int


# --- Mapping ------------------------------------------------------------------


def to_order_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        order_status=order.order_status.value,
        payment_status=order.payment_status.value,
        payment_method=order.payment_method.value,
        shipping_method=order.shipping_method.value,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                variant=item.variant,
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        shipping_cost=str(order.shipping_cost),
        tax=str(order.tax),
        discount=str(order.discount),
        total=str(order.total),
        estimated_delivery=order.estimated_delivery.isoformat() if order.estimated_delivery else None,
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        payment_reference=order.payment_reference,
        tracking_number=order.tracking_number,
        cancelled_at=order.cancelled_at.strftime("%Y-%m-%d %H:%M UTC") if order.cancelled_at else None,
        cancellation_reason=order.cancellation_reason,
    )


def to_cart_dto(cart: Cart) -> CartDTO:
    return CartDTO(
        user_id=cart.user_id,
        items=[
            CartLineDTO(
                product_id=item.product_id,
                quantity=item.quantity.value,
                price=str(item.price),
                line_total=str(item.line_total),
                variant=item.variant,
            )
            for item in cart.items
        ],
        subtotal=str(cart.subtotal),
        item_count=cart.item_count,
    )
