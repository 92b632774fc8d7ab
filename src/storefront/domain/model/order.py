"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns frozen copies of its line items.
Prices, totals and the shipping address are snapshots taken at checkout;
after creation only status fields, the payment reference, tracking data
and cancellation details ever change, and only through the guarded
transition methods below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum

from storefront.domain.exceptions import (
    InvalidStateError,
    UnauthorizedError,
    ValidationError,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CARD = "card"
    COD = "cod"
    STRIPE = "stripe"
    PAYPAL = "paypal"
    CREDIT_CARD = "credit_card"

    @property
    def is_gateway(self) -> bool:
        """True for methods settled through the card payment gateway."""
        return self in (PaymentMethod.CARD, PaymentMethod.STRIPE, PaymentMethod.CREDIT_CARD)

    @staticmethod
    def parse(raw: str | None) -> PaymentMethod:
        if not raw:
            return PaymentMethod.CARD
        try:
            return PaymentMethod(raw.strip().lower())
        except ValueError:
            raise ValidationError(f"Unsupported payment method '{raw}'") from None


class ShippingMethod(Enum):
    STANDARD = "Standard"
    EXPRESS = "Express"
    OVERNIGHT = "Overnight"

    @staticmethod
    def parse(raw: str | None) -> ShippingMethod:
        """Case-insensitive lookup; anything unrecognised ships Standard."""
        if raw:
            for method in ShippingMethod:
                if method.value.lower() == raw.strip().lower():
                    return method
        return ShippingMethod.STANDARD


DELIVERY_DAYS = {
    ShippingMethod.STANDARD: 5,
    ShippingMethod.EXPRESS: 2,
    ShippingMethod.OVERNIGHT: 1,
}

CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)
PAYABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)
DEFAULT_CANCELLATION_REASON = "Cancelled by user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderLineItem:
    """Price snapshot of one product at order-creation time.

    Never re-read from the catalog afterwards (price lock).
    """

    product_id: str
    name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time
    variant: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: str | None
    order_number: str
    user_id: str
    items: tuple[OrderLineItem, ...]
    shipping_address: ShippingAddress
    shipping_method: ShippingMethod
    subtotal: Money
    shipping_cost: Money
    tax: Money
    discount: Money
    total: Money
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    payment_reference: str | None = None
    tracking_number: str | None = None
    coupon_code: str | None = None
    estimated_delivery: date | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        user_id: str,
        order_number: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        shipping_method: ShippingMethod,
        payment_method: PaymentMethod,
        subtotal: Money,
        shipping_cost: Money,
        tax: Money,
        discount: Money,
        total: Money,
        coupon_code: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new order, enforcing all invariants."""
        if not user_id:
            raise ValidationError("Order must belong to a user")
        if not items:
            raise ValidationError("No order items provided")
        if subtotal + shipping_cost + tax != total + discount:
            raise ValidationError(
                f"Order total {total} does not equal subtotal {subtotal} "
                f"+ shipping {shipping_cost} + tax {tax} - discount {discount}"
            )

        now = now or _utcnow()

        # Cash-on-delivery orders are confirmed straight away; payment is
        # collected on delivery.
        if payment_method is PaymentMethod.COD:
            order_status = OrderStatus.PROCESSING
        else:
            order_status = OrderStatus.PENDING

        return Order(
            id=None,
            order_number=order_number,
            user_id=user_id,
            items=tuple(items),
            shipping_address=shipping_address,
            shipping_method=shipping_method,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax=tax,
            discount=discount,
            total=total,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            order_status=order_status,
            coupon_code=coupon_code,
            estimated_delivery=now.date() + timedelta(days=DELIVERY_DAYS[shipping_method]),
            created_at=now,
            updated_at=now,
        )

    # --- Access ---------------------------------------------------------------

    def ensure_owned_by(self, user_id: str) -> None:
        if self.user_id != user_id:
            raise UnauthorizedError(
                f"Not authorized to access order {self.order_number}"
            )

    @property
    def awaits_gateway_payment(self) -> bool:
        """True when a gateway check could still move this order to paid."""
        return (
            self.payment_method.is_gateway
            and self.payment_status is PaymentStatus.PENDING
            and bool(self.payment_reference)
        )

    # --- Payment transitions --------------------------------------------------
    #
    # Each returns True when it changed the order and False when the order
    # was already in (or past) the target state.  Callers persist only on
    # True, which makes duplicate and reordered signals harmless.

    def mark_paid(self, payment_reference: str | None, now: datetime | None = None) -> bool:
        """pending|failed -> completed; order status pending -> processing."""
        if self.payment_status not in PAYABLE_STATUSES:
            return False
        self.payment_status = PaymentStatus.COMPLETED
        if payment_reference:
            self.payment_reference = payment_reference
        if self.order_status is OrderStatus.PENDING:
            self.order_status = OrderStatus.PROCESSING
        self.updated_at = now or _utcnow()
        return True

    def mark_failed(self, now: datetime | None = None) -> bool:
        """pending -> failed.  A completed payment is never regressed."""
        if self.payment_status is not PaymentStatus.PENDING:
            return False
        self.payment_status = PaymentStatus.FAILED
        self.updated_at = now or _utcnow()
        return True

    def attach_payment_reference(self, reference: str, now: datetime | None = None) -> bool:
        """Remember the gateway session created for this order."""
        if self.order_status is OrderStatus.CANCELLED:
            raise InvalidStateError(f"Order {self.order_number} is cancelled")
        if self.payment_status not in PAYABLE_STATUSES:
            raise InvalidStateError(
                f"Order {self.order_number} payment is already {self.payment_status.value}"
            )
        if self.payment_reference == reference:
            return False
        self.payment_reference = reference
        self.updated_at = now or _utcnow()
        return True

    # --- Fulfillment transitions ----------------------------------------------

    def cancel(self, reason: str | None = None, now: datetime | None = None) -> None:
        """pending|processing -> cancelled.

        Inventory restoration happens *after* the cancelled order has been
        persisted (coordinated by the application handler).
        """
        if self.order_status not in CANCELLABLE_STATUSES:
            raise InvalidStateError(
                f"Order {self.order_number} cannot be cancelled at this stage "
                f"(status is {self.order_status.value})"
            )
        now = now or _utcnow()
        self.order_status = OrderStatus.CANCELLED
        self.cancelled_at = now
        self.cancellation_reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON
        self.updated_at = now

    def ship(self, tracking_number: str, now: datetime | None = None) -> None:
        """processing -> shipped, recording the carrier tracking number."""
        if not tracking_number or not tracking_number.strip():
            raise ValidationError("Tracking number is required")
        if self.order_status is not OrderStatus.PROCESSING:
            raise InvalidStateError(
                f"Cannot ship order {self.order_number} in {self.order_status.value} status"
            )
        self.order_status = OrderStatus.SHIPPED
        self.tracking_number = tracking_number.strip()
        self.updated_at = now or _utcnow()

    def deliver(self, now: datetime | None = None) -> None:
        """shipped -> delivered.  Cash on delivery is settled at this point."""
        if self.order_status is not OrderStatus.SHIPPED:
            raise InvalidStateError(
                f"Cannot deliver order {self.order_number} in {self.order_status.value} status"
            )
        now = now or _utcnow()
        self.order_status = OrderStatus.DELIVERED
        self.delivered_at = now
        if self.payment_method is PaymentMethod.COD:
            self.payment_status = PaymentStatus.COMPLETED
        self.updated_at = now

    # --- Computed properties --------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(item.quantity.value for item in self.items)
