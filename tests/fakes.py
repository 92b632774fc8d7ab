"""In-memory fakes for testing.

These implement the same abstract interfaces as the JSON repositories
and the Stripe / Resend adapters but keep everything in dicts.  No file
I/O, no network.  Repositories hand out copies, like the JSON store does,
and guard their writes with a lock so they can be raced from threads.
"""

from __future__ import annotations

import copy
import hashlib
import hmac
import json
import threading
import time
from concurrent.futures import Executor, Future
from datetime import datetime
from types import SimpleNamespace
from typing import Iterable

from storefront.domain.exceptions import (
    DuplicateIdentifierError,
    GatewayUnavailableError,
    NotificationError,
    PaymentSessionNotFoundError,
    ProductNotFoundError,
    SignatureInvalidError,
)
from storefront.domain.gateway.notification_sink import NotificationSink
from storefront.domain.gateway.payment_gateway import (
    CheckoutSession,
    GatewayPayment,
    PaymentGateway,
    WebhookEvent,
)
from storefront.domain.model.cart import Cart
from storefront.domain.model.order import (
    Order,
    OrderLineItem,
    PaymentMethod,
    ShippingMethod,
)
from storefront.domain.model.stock import StockEntry
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.order_number import OrderNumberGenerator
from storefront.domain.service.pricing import quote

VALID_SIGNATURE = "test-signature"


def make_address(**overrides: str) -> ShippingAddress:
    fields = {
        "full_name": "Ada Lovelace",
        "street": "12 Analytical Way",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
        "phone": "555-0100",
    }
    fields.update(overrides)
    return ShippingAddress(**fields)


def make_stock(product_id: str, name: str, price: str, quantity: int, sale_price: str | None = None) -> StockEntry:
    return StockEntry(
        product_id=product_id,
        name=name,
        price=Money.of(price),
        quantity_on_hand=quantity,
        sale_price=Money.of(sale_price) if sale_price else None,
    )


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[str, Order] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        return f"order-{self._next_id}"

    def get_by_id(self, order_id: str) -> Order | None:
        return copy.deepcopy(self._store.get(order_id))

    def get_by_order_number(self, order_number: str) -> Order | None:
        return self._find(lambda o: o.order_number == order_number)

    def get_by_payment_reference(self, reference: str) -> Order | None:
        return self._find(lambda o: o.payment_reference == reference)

    def get_by_tracking_number(self, tracking_number: str) -> Order | None:
        return self._find(lambda o: o.tracking_number == tracking_number)

    def list_for_user(self, user_id: str, offset: int = 0, limit: int | None = None) -> list[Order]:
        mine = sorted(
            (o for o in self._store.values() if o.user_id == user_id),
            key=lambda o: o.created_at,
            reverse=True,
        )
        end = None if limit is None else offset + limit
        return [copy.deepcopy(o) for o in mine[offset:end]]

    def count_for_user(self, user_id: str) -> int:
        return sum(1 for o in self._store.values() if o.user_id == user_id)

    def add(self, order: Order) -> None:
        with self._lock:
            if any(o.order_number == order.order_number for o in self._store.values()):
                raise DuplicateIdentifierError(f"Order number {order.order_number} already exists")
            if order.id is None:
                order.id = self.next_id()
                self._next_id += 1
            self._store[order.id] = copy.deepcopy(order)

    def replace(self, order: Order, expected_version: int) -> bool:
        with self._lock:
            stored = self._store.get(order.id)  # type: ignore[arg-type]
            if stored is None or stored.version != expected_version:
                return False
            if order.tracking_number and any(
                o.tracking_number == order.tracking_number and o.id != order.id
                for o in self._store.values()
            ):
                raise DuplicateIdentifierError(f"Tracking number {order.tracking_number} is already in use")
            order.version = expected_version + 1
            self._store[order.id] = copy.deepcopy(order)  # type: ignore[index]
            return True

    def _find(self, predicate) -> Order | None:
        for order in self._store.values():
            if predicate(order):
                return copy.deepcopy(order)
        return None


class BrokenOrderRepository(FakeOrderRepository):
    """Every insert fails as if the disk were full."""

    def add(self, order: Order) -> None:
        raise OSError("No space left on device")


class FakeInventoryRepository(InventoryRepository):

    def __init__(self, entries: list[StockEntry] | None = None) -> None:
        self._store: dict[str, StockEntry] = {}
        for entry in entries or []:
            self._store[entry.product_id] = entry
        self._lock = threading.Lock()
        self.failing_restores: set[str] = set()
        self.failing_reserves: set[str] = set()

    def get_by_product_id(self, product_id: str) -> StockEntry | None:
        return copy.deepcopy(self._store.get(product_id))

    def get_many(self, product_ids: Iterable[str]) -> dict[str, StockEntry]:
        return {
            pid: copy.deepcopy(self._store[pid]) for pid in product_ids if pid in self._store
        }

    def list_all(self) -> list[StockEntry]:
        return [copy.deepcopy(e) for e in self._store.values()]

    def save(self, entry: StockEntry) -> None:
        with self._lock:
            self._store[entry.product_id] = copy.deepcopy(entry)

    def decrement_if_available(self, product_id: str, quantity: int) -> StockEntry:
        with self._lock:
            if product_id in self.failing_reserves:
                raise OSError(f"No space left on device writing {product_id}")
            entry = self._require(product_id)
            entry.take(quantity)
            return copy.deepcopy(entry)

    def increment(self, product_id: str, quantity: int) -> StockEntry:
        with self._lock:
            if product_id in self.failing_restores:
                raise OSError(f"stock store unavailable for {product_id}")
            entry = self._require(product_id)
            entry.put_back(quantity)
            return copy.deepcopy(entry)

    def on_hand(self, product_id: str) -> int:
        return self._store[product_id].quantity_on_hand

    def _require(self, product_id: str) -> StockEntry:
        entry = self._store.get(product_id)
        if entry is None:
            raise ProductNotFoundError(f"Product not found: '{product_id}'")
        return entry


class FakeCartRepository(CartRepository):

    def __init__(self) -> None:
        self._store: dict[str, Cart] = {}

    def get_for_user(self, user_id: str) -> Cart:
        return copy.deepcopy(self._store.get(user_id)) or Cart(user_id=user_id)

    def save(self, cart: Cart) -> None:
        self._store[cart.user_id] = copy.deepcopy(cart)

    def clear(self, user_id: str) -> None:
        self._store[user_id] = Cart(user_id=user_id)


class FakePaymentGateway(PaymentGateway):
    """Gateway double.  Register payments with ``set_payment``."""

    def __init__(self) -> None:
        self._payments: dict[str, GatewayPayment] = {}
        self.sessions: list[tuple[str, str | None]] = []
        self.retrieve_calls: list[str] = []
        self.unavailable = False

    def set_payment(self, payment: GatewayPayment) -> None:
        self._payments[payment.reference] = payment

    def create_checkout_session(self, order, customer_email, success_url, cancel_url) -> CheckoutSession:
        if self.unavailable:
            raise GatewayUnavailableError("gateway timed out")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append((order.order_number, customer_email))
        return CheckoutSession(session_id=session_id, url=f"https://checkout.test/{session_id}")

    def retrieve_payment(self, reference: str) -> GatewayPayment:
        self.retrieve_calls.append(reference)
        if self.unavailable:
            raise GatewayUnavailableError("gateway timed out")
        payment = self._payments.get(reference)
        if payment is None:
            raise PaymentSessionNotFoundError(f"No such payment: {reference}")
        return payment

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if signature != VALID_SIGNATURE:
            raise SignatureInvalidError("Invalid webhook signature")
        event = json.loads(payload)
        return WebhookEvent(id=event.get("id", ""), type=event["type"], data=event["data"]["object"])


class _FakeStripeResource:
    """Stands in for an SDK resource class such as ``stripe.PaymentIntent``."""

    def __init__(self, client: FakeStripeClient, name: str) -> None:
        self._client = client
        self._name = name

    def create(self, **params):
        return self._client._answer(f"{self._name}.create", params)

    def retrieve(self, id: str, **params):
        return self._client._answer(f"{self._name}.retrieve", {"id": id, **params})


class FakeStripeClient:
    """Replaces the ``stripe`` module inside StripeGateway.

    Queue a result (or an exception to raise) per call with ``respond``;
    every call's parameters land in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self._responses: dict[str, object] = {}
        self.checkout = SimpleNamespace(Session=_FakeStripeResource(self, "checkout.Session"))
        self.PaymentIntent = _FakeStripeResource(self, "PaymentIntent")

    def respond(self, call: str, result: object) -> None:
        self._responses[call] = result

    def _answer(self, call: str, params: dict):
        self.calls.append((call, params))
        result = self._responses[call]
        if isinstance(result, Exception):
            raise result
        return result


def sign_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """A ``Stripe-Signature`` header value for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


class RecordingNotificationSink(NotificationSink):

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self._fail = fail

    def notify_order_created(self, order: Order, recipient: str) -> None:
        if self._fail:
            raise NotificationError("mail server down")
        self.sent.append((order.order_number, recipient))


class ImmediateExecutor(Executor):
    """Runs submitted work inline so tests can assert on its effects."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class SequenceNumberGenerator(OrderNumberGenerator):
    """Hands out the given order numbers in order."""

    def __init__(self, numbers: list[str]) -> None:
        super().__init__()
        self._numbers = list(numbers)

    def generate(self) -> str:
        return self._numbers.pop(0)


def make_order(
    user_id: str = "user-1",
    order_number: str = "ATW-00000001-0001",
    lines: list[tuple[str, str, str, int]] | None = None,
    payment_method: PaymentMethod = PaymentMethod.CARD,
    shipping_method: ShippingMethod = ShippingMethod.STANDARD,
    now: datetime | None = None,
) -> Order:
    """Build a priced, unsaved order from (product_id, name, price, qty) lines."""
    items = [
        OrderLineItem(
            product_id=product_id,
            name=name,
            quantity=Quantity(qty),
            unit_price=Money.of(price),
        )
        for product_id, name, price, qty in lines or [("sku-1", "Widget", "100.00", 2)]
    ]
    price = quote(items, shipping_method)
    return Order.create(
        user_id=user_id,
        order_number=order_number,
        items=items,
        shipping_address=make_address(),
        shipping_method=shipping_method,
        payment_method=payment_method,
        subtotal=price.subtotal,
        shipping_cost=price.shipping_cost,
        tax=price.tax,
        discount=price.discount,
        total=price.total,
        now=now,
    )
