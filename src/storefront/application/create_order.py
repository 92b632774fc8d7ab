"""Application service: Create Order use case (checkout).

Orchestrates the flow between the catalog, the inventory ledger, pricing
and the order ledger.  This is the only place that coordinates multiple
aggregates (stock entries + the new Order + the customer's cart).

Stock is taken *before* the order is written.  If the write fails for a
reason other than an order-number collision, the reservation is handed
back so a failed checkout never strands stock.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal

import structlog

from storefront.application.dto import CheckoutItemSpec, OrderDTO, to_order_dto
from storefront.application.notifications import NotificationDispatcher
from storefront.domain.exceptions import (
    DomainException,
    DuplicateIdentifierError,
    InsufficientStockError,
    ProductNotFoundError,
    ValidationError,
)
from storefront.domain.model.order import (
    Order,
    OrderLineItem,
    PaymentMethod,
    ShippingMethod,
)
from storefront.domain.model.value_objects import Quantity, ShippingAddress
from storefront.domain.repository.cart_repository import CartRepository
from storefront.domain.repository.catalog_reader import CatalogSnapshotReader
from storefront.domain.repository.inventory_repository import InventoryRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from storefront.domain.service.order_number import OrderNumberGenerator
from storefront.domain.service.pricing import DEFAULT_TAX_RATE, quote

logger = structlog.get_logger(__name__)

MAX_NUMBER_ATTEMPTS = 5


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        inventory_repo: InventoryRepository,
        catalog: CatalogSnapshotReader,
        cart_repo: CartRepository,
        notifications: NotificationDispatcher,
        number_generator: OrderNumberGenerator | None = None,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        currency: str = "USD",
    ) -> None:
        self._order_repo = order_repo
        self._reservations = InventoryReservationService(inventory_repo)
        self._catalog = catalog
        self._cart_repo = cart_repo
        self._notifications = notifications
        self._numbers = number_generator or OrderNumberGenerator()
        self._tax_rate = tax_rate
        self._currency = currency

    def handle(
        self,
        user_id: str,
        item_specs: list[CheckoutItemSpec] | None,
        shipping_address: ShippingAddress,
        shipping_method: str | None = None,
        payment_method: str | None = None,
        recipient: str | None = None,
        coupon_code: str | None = None,
    ) -> OrderDTO:
        """Turn the requested items into a committed order.

        Steps:
        1. Read every product once (bulk) and check existence and stock.
        2. Build OrderLineItems with *current* effective prices (snapshot).
        3. Reserve stock for all lines, all-or-nothing.
        4. Price the order and insert it under a fresh order number,
           retrying on number collisions.
        5. Empty the cart and queue the confirmation e-mail.

        When ``item_specs`` is None the user's cart is checked out.
        """
        if not user_id:
            raise ValidationError("User is required")
        if item_specs is None:
            item_specs = self._specs_from_cart(user_id)
        if not item_specs:
            raise ValidationError("No order items provided")

        method = ShippingMethod.parse(shipping_method)
        payment = PaymentMethod.parse(payment_method)
        lines = self._snapshot_lines(item_specs)

        self._reservations.reserve_for_order(lines)
        reserved = [(line.product_id, line.quantity.value) for line in lines]
        try:
            price = quote(lines, method, tax_rate=self._tax_rate, currency=self._currency)
            order = Order.create(
                user_id=user_id,
                order_number=self._numbers.generate(),
                items=lines,
                shipping_address=shipping_address,
                shipping_method=method,
                payment_method=payment,
                subtotal=price.subtotal,
                shipping_cost=price.shipping_cost,
                tax=price.tax,
                discount=price.discount,
                total=price.total,
                coupon_code=(coupon_code or "").strip() or None,
            )
            self._insert(order)
        except Exception:
            failures = self._reservations.release(reserved)
            logger.warning(
                "checkout_rolled_back",
                user_id=user_id,
                lines=len(reserved),
                restore_failures=len(failures),
            )
            raise

        logger.info(
            "order_created",
            order_number=order.order_number,
            user_id=user_id,
            total=str(order.total),
            payment_method=payment.value,
        )

        self._empty_cart(user_id)
        self._notifications.order_created(order, recipient)
        return to_order_dto(order)

    # --- Steps ----------------------------------------------------------------

    def _specs_from_cart(self, user_id: str) -> list[CheckoutItemSpec]:
        cart = self._cart_repo.get_for_user(user_id)
        return [
            CheckoutItemSpec(
                product_id=item.product_id,
                quantity=item.quantity.value,
                variant=item.variant,
            )
            for item in cart.items
        ]

    def _snapshot_lines(self, item_specs: list[CheckoutItemSpec]) -> list[OrderLineItem]:
        quantities = [Quantity(spec.quantity) for spec in item_specs]
        products = self._catalog.get_many({spec.product_id for spec in item_specs})

        # Same product on several lines (different variants) draws on one stock entry.
        wanted: Counter[str] = Counter()
        for spec, qty in zip(item_specs, quantities):
            wanted[spec.product_id] += qty.value

        for product_id, total in wanted.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFoundError(f"Product not found: '{product_id}'")
            if not product.can_supply(total):
                raise InsufficientStockError(
                    f"{product.name} is not available in requested quantity"
                )

        return [
            OrderLineItem(
                product_id=spec.product_id,
                name=products[spec.product_id].name,
                quantity=qty,
                unit_price=products[spec.product_id].effective_price,  # <-- price snapshot
                variant=spec.variant,
            )
            for spec, qty in zip(item_specs, quantities)
        ]

    def _insert(self, order: Order) -> None:
        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            try:
                self._order_repo.add(order)
                return
            except DuplicateIdentifierError:
                logger.info(
                    "order_number_collision",
                    order_number=order.order_number,
                    attempt=attempt,
                )
                if attempt == MAX_NUMBER_ATTEMPTS:
                    raise
                order.order_number = self._numbers.generate()

    def _empty_cart(self, user_id: str) -> None:
        # The order is committed; a cart that fails to clear only leaves
        # stale items for the customer to remove.
        try:
            self._cart_repo.clear(user_id)
        except (DomainException, OSError):
            logger.warning("cart_clear_failed", user_id=user_id, exc_info=True)
