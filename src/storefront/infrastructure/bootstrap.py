"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from pathlib import Path

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.create_checkout_session import CreateCheckoutSessionHandler
from storefront.application.create_order import CreateOrderHandler
from storefront.application.handle_payment_webhook import HandlePaymentWebhookHandler
from storefront.application.notifications import NotificationDispatcher
from storefront.application.show_order import ShowOrderHandler
from storefront.application.verify_payment import VerifyPaymentHandler
from storefront.config import get_settings
from storefront.domain.gateway.notification_sink import NotificationSink
from storefront.domain.service.order_number import OrderNumberGenerator
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)
from storefront.infrastructure.catalog.inventory_catalog_reader import InventoryCatalogReader
from storefront.infrastructure.gateway.stripe_gateway import StripeGateway
from storefront.infrastructure.notification.logging_sink import LoggingNotificationSink
from storefront.infrastructure.notification.resend_sink import ResendNotificationSink
from storefront.infrastructure.persistence.json_cart_repository import JsonCartRepository
from storefront.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from storefront.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)


def _data_dir() -> Path:
    return get_settings().DATA_DIR


# --- Repositories & adapters --------------------------------------------------


def inventory_repository() -> JsonInventoryRepository:
    return JsonInventoryRepository(_data_dir() / "inventory")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(_data_dir() / "orders.json")


def cart_repository() -> JsonCartRepository:
    return JsonCartRepository(_data_dir() / "carts.json")


def catalog_reader() -> InventoryCatalogReader:
    return InventoryCatalogReader(inventory_repository())


def payment_gateway() -> StripeGateway:
    settings = get_settings()
    return StripeGateway(
        secret_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        api_base=settings.STRIPE_API_BASE,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
        tolerance=settings.WEBHOOK_TOLERANCE_SECONDS,
    )


def notification_sink() -> NotificationSink:
    settings = get_settings()
    if not settings.RESEND_API_KEY:
        return LoggingNotificationSink()
    return ResendNotificationSink(
        api_key=settings.RESEND_API_KEY,
        sender=settings.EMAIL_FROM,
        api_base=settings.RESEND_API_BASE,
        timeout=settings.GATEWAY_TIMEOUT_SECONDS,
    )


# --- Handlers -----------------------------------------------------------------


def create_order_handler(notifications: NotificationDispatcher) -> CreateOrderHandler:
    settings = get_settings()
    inventory = inventory_repository()
    return CreateOrderHandler(
        order_repo=order_repository(),
        inventory_repo=inventory,
        catalog=InventoryCatalogReader(inventory),
        cart_repo=cart_repository(),
        notifications=notifications,
        number_generator=OrderNumberGenerator(prefix=settings.ORDER_NUMBER_PREFIX),
        tax_rate=settings.TAX_RATE,
        currency=settings.CURRENCY,
    )


def show_order_handler() -> ShowOrderHandler:
    orders = order_repository()
    return ShowOrderHandler(
        order_repo=orders,
        reconciliation=PaymentReconciliationService(orders, payment_gateway()),
    )


def cancel_order_handler() -> CancelOrderHandler:
    return CancelOrderHandler(
        order_repo=order_repository(),
        inventory_repo=inventory_repository(),
    )


def create_checkout_session_handler() -> CreateCheckoutSessionHandler:
    return CreateCheckoutSessionHandler(
        order_repo=order_repository(),
        gateway=payment_gateway(),
        frontend_url=get_settings().FRONTEND_URL,
    )


def verify_payment_handler() -> VerifyPaymentHandler:
    orders = order_repository()
    gateway = payment_gateway()
    return VerifyPaymentHandler(
        order_repo=orders,
        gateway=gateway,
        reconciliation=PaymentReconciliationService(orders, gateway),
    )


def payment_webhook_handler() -> HandlePaymentWebhookHandler:
    orders = order_repository()
    gateway = payment_gateway()
    return HandlePaymentWebhookHandler(
        order_repo=orders,
        gateway=gateway,
        reconciliation=PaymentReconciliationService(orders, gateway),
    )
