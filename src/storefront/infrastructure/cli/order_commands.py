"""CLI commands for the Order aggregate."""

from __future__ import annotations

import json

import click

from storefront.application.dto import CheckoutItemSpec, OrderDTO
from storefront.application.list_orders import ListOrdersHandler
from storefront.application.notifications import NotificationDispatcher
from storefront.application.ship_order import DeliverOrderHandler, ShipOrderHandler
from storefront.application.track_order import TrackOrderHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.value_objects import ShippingAddress
from storefront.infrastructure.bootstrap import (
    cancel_order_handler,
    create_order_handler,
    notification_sink,
    order_repository,
    show_order_handler,
)


def _parse_items(raw: str) -> list[CheckoutItemSpec]:
    """Parse 'sku-1:3,sku-2:1:red' into a CheckoutItemSpec list."""
    specs: list[CheckoutItemSpec] = []
    for entry in raw.split(","):
        entry = entry.strip()
        parts = entry.split(":")
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid item format '{entry}'. Expected 'ProductId:Quantity[:Variant]'."
            )
        product_id, qty_str = parts[0].strip(), parts[1].strip()
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        variant = parts[2].strip() if len(parts) == 3 else None
        specs.append(CheckoutItemSpec(product_id=product_id, quantity=qty, variant=variant or None))
    return specs


def _parse_address(raw: str) -> ShippingAddress:
    try:
        data = json.loads(raw)
    except ValueError:
        raise click.BadParameter("Address must be a JSON object.")
    if not isinstance(data, dict):
        raise click.BadParameter("Address must be a JSON object.")
    try:
        return ShippingAddress.from_dict(data)
    except DomainException as exc:
        raise click.BadParameter(str(exc))


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.order_status}, payment={dto.payment_status})")
    click.echo(f"Created:  {dto.created_at}")
    click.echo(f"Payment:  {dto.payment_method}")
    click.echo(f"Shipping: {dto.shipping_method}, estimated {dto.estimated_delivery}")
    if dto.tracking_number:
        click.echo(f"Tracking: {dto.tracking_number}")
    if dto.cancelled_at:
        click.echo(f"Cancelled {dto.cancelled_at}: {dto.cancellation_reason}")
    click.echo()

    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*51}")
    for item in dto.items:
        name = f"{item.name} ({item.variant})" if item.variant else item.name
        click.echo(
            f"  {name:<24} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*51}")
    click.echo(f"  {'Subtotal':<31} {dto.subtotal:>20}")
    click.echo(f"  {'Shipping':<31} {dto.shipping_cost:>20}")
    click.echo(f"  {'Tax':<31} {dto.tax:>20}")
    click.echo(f"  {'Order Total':<31} {dto.total:>20}")


@click.command("checkout")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--items", default=None, help="Items as 'ProductId:Qty[:Variant],...'.")
@click.option("--from-cart", is_flag=True, default=False, help="Check out the user's cart.")
@click.option("--address-json", required=True, help="Shipping address as a JSON object.")
@click.option("--shipping-method", default="Standard", show_default=True, help="Standard, Express or Overnight.")
@click.option("--payment-method", default="card", show_default=True, help="card, cod, stripe, paypal or credit_card.")
@click.option("--email", default=None, help="Where to send the order confirmation.")
@click.option("--coupon", default=None, help="Coupon code (recorded only).")
def order_checkout(
    user_id: str,
    items: str | None,
    from_cart: bool,
    address_json: str,
    shipping_method: str,
    payment_method: str,
    email: str | None,
    coupon: str | None,
) -> None:
    """Create an order from explicit items or the user's cart."""
    if bool(items) == from_cart:
        raise click.UsageError("Give exactly one of --items or --from-cart.")
    specs = _parse_items(items) if items else None
    address = _parse_address(address_json)

    notifications = NotificationDispatcher(notification_sink())
    handler = create_order_handler(notifications)
    try:
        dto = handler.handle(
            user_id=user_id,
            item_specs=specs,
            shipping_address=address,
            shipping_method=shipping_method,
            payment_method=payment_method,
            recipient=email,
            coupon_code=coupon,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    finally:
        notifications.close()

    click.echo(f"Order {dto.order_number} created")
    _display_order(dto)


@click.command("show")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--ref", "reference", required=True, help="Order number or order ID.")
def order_show(user_id: str, reference: str) -> None:
    """Show details of an existing order."""
    handler = show_order_handler()

    try:
        dto = handler.handle(user_id, reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=10, show_default=True, type=int)
def order_list(user_id: str, page: int, limit: int) -> None:
    """List a user's orders, newest first."""
    handler = ListOrdersHandler(order_repo=order_repository())

    try:
        result = handler.handle(user_id, page=page, limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'Order':<22} {'Status':<12} {'Payment':<10} {'Total':>10}  Created")
    click.echo("-" * 76)
    for dto in result.orders:
        click.echo(
            f"{dto.order_number:<22} {dto.order_status:<12} {dto.payment_status:<10} "
            f"{dto.total:>10}  {dto.created_at}"
        )
    click.echo(f"Page {result.page} of {result.pages} ({result.total} orders)")


@click.command("cancel")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--ref", "reference", required=True, help="Order number or order ID.")
@click.option("--reason", default=None, help="Why the order is cancelled.")
def order_cancel(user_id: str, reference: str, reason: str | None) -> None:
    """Cancel an order and put its stock back."""
    handler = cancel_order_handler()

    try:
        result = handler.handle(user_id, reference, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {result.order.order_number} cancelled.")
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)


@click.command("track")
@click.option("--tracking-number", required=True, help="Carrier tracking number.")
def order_track(tracking_number: str) -> None:
    """Look up a shipment by tracking number."""
    handler = TrackOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(tracking_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number}  (status={dto.order_status})")
    click.echo(f"Shipping: {dto.shipping_method}, estimated {dto.estimated_delivery}")
    if dto.delivered_at:
        click.echo(f"Delivered: {dto.delivered_at}")
    for name, quantity in dto.items:
        click.echo(f"  {quantity} x {name}")


@click.command("ship")
@click.option("--ref", "reference", required=True, help="Order number or order ID.")
@click.option("--tracking-number", required=True, help="Carrier tracking number.")
def order_ship(reference: str, tracking_number: str) -> None:
    """Mark a processing order as shipped."""
    handler = ShipOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(reference, tracking_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} shipped, tracking {dto.tracking_number}.")


@click.command("deliver")
@click.option("--ref", "reference", required=True, help="Order number or order ID.")
def order_deliver(reference: str) -> None:
    """Mark a shipped order as delivered."""
    handler = DeliverOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} delivered (payment={dto.payment_status}).")
