import click

from storefront.config import get_settings
from storefront.infrastructure.cli.cart_commands import cart_add, cart_clear, cart_remove, cart_show
from storefront.infrastructure.cli.inventory_commands import inventory_set, inventory_show
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_checkout,
    order_deliver,
    order_list,
    order_ship,
    order_show,
    order_track,
)
from storefront.infrastructure.cli.payment_commands import (
    payment_session,
    payment_verify,
    payment_webhook,
)
from storefront.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """Storefront — checkout, orders and payment reconciliation"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def payment() -> None:
    """Payment sessions and confirmations."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def cart() -> None:
    """Manage a customer's cart."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_checkout)
order.add_command(order_deliver)
order.add_command(order_list)
order.add_command(order_ship)
order.add_command(order_show)
order.add_command(order_track)
payment.add_command(payment_session)
payment.add_command(payment_verify)
payment.add_command(payment_webhook)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
cart.add_command(cart_add)
cart.add_command(cart_remove)
cart.add_command(cart_show)
cart.add_command(cart_clear)
