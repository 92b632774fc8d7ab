"""CLI commands for inventory management."""

from __future__ import annotations

import click

from storefront.application.set_inventory import SetInventoryHandler
from storefront.application.show_inventory import ShowInventoryHandler
from storefront.config import get_settings
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import inventory_repository


@click.command("set")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Units on hand.")
@click.option("--name", default=None, help="Product name (required for new products).")
@click.option("--price", default=None, help="List price, e.g. 15.00 (required for new products).")
@click.option("--sale-price", default=None, help="Sale price; pass '' to end a sale.")
def inventory_set(
    product_id: str,
    quantity: int,
    name: str | None,
    price: str | None,
    sale_price: str | None,
) -> None:
    """Set inventory level for a product."""
    handler = SetInventoryHandler(
        inventory_repo=inventory_repository(),
        currency=get_settings().CURRENCY,
    )

    try:
        handler.handle(product_id, quantity, name=name, price=price, sale_price=sale_price)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{product_id}' set to {quantity}")


@click.command("show")
def inventory_show() -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(inventory_repo=inventory_repository())
    lines = handler.handle()

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<16} {'Name':<24} {'Price':>10} {'On hand':>8} {'Available':>10}")
    click.echo("-" * 72)
    for line in lines:
        available = "yes" if line.available else "no"
        click.echo(
            f"{line.product_id:<16} {line.name:<24} {line.price:>10} {line.on_hand:>8} {available:>10}"
        )
