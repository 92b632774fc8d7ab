"""CLI commands for the Cart."""

from __future__ import annotations

import click

from storefront.application.dto import CartDTO
from storefront.application.manage_cart import (
    AddToCartHandler,
    ClearCartHandler,
    RemoveFromCartHandler,
    ShowCartHandler,
)
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import cart_repository, catalog_reader


def _display_cart(dto: CartDTO) -> None:
    if not dto.items:
        click.echo("Cart is empty.")
        return
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*51}")
    for item in dto.items:
        label = f"{item.product_id} ({item.variant})" if item.variant else item.product_id
        click.echo(f"  {label:<24} {item.quantity:>5} {item.price:>10} {item.line_total:>10}")
    click.echo(f"  {'-'*51}")
    click.echo(f"  {dto.item_count} item(s), subtotal {dto.subtotal}")


@click.command("add")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", default=1, show_default=True, type=int)
@click.option("--variant", default=None, help="Size, colour, ...")
def cart_add(user_id: str, product_id: str, quantity: int, variant: str | None) -> None:
    """Add a product to the cart."""
    handler = AddToCartHandler(cart_repo=cart_repository(), catalog=catalog_reader())

    try:
        dto = handler.handle(user_id, product_id, quantity, variant)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)


@click.command("remove")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", default=None)
def cart_remove(user_id: str, product_id: str, variant: str | None) -> None:
    """Remove a product line from the cart."""
    handler = RemoveFromCartHandler(cart_repo=cart_repository())

    try:
        dto = handler.handle(user_id, product_id, variant)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_cart(dto)


@click.command("show")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
def cart_show(user_id: str) -> None:
    """Show the cart."""
    _display_cart(ShowCartHandler(cart_repo=cart_repository()).handle(user_id))


@click.command("clear")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
def cart_clear(user_id: str) -> None:
    """Empty the cart."""
    ClearCartHandler(cart_repo=cart_repository()).handle(user_id)
    click.echo("Cart cleared.")
