"""CLI commands for payments."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    create_checkout_session_handler,
    payment_webhook_handler,
    verify_payment_handler,
)


@click.command("session")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--ref", "reference", required=True, help="Order number or order ID.")
@click.option("--email", default=None, help="Customer e-mail to prefill at checkout.")
def payment_session(user_id: str, reference: str, email: str | None) -> None:
    """Open a hosted checkout for an order."""
    handler = create_checkout_session_handler()

    try:
        dto = handler.handle(user_id, reference, email)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Checkout session {dto.session_id} for order {dto.order_number}")
    if dto.url:
        click.echo(dto.url)


@click.command("verify")
@click.option("--user", "user_id", required=True, help="Customer user ID.")
@click.option("--session-id", required=True, help="Checkout session or payment intent ID.")
def payment_verify(user_id: str, session_id: str) -> None:
    """Ask the gateway whether an order has been paid."""
    handler = verify_payment_handler()

    try:
        dto = handler.handle(user_id, session_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Gateway status: {dto.gateway_status}")
    if dto.order is not None:
        click.echo(
            f"Order {dto.order.order_number}: payment={dto.order.payment_status}, "
            f"status={dto.order.order_status}"
        )


@click.command("webhook")
@click.option("--payload", "payload_file", required=True, type=click.File("rb"), help="Raw event body ('-' for stdin).")
@click.option("--signature", required=True, help="Value of the Stripe-Signature header.")
def payment_webhook(payload_file, signature: str) -> None:
    """Process a signed gateway event."""
    handler = payment_webhook_handler()

    try:
        ack = handler.handle(payload_file.read(), signature)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if ack.order_number:
        state = "updated" if ack.changed else "unchanged"
        click.echo(f"Received {ack.event_type}: order {ack.order_number} {state}")
    else:
        click.echo(f"Received {ack.event_type}")
