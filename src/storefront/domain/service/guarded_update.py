"""Compare-and-swap writes for orders.

Every writer of an existing order (payment reconciliation, cancellation,
shipping) goes through ``apply_guarded``: load, let the aggregate decide
whether the change applies, then write back only if nobody else wrote in
between.  A lost race simply reloads and asks the aggregate again, which
usually turns the retry into a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from storefront.domain.exceptions import ConcurrentModificationError, OrderNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 5


@dataclass(frozen=True)
class UpdateResult:
    order: Order
    changed: bool


def apply_guarded(
    order_repo: OrderRepository,
    order_id: str,
    mutate: Callable[[Order], bool],
    max_attempts: int = MAX_ATTEMPTS,
) -> UpdateResult:
    """Apply ``mutate`` to the latest stored order and persist it atomically.

    ``mutate`` returns True when it changed the order.  Domain errors it
    raises propagate unchanged and nothing is written.
    """
    for attempt in range(1, max_attempts + 1):
        order = order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order '{order_id}' not found")

        expected_version = order.version
        if not mutate(order):
            return UpdateResult(order=order, changed=False)
        if order_repo.replace(order, expected_version):
            return UpdateResult(order=order, changed=True)

        logger.info(
            "order_update_conflict",
            order_number=order.order_number,
            attempt=attempt,
        )

    raise ConcurrentModificationError(
        f"Order '{order_id}' changed {max_attempts} times during update; giving up"
    )
