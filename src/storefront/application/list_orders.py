"""Application service: List Orders use case (query)."""

from __future__ import annotations

import math

from storefront.application.dto import OrderPageDTO, to_order_dto
from storefront.domain.exceptions import ValidationError
from storefront.domain.repository.order_repository import OrderRepository

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, user_id: str, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> OrderPageDTO:
        """Return one page of the user's orders, newest first."""
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")

        total = self._order_repo.count_for_user(user_id)
        orders = self._order_repo.list_for_user(user_id, offset=(page - 1) * limit, limit=limit)
        return OrderPageDTO(
            orders=[to_order_dto(order) for order in orders],
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        )
