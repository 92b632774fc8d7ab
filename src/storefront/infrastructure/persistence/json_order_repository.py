"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from storefront.domain.exceptions import DuplicateIdentifierError
from storefront.domain.model.order import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingMethod,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.json_file import (
    ensure_file,
    exclusive_lock,
    read_json,
    write_json,
)


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        ensure_file(self._file_path, [])

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def get_by_id(self, order_id: str) -> Order | None:
        return self._find_one("id", order_id)

    def get_by_order_number(self, order_number: str) -> Order | None:
        return self._find_one("order_number", order_number)

    def get_by_payment_reference(self, reference: str) -> Order | None:
        return self._find_one("payment_reference", reference)

    def get_by_tracking_number(self, tracking_number: str) -> Order | None:
        return self._find_one("tracking_number", tracking_number)

    def list_for_user(self, user_id: str, offset: int = 0, limit: int | None = None) -> list[Order]:
        mine = [raw for raw in self._load_raw() if raw["user_id"] == user_id]
        mine.sort(key=lambda raw: raw["created_at"], reverse=True)
        end = None if limit is None else offset + limit
        return [self._to_domain(raw) for raw in mine[offset:end]]

    def count_for_user(self, user_id: str) -> int:
        return sum(1 for raw in self._load_raw() if raw["user_id"] == user_id)

    def add(self, order: Order) -> None:
        with exclusive_lock(self._file_path):
            orders = self._load_raw()
            if any(raw["order_number"] == order.order_number for raw in orders):
                raise DuplicateIdentifierError(
                    f"Order number {order.order_number} already exists"
                )
            if order.id is None:
                order.id = self.next_id()
            orders.append(self._to_raw(order))
            self._persist_raw(orders)

    def replace(self, order: Order, expected_version: int) -> bool:
        with exclusive_lock(self._file_path):
            orders = self._load_raw()
            index = next(
                (i for i, raw in enumerate(orders) if raw["id"] == order.id), None
            )
            if index is None or orders[index].get("version", 0) != expected_version:
                return False
            if order.tracking_number and any(
                raw["tracking_number"] == order.tracking_number and raw["id"] != order.id
                for raw in orders
            ):
                raise DuplicateIdentifierError(
                    f"Tracking number {order.tracking_number} is already in use"
                )
            order.version = expected_version + 1
            orders[index] = self._to_raw(order)
            self._persist_raw(orders)
        return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "variant": item.variant,
                }
                for item in order.items
            ],
            "shipping_address": order.shipping_address.to_dict(),
            "shipping_method": order.shipping_method.value,
            "currency": order.total.currency,
            "subtotal": str(order.subtotal.amount),
            "shipping_cost": str(order.shipping_cost.amount),
            "tax": str(order.tax.amount),
            "discount": str(order.discount.amount),
            "total": str(order.total.amount),
            "coupon_code": order.coupon_code,
            "payment_method": order.payment_method.value,
            "payment_status": order.payment_status.value,
            "order_status": order.order_status.value,
            "payment_reference": order.payment_reference,
            "tracking_number": order.tracking_number,
            "estimated_delivery": order.estimated_delivery.isoformat() if order.estimated_delivery else None,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "delivered_at": _iso(order.delivered_at),
            "cancelled_at": _iso(order.cancelled_at),
            "cancellation_reason": order.cancellation_reason,
            "version": order.version,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", "USD")

        def money(key: str) -> Money:
            return Money(Decimal(raw[key]), currency)

        items = tuple(
            OrderLineItem(
                product_id=i["product_id"],
                name=i["name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), currency),
                variant=i.get("variant"),
            )
            for i in raw["items"]
        )
        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            user_id=raw["user_id"],
            items=items,
            shipping_address=ShippingAddress(**raw["shipping_address"]),
            shipping_method=ShippingMethod(raw["shipping_method"]),
            subtotal=money("subtotal"),
            shipping_cost=money("shipping_cost"),
            tax=money("tax"),
            discount=money("discount"),
            total=money("total"),
            coupon_code=raw.get("coupon_code"),
            payment_method=PaymentMethod(raw["payment_method"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            order_status=OrderStatus(raw["order_status"]),
            payment_reference=raw.get("payment_reference"),
            tracking_number=raw.get("tracking_number"),
            estimated_delivery=date.fromisoformat(raw["estimated_delivery"]) if raw.get("estimated_delivery") else None,
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            delivered_at=_parse_dt(raw.get("delivered_at")),
            cancelled_at=_parse_dt(raw.get("cancelled_at")),
            cancellation_reason=raw.get("cancellation_reason"),
            version=raw.get("version", 0),
        )

    # --- File helpers ---------------------------------------------------------

    def _find_one(self, key: str, value: str) -> Order | None:
        if not value:
            return None
        for raw in self._load_raw():
            if raw.get(key) == value:
                return self._to_domain(raw)
        return None

    def _load_raw(self) -> list[dict]:
        return read_json(self._file_path, [])

    def _persist_raw(self, orders: list[dict]) -> None:
        write_json(self._file_path, orders)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
