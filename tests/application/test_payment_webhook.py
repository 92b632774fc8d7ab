"""Integration tests for webhook-driven payment reconciliation."""

import json

import pytest

from storefront.application.handle_payment_webhook import HandlePaymentWebhookHandler
from storefront.domain.exceptions import SignatureInvalidError
from storefront.domain.model.order import OrderStatus, PaymentStatus
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)
from tests.fakes import VALID_SIGNATURE, FakeOrderRepository, FakePaymentGateway, make_order


def _setup():
    orders = FakeOrderRepository()
    gateway = FakePaymentGateway()
    order = make_order()
    order.payment_reference = "cs_1"
    orders.add(order)
    handler = HandlePaymentWebhookHandler(orders, gateway, PaymentReconciliationService(orders, gateway))
    return handler, orders, order


def _event(event_type: str, obj: dict, event_id: str = "evt_1") -> bytes:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}}).encode()


def _session_completed(order_id, payment_status="paid", **extra) -> bytes:
    obj = {
        "id": "cs_1",
        "payment_status": payment_status,
        "payment_intent": "pi_1",
        "metadata": {"orderId": order_id} if order_id else {},
    }
    obj.update(extra)
    return _event("checkout.session.completed", obj)


class TestSignature:

    def test_bad_signature_rejected_without_changes(self):
        handler, orders, order = _setup()

        with pytest.raises(SignatureInvalidError):
            handler.handle(_session_completed(order.id), "t=1,v1=forged")

        stored = orders.get_by_id(order.id)
        assert stored.payment_status is PaymentStatus.PENDING
        assert stored.version == 0

    def test_missing_signature_rejected(self):
        handler, _, order = _setup()
        with pytest.raises(SignatureInvalidError):
            handler.handle(_session_completed(order.id), None)


class TestCheckoutSessionEvents:

    def test_completed_session_marks_paid(self):
        handler, orders, order = _setup()

        ack = handler.handle(_session_completed(order.id), VALID_SIGNATURE)

        stored = orders.get_by_id(order.id)
        assert ack.received and ack.changed
        assert ack.order_number == order.order_number
        assert stored.payment_status is PaymentStatus.COMPLETED
        assert stored.order_status is OrderStatus.PROCESSING
        assert stored.payment_reference == "pi_1"

    def test_redelivery_is_a_noop(self):
        handler, orders, order = _setup()
        handler.handle(_session_completed(order.id), VALID_SIGNATURE)
        after_first = orders.get_by_id(order.id)

        ack = handler.handle(_session_completed(order.id), VALID_SIGNATURE)

        assert ack.received
        assert not ack.changed
        assert orders.get_by_id(order.id) == after_first

    def test_client_reference_id_fallback(self):
        handler, orders, order = _setup()
        handler.handle(_session_completed(None, client_reference_id=order.id), VALID_SIGNATURE)
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.COMPLETED

    def test_stored_session_id_fallback(self):
        handler, orders, order = _setup()
        handler.handle(_session_completed(None), VALID_SIGNATURE)
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.COMPLETED

    def test_unpaid_completion_waits_for_async_result(self):
        handler, orders, order = _setup()

        ack = handler.handle(_session_completed(order.id, payment_status="unpaid"), VALID_SIGNATURE)

        assert ack.received and not ack.changed
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.PENDING

        handler.handle(
            _event("checkout.session.async_payment_succeeded", {
                "id": "cs_1", "payment_intent": "pi_1", "metadata": {"orderId": order.id},
            }),
            VALID_SIGNATURE,
        )
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.COMPLETED

    def test_async_failure_marks_failed(self):
        handler, orders, order = _setup()
        handler.handle(
            _event("checkout.session.async_payment_failed", {"id": "cs_1", "metadata": {"orderId": order.id}}),
            VALID_SIGNATURE,
        )
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.FAILED


class TestPaymentIntentEvents:

    def test_failure_after_success_never_regresses(self):
        handler, orders, order = _setup()
        handler.handle(_session_completed(order.id), VALID_SIGNATURE)

        ack = handler.handle(
            _event("payment_intent.payment_failed", {"id": "pi_1", "metadata": {"orderId": order.id}}, "evt_2"),
            VALID_SIGNATURE,
        )

        assert not ack.changed
        stored = orders.get_by_id(order.id)
        assert stored.payment_status is PaymentStatus.COMPLETED
        assert stored.order_status is OrderStatus.PROCESSING

    def test_success_after_failure_recovers(self):
        handler, orders, order = _setup()
        handler.handle(
            _event("payment_intent.payment_failed", {"id": "pi_1", "metadata": {"orderId": order.id}}),
            VALID_SIGNATURE,
        )
        assert orders.get_by_id(order.id).payment_status is PaymentStatus.FAILED

        handler.handle(
            _event("payment_intent.succeeded", {"id": "pi_1", "metadata": {"orderId": order.id}}, "evt_2"),
            VALID_SIGNATURE,
        )
        stored = orders.get_by_id(order.id)
        assert stored.payment_status is PaymentStatus.COMPLETED
        assert stored.order_status is OrderStatus.PROCESSING

    def test_intent_located_by_payment_reference(self):
        handler, orders, order = _setup()
        stored = orders.get_by_id(order.id)
        stored.payment_reference = "pi_5"
        orders.replace(stored, stored.version)

        handler.handle(_event("payment_intent.succeeded", {"id": "pi_5", "metadata": {}}), VALID_SIGNATURE)

        assert orders.get_by_id(order.id).payment_status is PaymentStatus.COMPLETED

    def test_paid_after_cancel_keeps_order_cancelled(self):
        handler, orders, order = _setup()
        stored = orders.get_by_id(order.id)
        stored.cancel()
        orders.replace(stored, stored.version)

        handler.handle(_session_completed(order.id), VALID_SIGNATURE)

        stored = orders.get_by_id(order.id)
        assert stored.payment_status is PaymentStatus.COMPLETED
        assert stored.order_status is OrderStatus.CANCELLED


class TestUnhandledEvents:

    def test_unknown_event_type_acknowledged(self):
        handler, orders, order = _setup()
        ack = handler.handle(_event("customer.created", {"id": "cus_1"}), VALID_SIGNATURE)
        assert ack.received
        assert ack.order_number is None
        assert orders.get_by_id(order.id).version == 0

    def test_unknown_order_acknowledged(self):
        handler, _, _ = _setup()
        ack = handler.handle(
            _event("payment_intent.succeeded", {"id": "pi_404", "metadata": {"orderId": "missing"}}),
            VALID_SIGNATURE,
        )
        assert ack.received
        assert ack.order_number is None
