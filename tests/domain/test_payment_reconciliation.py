"""Unit tests for payment reconciliation and guarded order writes."""

import threading

import pytest

from storefront.domain.exceptions import (
    ConcurrentModificationError,
    GatewayUnavailableError,
    OrderNotFoundError,
)
from storefront.domain.gateway.payment_gateway import GatewayPayment
from storefront.domain.model.order import OrderStatus, PaymentStatus
from storefront.domain.service.guarded_update import apply_guarded
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
)
from tests.fakes import FakeOrderRepository, FakePaymentGateway, make_order


class ConflictingOrderRepository(FakeOrderRepository):
    """Reports a lost race for the first ``conflicts`` writes."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts

    def replace(self, order, expected_version):
        if self.conflicts > 0:
            self.conflicts -= 1
            return False
        return super().replace(order, expected_version)


def _saved_order(repo, **kwargs):
    order = make_order(**kwargs)
    repo.add(order)
    return order


class TestApplyGuarded:

    def test_retries_after_conflict(self):
        repo = ConflictingOrderRepository(conflicts=2)
        order = _saved_order(repo)

        result = apply_guarded(repo, order.id, lambda o: o.mark_paid("pi_1"))

        assert result.changed
        assert repo.get_by_id(order.id).version == 1

    def test_gives_up_after_budget(self):
        repo = ConflictingOrderRepository(conflicts=10)
        order = _saved_order(repo)

        with pytest.raises(ConcurrentModificationError):
            apply_guarded(repo, order.id, lambda o: o.mark_paid("pi_1"), max_attempts=3)
        assert repo.get_by_id(order.id).payment_status is PaymentStatus.PENDING

    def test_noop_mutation_does_not_write(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)

        result = apply_guarded(repo, order.id, lambda o: False)

        assert not result.changed
        assert repo.get_by_id(order.id).version == 0

    def test_missing_order(self):
        with pytest.raises(OrderNotFoundError):
            apply_guarded(FakeOrderRepository(), "nope", lambda o: True)


class TestMarkPaid:

    def test_first_signal_completes(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)

        result = PaymentReconciliationService(repo).mark_paid(order.id, "pi_1")

        stored = repo.get_by_id(order.id)
        assert result.changed
        assert stored.payment_status is PaymentStatus.COMPLETED
        assert stored.order_status is OrderStatus.PROCESSING
        assert stored.payment_reference == "pi_1"

    def test_duplicate_signal_is_noop(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        svc = PaymentReconciliationService(repo)
        svc.mark_paid(order.id, "pi_1")
        before = repo.get_by_id(order.id)

        result = svc.mark_paid(order.id, "pi_1")

        assert not result.changed
        assert repo.get_by_id(order.id) == before

    def test_failure_after_success_is_ignored(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        svc = PaymentReconciliationService(repo)
        svc.mark_paid(order.id, "pi_1")

        result = svc.mark_failed(order.id)

        assert not result.changed
        assert repo.get_by_id(order.id).payment_status is PaymentStatus.COMPLETED

    def test_racing_signals_complete_exactly_once(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        svc = PaymentReconciliationService(repo)
        barrier = threading.Barrier(8)
        outcomes = []

        def signal():
            barrier.wait()
            outcomes.append(svc.mark_paid(order.id, "pi_1").changed)

        threads = [threading.Thread(target=signal) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(True) == 1
        assert repo.get_by_id(order.id).version == 1


class TestGatewayReconciliation:

    def test_apply_paid_session_by_metadata(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        payment = GatewayPayment("cs_1", "paid", True, payment_reference="pi_9", order_id=order.id)

        result = PaymentReconciliationService(repo).apply_gateway_payment(payment)

        assert result.changed
        assert repo.get_by_id(order.id).payment_reference == "pi_9"

    def test_apply_falls_back_to_stored_reference(self):
        repo = FakeOrderRepository()
        order = make_order()
        order.payment_reference = "cs_1"
        repo.add(order)
        payment = GatewayPayment("cs_1", "paid", True)

        result = PaymentReconciliationService(repo).apply_gateway_payment(payment)

        assert result.changed
        assert repo.get_by_id(order.id).payment_reference == "cs_1"

    def test_unpaid_leaves_order_alone(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        payment = GatewayPayment("cs_1", "unpaid", False, order_id=order.id)

        result = PaymentReconciliationService(repo).apply_gateway_payment(payment)

        assert not result.changed
        assert repo.get_by_id(order.id).payment_status is PaymentStatus.PENDING

    def test_unknown_order(self):
        with pytest.raises(OrderNotFoundError):
            PaymentReconciliationService(FakeOrderRepository()).apply_gateway_payment(
                GatewayPayment("cs_404", "paid", True)
            )

    def test_refresh_upgrades_session_to_intent(self):
        repo = FakeOrderRepository()
        order = make_order()
        order.payment_reference = "cs_1"
        repo.add(order)
        gateway = FakePaymentGateway()
        gateway.set_payment(GatewayPayment("cs_1", "paid", True, payment_reference="pi_1", order_id=order.id))

        result = PaymentReconciliationService(repo, gateway).refresh_from_gateway(order)

        assert result.changed
        assert result.order.payment_reference == "pi_1"

    def test_refresh_without_reference_skips_gateway(self):
        repo = FakeOrderRepository()
        order = _saved_order(repo)
        gateway = FakePaymentGateway()

        result = PaymentReconciliationService(repo, gateway).refresh_from_gateway(order)

        assert not result.changed
        assert gateway.retrieve_calls == []

    def test_refresh_propagates_gateway_outage(self):
        repo = FakeOrderRepository()
        order = make_order()
        order.payment_reference = "cs_1"
        repo.add(order)
        gateway = FakePaymentGateway()
        gateway.unavailable = True

        with pytest.raises(GatewayUnavailableError):
            PaymentReconciliationService(repo, gateway).refresh_from_gateway(order)
        assert repo.get_by_id(order.id).payment_status is PaymentStatus.PENDING
