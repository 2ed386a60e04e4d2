from collections.abc import Callable

import pytest

from src.mp_common.enums import OrderStatus, RefundStatus
from src.mp_order.domain.invariants import verify_order_invariants
from src.mp_order.domain.models import Order, OrderItem, RefundRecord


class TestOrderInvariants:
    def test_passes_for_fresh_order(
        self, order_factory: Callable[..., Order], item_factory: Callable[..., OrderItem]
    ) -> None:
        order = order_factory(
            items=[item_factory("i1", "a"), item_factory("i2", "b", price=333, quantity=3)],
            tax=50,
            shipping_cost=25,
            discount=10,
        )
        verify_order_invariants(order)  # no exception

    def test_subtotal_drift_raises(self, order_factory: Callable[..., Order]) -> None:
        order = order_factory()
        order.items[0].price = 1200
        with pytest.raises(AssertionError, match="subtotal mismatch"):
            verify_order_invariants(order)

    def test_total_drift_raises(self, order_factory: Callable[..., Order]) -> None:
        order = order_factory()
        order.total += 1
        with pytest.raises(AssertionError, match="total mismatch"):
            verify_order_invariants(order)

    def test_item_missing_from_sub_orders_raises(
        self, order_factory: Callable[..., Order], item_factory: Callable[..., OrderItem]
    ) -> None:
        order = order_factory()
        order.items.append(item_factory("i9", price=0))
        with pytest.raises(AssertionError, match="items without a sub-order"):
            verify_order_invariants(order)

    def test_commission_drift_raises(self, order_factory: Callable[..., Order]) -> None:
        order = order_factory()
        order.sub_orders[0].commission = 0
        with pytest.raises(AssertionError, match="commission"):
            verify_order_invariants(order)

    def test_status_ahead_of_items_raises(self, order_factory: Callable[..., Order]) -> None:
        order = order_factory()
        order.status = OrderStatus.SHIPPED
        with pytest.raises(AssertionError, match="ahead of item status"):
            verify_order_invariants(order)

    def test_over_refund_raises(self, order_factory: Callable[..., Order], t0) -> None:
        order = order_factory()
        order.payment.refunds.append(
            RefundRecord(id="r", amount=order.total + 1, reason="x", status=RefundStatus.MANUAL, created_at=t0)
        )
        with pytest.raises(AssertionError, match="exceed total"):
            verify_order_invariants(order)
