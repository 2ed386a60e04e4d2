"""Tests for mp_order.domain.state_machine: transition tables and status rules."""

import pytest

from src.mp_common.enums import OrderStatus, PaymentStatus, ReturnStatus
from src.mp_common.errors import InvalidTransitionError
from src.mp_order.domain import state_machine as sm

ALL = list(OrderStatus)


class TestOrderTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
            (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.DELIVERED, OrderStatus.RETURNED),
        ],
    )
    def test_allowed(self, current: OrderStatus, target: OrderStatus) -> None:
        assert sm.can_transition(current, target)
        sm.assert_transition(current, target)  # no exception

    def test_transition_law(self) -> None:
        allowed = {
            (c, t) for c, targets in sm.ORDER_TRANSITIONS.items() for t in targets
        }
        for current in ALL:
            for target in ALL:
                assert sm.can_transition(current, target) == ((current, target) in allowed)

    def test_terminal_states_have_no_exits(self) -> None:
        for status in sm.TERMINAL_STATUSES:
            for target in ALL:
                assert not sm.can_transition(status, target)

    def test_shipped_cannot_be_cancelled(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            sm.assert_transition(OrderStatus.SHIPPED, OrderStatus.CANCELLED)
        assert exc_info.value.current == "shipped"
        assert exc_info.value.requested == "cancelled"
        assert exc_info.value.http_status == 409

    def test_no_backward_step(self) -> None:
        assert not sm.can_transition(OrderStatus.DELIVERED, OrderStatus.SHIPPED)
        assert not sm.can_transition(OrderStatus.CONFIRMED, OrderStatus.PENDING)

    def test_processing_item_can_be_cancelled_with_its_order(self) -> None:
        sm.assert_item_transition(OrderStatus.PROCESSING, OrderStatus.CANCELLED, "item-1")
        assert not sm.can_transition(OrderStatus.PROCESSING, OrderStatus.CANCELLED)


class TestFlowHelpers:
    def test_next_status(self) -> None:
        assert sm.next_status(OrderStatus.PENDING) is OrderStatus.CONFIRMED
        assert sm.next_status(OrderStatus.DELIVERED) is None
        assert sm.next_status(OrderStatus.CANCELLED) is None

    def test_earliest_ignores_terminal(self) -> None:
        statuses = [OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.DELIVERED]
        assert sm.earliest_status(statuses) is OrderStatus.SHIPPED

    def test_earliest_all_terminal(self) -> None:
        assert sm.earliest_status([OrderStatus.CANCELLED, OrderStatus.RETURNED]) is None

    def test_aggregate_prefers_returned_over_cancelled(self) -> None:
        assert sm.aggregate_status([OrderStatus.CANCELLED, OrderStatus.RETURNED]) is OrderStatus.RETURNED
        assert sm.aggregate_status([OrderStatus.CANCELLED]) is OrderStatus.CANCELLED


class TestSubStateMachines:
    def test_return_flow(self) -> None:
        path = [
            ReturnStatus.REQUESTED,
            ReturnStatus.APPROVED,
            ReturnStatus.RECEIVED,
            ReturnStatus.PROCESSED,
            ReturnStatus.COMPLETED,
        ]
        for current, target in zip(path, path[1:]):
            sm.assert_return_transition(current, target)

    def test_return_cannot_skip_receipt(self) -> None:
        with pytest.raises(InvalidTransitionError, match="return request"):
            sm.assert_return_transition(ReturnStatus.APPROVED, ReturnStatus.PROCESSED)

    def test_rejected_is_terminal(self) -> None:
        with pytest.raises(InvalidTransitionError):
            sm.assert_return_transition(ReturnStatus.REJECTED, ReturnStatus.APPROVED)

    def test_failed_payment_may_be_retried(self) -> None:
        sm.assert_payment_transition(PaymentStatus.FAILED, PaymentStatus.AUTHORIZED)

    def test_refunded_payment_is_final(self) -> None:
        with pytest.raises(InvalidTransitionError, match="payment"):
            sm.assert_payment_transition(PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED)
