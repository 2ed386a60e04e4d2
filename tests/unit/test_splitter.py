"""Tests for mp_order.domain.splitter: sub-orders and commission math."""

from collections.abc import Callable
from decimal import Decimal

from src.mp_common.enums import OrderStatus, ReturnCommissionPolicy
from src.mp_order.domain.models import OrderItem
from src.mp_order.domain.splitter import SubOrder, item_commission, split_by_seller


class TestItemCommission:
    def test_rounds_half_up_per_item(self) -> None:
        # 333 * 7.5% = 24.975 -> 25
        assert item_commission(333, 1, Decimal("7.5")) == 25

    def test_exact_half_cent_rounds_up(self) -> None:
        # 1 * 50% = 0.5 -> 1
        assert item_commission(1, 1, Decimal("50")) == 1

    def test_zero_rate(self) -> None:
        assert item_commission(999, 4, Decimal("0")) == 0


class TestSplitBySeller:
    def test_two_sellers_scenario(self, item_factory: Callable[..., OrderItem]) -> None:
        items = [
            item_factory("i1", "seller-a", price=1000, quantity=2, commission="10"),
            item_factory("i2", "seller-b", price=500, quantity=1, commission="5"),
        ]
        subs = split_by_seller(items)
        assert [s.seller_id for s in subs] == ["seller-a", "seller-b"]
        assert (subs[0].total, subs[0].commission, subs[0].payout) == (2000, 200, 1800)
        assert (subs[1].total, subs[1].commission, subs[1].payout) == (500, 25, 475)

    def test_first_appearance_order_and_grouping(
        self, item_factory: Callable[..., OrderItem]
    ) -> None:
        items = [
            item_factory("i1", "seller-b"),
            item_factory("i2", "seller-a"),
            item_factory("i3", "seller-b"),
        ]
        subs = split_by_seller(items)
        assert [s.seller_id for s in subs] == ["seller-b", "seller-a"]
        assert subs[0].item_ids == ["i1", "i3"]

    def test_commission_summed_after_per_item_rounding(
        self, item_factory: Callable[..., OrderItem]
    ) -> None:
        items = [
            item_factory("i1", "s", price=333, commission="7.5"),
            item_factory("i2", "s", price=333, commission="7.5"),
        ]
        # 24.975 + 24.975 would round to 50 as a sum; per item it is 25 + 25.
        assert split_by_seller(items)[0].commission == 50
        items[1].price = 1
        assert split_by_seller(items)[0].commission == 25

    def test_idempotent(self, item_factory: Callable[..., OrderItem]) -> None:
        items = [item_factory("i1", "a"), item_factory("i2", "b", price=77, quantity=3)]
        assert split_by_seller(items) == split_by_seller(items)

    def test_status_from_items(self, item_factory: Callable[..., OrderItem]) -> None:
        first = item_factory("i1", "a")
        second = item_factory("i2", "a")
        first.status = OrderStatus.SHIPPED
        second.status = OrderStatus.CANCELLED
        assert split_by_seller([first, second])[0].status is OrderStatus.SHIPPED

    def test_policy_carried_to_sub_orders(self, item_factory: Callable[..., OrderItem]) -> None:
        subs = split_by_seller([item_factory()], ReturnCommissionPolicy.REVERSE)
        assert subs[0].return_commission_policy is ReturnCommissionPolicy.REVERSE


class TestReturnRefundBookkeeping:
    def test_retain_keeps_commission(self) -> None:
        sub = SubOrder(seller_id="a", item_ids=["i1"], total=2000, commission=200)
        sub.record_return_refund(1000, 100)
        assert sub.refunded_amount == 1000
        assert sub.commission_reversed == 0
        assert sub.payout == 2000 - 200 - 1000

    def test_reverse_credits_commission_back(self) -> None:
        sub = SubOrder(
            seller_id="a",
            item_ids=["i1"],
            total=2000,
            commission=200,
            return_commission_policy=ReturnCommissionPolicy.REVERSE,
        )
        sub.record_return_refund(1000, 100)
        assert sub.commission_reversed == 100
        assert sub.payout == 2000 - 200 - 1000 + 100
