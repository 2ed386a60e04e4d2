"""Order invariant verification before each write."""

import logging

from src.mp_order.domain import state_machine as sm
from src.mp_order.domain.models import Order
from src.mp_order.domain.splitter import item_commission

logger = logging.getLogger(__name__)


def verify_order_invariants(order: Order) -> None:
    """Verify the order's money and sub-order bookkeeping. Raises AssertionError if violated.

    - subtotal == sum(price * quantity) and total == subtotal + tax + shipping - discount
    - every seller's items belong to exactly one sub-order, whose total and
      commission reconcile with those items
    - the order status is never ahead of the earliest active item status
    - cumulative successful refunds, plus refunds still owed on returns,
      never exceed the order total
    """
    items_subtotal = sum(i.price * i.quantity for i in order.items)
    assert order.subtotal == items_subtotal, (
        f"subtotal mismatch: subtotal={order.subtotal} != items={items_subtotal}"
    )
    expected_total = order.subtotal + order.tax + order.shipping_cost - order.discount
    assert order.total == expected_total, (
        f"total mismatch: total={order.total} != "
        f"{order.subtotal} + {order.tax} + {order.shipping_cost} - {order.discount}"
    )
    assert order.total >= 0, f"negative total: {order.total}"

    seen: set[str] = set()
    for sub_order in order.sub_orders:
        items = [order.get_item(item_id) for item_id in sub_order.item_ids]
        assert all(i.seller_id == sub_order.seller_id for i in items), (
            f"sub-order {sub_order.seller_id} holds another seller's item"
        )
        assert not seen.intersection(sub_order.item_ids), (
            f"item assigned to more than one sub-order: {seen.intersection(sub_order.item_ids)}"
        )
        seen.update(sub_order.item_ids)
        sub_total = sum(i.price * i.quantity for i in items)
        assert sub_order.total == sub_total, (
            f"sub-order {sub_order.seller_id} total={sub_order.total} != items={sub_total}"
        )
        commission = sum(item_commission(i.price, i.quantity, i.commission_percent) for i in items)
        assert sub_order.commission == commission, (
            f"sub-order {sub_order.seller_id} commission={sub_order.commission} != {commission}"
        )
    all_ids = {i.id for i in order.items}
    assert seen == all_ids, f"items without a sub-order: {sorted(all_ids - seen)}"

    earliest = sm.earliest_status(i.status for i in order.items)
    if earliest is not None and sm.is_active(order.status):
        assert sm.rank(order.status) <= sm.rank(earliest), (
            f"order status {order.status.value} ahead of item status {earliest.value}"
        )

    assert order.payment.refunded_total <= order.total, (
        f"refunds {order.payment.refunded_total} exceed total {order.total}"
    )
    assert order.payment.refunded_total + order.outstanding_return_refunds <= order.total, (
        f"refunds {order.payment.refunded_total} plus owed {order.outstanding_return_refunds} "
        f"exceed total {order.total}"
    )

    logger.debug(
        "Invariants OK: order=%s, total=%d, sub_orders=%d",
        order.order_number,
        order.total,
        len(order.sub_orders),
    )
