"""Tests for the Order <-> JSON document mapping."""

import json
from collections.abc import Callable
from datetime import date, datetime, timedelta

from src.mp_common.enums import ActorRole, PaymentMethod, RefundStatus
from src.mp_order.domain.models import Order, OrderItem, ReturnLine, Tracking
from src.mp_order.infrastructure.documents import order_from_document, order_to_document


def test_delivered_order_with_return_survives_storage(
    order_factory: Callable[..., Order],
    item_factory: Callable[..., OrderItem],
    t0: datetime,
) -> None:
    order = order_factory(
        items=[item_factory("i1", "S1", price=1999, commission="7.5"), item_factory("i2", "S2")],
        tax=120,
        shipping_cost=499,
        discount=100,
    )
    order.record_authorization("txn-9", t0)
    order.confirm(t0)
    for seller in ("S1", "S2"):
        order.acknowledge(seller, t0)
        order.ship(
            seller,
            Tracking("DHL", f"JD-{seller}", estimated_delivery=date(2025, 1, 20)),
            t0 + timedelta(days=1),
        )
    order.add_tracking_update(["i1"], "in_transit", "Departed", t0 + timedelta(days=2), location="Leipzig")
    for seller in ("S1", "S2"):
        order.deliver(seller, t0 + timedelta(days=3))
    order.request_return("r1", [ReturnLine("i1", 1)], "scratched", t0 + timedelta(days=4))
    order.approve_return("r1", t0 + timedelta(days=5))
    order.receive_return("r1", t0 + timedelta(days=6))
    order.process_return("r1", t0 + timedelta(days=7))
    order.record_refund(
        "ref-1", 1999, "return", RefundStatus.SUCCEEDED, t0 + timedelta(days=7),
        gateway_refund_id="gw-1", return_id="r1",
    )

    document = json.loads(json.dumps(order_to_document(order)))

    assert document["items"][0]["commission_percent"] == "7.5"
    assert order_from_document(document) == order


def test_cancelled_cash_on_delivery_order(
    order_factory: Callable[..., Order], t0: datetime
) -> None:
    order = order_factory(payment_method=PaymentMethod.CASH_ON_DELIVERY)
    order.cancel("admin-1", ActorRole.ADMIN, "out of stock", t0)

    restored = order_from_document(order_to_document(order))

    assert restored == order
    assert restored.cancellation is not None
    assert restored.cancellation.actor_role is ActorRole.ADMIN
    assert restored.pull_events() == []
