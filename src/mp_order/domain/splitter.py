"""Sub-order splitter and commission math.

Items are grouped by seller in the order sellers first appear. Commission is
rounded per item (half-up, whole cents) before summing, so each seller payout
can be audited line by line.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from src.mp_common.enums import OrderStatus, ReturnCommissionPolicy
from src.mp_common.money import percent_of
from src.mp_order.domain.state_machine import aggregate_status


class SellerLine(Protocol):
    id: str
    seller_id: str
    price: int
    quantity: int
    commission_percent: Decimal
    status: OrderStatus


@dataclass
class SubOrder:
    seller_id: str
    item_ids: list[str] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    total: int = 0
    commission: int = 0
    return_commission_policy: ReturnCommissionPolicy = ReturnCommissionPolicy.RETAIN
    refunded_amount: int = 0
    commission_reversed: int = 0

    @property
    def payout(self) -> int:
        """What the seller is owed after commission and return refunds."""
        return self.total - self.commission - self.refunded_amount + self.commission_reversed

    def record_return_refund(self, amount: int, commission: int) -> None:
        self.refunded_amount += amount
        if self.return_commission_policy is ReturnCommissionPolicy.REVERSE:
            self.commission_reversed += commission


def item_commission(price: int, quantity: int, commission_percent: Decimal) -> int:
    return percent_of(price * quantity, commission_percent)


def split_by_seller(
    items: Iterable[SellerLine],
    policy: ReturnCommissionPolicy = ReturnCommissionPolicy.RETAIN,
) -> list[SubOrder]:
    groups: dict[str, list[SellerLine]] = {}
    for item in items:
        groups.setdefault(item.seller_id, []).append(item)

    return [
        SubOrder(
            seller_id=seller_id,
            item_ids=[i.id for i in lines],
            status=aggregate_status(i.status for i in lines),
            total=sum(i.price * i.quantity for i in lines),
            commission=sum(
                item_commission(i.price, i.quantity, i.commission_percent) for i in lines
            ),
            return_commission_policy=policy,
        )
        for seller_id, lines in groups.items()
    ]
