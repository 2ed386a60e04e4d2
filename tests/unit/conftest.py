"""Shared builders for order-engine unit tests."""

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest

from src.mp_common.enums import PaymentMethod, ReturnCommissionPolicy
from src.mp_order.domain.models import Address, Order, OrderItem

T0 = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


def make_address(**overrides: Any) -> Address:
    fields = {
        "recipient_name": "Ada Buyer",
        "street": "1 Market St",
        "city": "Springfield",
        "state": "IL",
        "country": "US",
        "postal_code": "62701",
        "phone": None,
    }
    fields.update(overrides)
    return Address(**fields)


def make_item(
    item_id: str = "item-1",
    seller_id: str = "seller-a",
    price: int = 1000,
    quantity: int = 1,
    commission: str = "10",
    product_id: str | None = None,
) -> OrderItem:
    return OrderItem(
        id=item_id,
        product_id=product_id or f"prod-{item_id}",
        product_name=f"Product {item_id}",
        seller_id=seller_id,
        quantity=quantity,
        price=price,
        commission_percent=Decimal(commission),
    )


def make_order(
    items: list[OrderItem] | None = None,
    payment_method: PaymentMethod = PaymentMethod.CARD_GATEWAY_A,
    tax: int = 0,
    shipping_cost: int = 0,
    discount: int = 0,
    policy: ReturnCommissionPolicy = ReturnCommissionPolicy.RETAIN,
    order_number: str = "MT2501150001",
    now: datetime = T0,
    order_id: str = "order-1",
    customer_id: str = "cust-1",
) -> Order:
    return Order.place(
        order_id=order_id,
        order_number=order_number,
        customer_id=customer_id,
        items=items if items is not None else [make_item()],
        shipping_address=make_address(),
        billing_address=make_address(),
        payment_method=payment_method,
        now=now,
        business_day=now.date(),
        tax=tax,
        shipping_cost=shipping_cost,
        discount=discount,
        return_commission_policy=policy,
    )


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def order_factory() -> Callable[..., Order]:
    return make_order


@pytest.fixture
def item_factory() -> Callable[..., OrderItem]:
    return make_item


@pytest.fixture
def address_factory() -> Callable[..., Address]:
    return make_address
