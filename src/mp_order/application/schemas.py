"""Pydantic schemas and cursor utilities for the mp_order API."""

import base64
import json
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from src.mp_common.enums import OrderSource, OrderStatus, PaymentMethod
from src.mp_common.money import cents_to_display
from src.mp_order.domain.models import Address, Order, OrderItem, ReturnRequest, Tracking
from src.mp_order.domain.splitter import SubOrder

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: str) -> str:
    """Encode the last order id of a page into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AddressIn(BaseModel):
    recipient_name: str = Field(..., min_length=1, max_length=200)
    street: str = Field(..., min_length=1, max_length=300)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    phone: str | None = Field(None, max_length=32)

    def to_domain(self) -> Address:
        return Address(**self.model_dump())


class CheckoutLine(BaseModel):
    product_id: str
    quantity: int = Field(..., gt=0)
    variant: str | None = None


class CheckoutRequest(BaseModel):
    items: list[CheckoutLine] = Field(..., min_length=1)
    shipping_address: AddressIn
    billing_address: AddressIn | None = None  # defaults to the shipping address
    payment_method: PaymentMethod
    tax_cents: int = Field(0, ge=0)
    shipping_cost_cents: int = Field(0, ge=0)
    discount_cents: int = Field(0, ge=0)
    customer_notes: str | None = Field(None, max_length=1000)
    source: OrderSource = OrderSource.WEB


class AddItemRequest(CheckoutLine):
    pass


class DiscountRequest(BaseModel):
    discount_cents: int = Field(..., ge=0)


class CapturePaymentRequest(BaseModel):
    transaction_ref: str | None = None


class TrackingIn(BaseModel):
    carrier: str = Field(..., min_length=1, max_length=100)
    tracking_number: str = Field(..., min_length=1, max_length=100)
    estimated_delivery: date | None = None

    def to_domain(self) -> Tracking:
        return Tracking(
            carrier=self.carrier,
            tracking_number=self.tracking_number,
            estimated_delivery=self.estimated_delivery,
        )


class ShipRequest(BaseModel):
    tracking: TrackingIn


class TrackingUpdateRequest(BaseModel):
    item_ids: list[str] = Field(..., min_length=1)
    status: str = Field(..., min_length=1, max_length=50)
    message: str = Field("", max_length=500)
    location: str | None = Field(None, max_length=200)


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    tracking: TrackingIn | None = None


class CancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("reason")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v


class ReturnLineIn(BaseModel):
    item_id: str
    quantity: int = Field(..., gt=0)


class ReturnCreateRequest(BaseModel):
    lines: list[ReturnLineIn] = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=500)


class RejectReturnRequest(BaseModel):
    note: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TrackingUpdateOut(BaseModel):
    status: str
    message: str
    timestamp: datetime
    location: str | None = None


class TrackingOut(BaseModel):
    carrier: str
    tracking_number: str
    estimated_delivery: date | None = None
    updates: list[TrackingUpdateOut] = []


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    seller_id: str
    variant: str | None = None
    quantity: int
    price_cents: int
    line_total_cents: int
    commission_percent: str
    status: str
    tracking: TrackingOut | None = None

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        tracking = None
        if item.tracking is not None:
            tracking = TrackingOut(
                carrier=item.tracking.carrier,
                tracking_number=item.tracking.tracking_number,
                estimated_delivery=item.tracking.estimated_delivery,
                updates=[
                    TrackingUpdateOut(
                        status=u.status, message=u.message, timestamp=u.timestamp, location=u.location
                    )
                    for u in item.tracking.updates
                ],
            )
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            seller_id=item.seller_id,
            variant=item.variant,
            quantity=item.quantity,
            price_cents=item.price,
            line_total_cents=item.line_total,
            commission_percent=str(item.commission_percent),
            status=item.status.value,
            tracking=tracking,
        )


class SubOrderResponse(BaseModel):
    seller_id: str
    item_ids: list[str]
    status: str
    total_cents: int
    commission_cents: int
    refunded_cents: int
    commission_reversed_cents: int
    payout_cents: int

    @classmethod
    def from_domain(cls, sub_order: SubOrder) -> "SubOrderResponse":
        return cls(
            seller_id=sub_order.seller_id,
            item_ids=list(sub_order.item_ids),
            status=sub_order.status.value,
            total_cents=sub_order.total,
            commission_cents=sub_order.commission,
            refunded_cents=sub_order.refunded_amount,
            commission_reversed_cents=sub_order.commission_reversed,
            payout_cents=sub_order.payout,
        )


class RefundResponse(BaseModel):
    id: str
    amount_cents: int
    reason: str
    status: str
    created_at: datetime
    return_id: str | None = None


class PaymentResponse(BaseModel):
    method: str
    status: str
    transaction_ref: str | None = None
    failure_reason: str | None = None
    refunded_cents: int
    refunds: list[RefundResponse]


class ReturnResponse(BaseModel):
    id: str
    lines: list[ReturnLineIn]
    reason: str
    status: str
    requested_at: datetime | None = None
    processed_at: datetime | None = None
    refund_amount_cents: int
    refund_status: str | None = None
    note: str | None = None

    @classmethod
    def from_domain(cls, request: ReturnRequest) -> "ReturnResponse":
        return cls(
            id=request.id,
            lines=[ReturnLineIn(item_id=ln.item_id, quantity=ln.quantity) for ln in request.lines],
            reason=request.reason,
            status=request.status.value,
            requested_at=request.requested_at,
            processed_at=request.processed_at,
            refund_amount_cents=request.refund_amount,
            refund_status=request.refund_status.value if request.refund_status else None,
            note=request.note,
        )


class CancellationResponse(BaseModel):
    reason: str
    actor_id: str
    actor_role: str
    cancelled_at: datetime
    refund_amount_cents: int


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    currency: str
    subtotal_cents: int
    tax_cents: int
    shipping_cost_cents: int
    discount_cents: int
    total_cents: int
    total_display: str
    items: list[OrderItemResponse]
    sub_orders: list[SubOrderResponse]
    shipping_address: AddressIn
    billing_address: AddressIn
    payment: PaymentResponse
    returns: list[ReturnResponse]
    cancellation: CancellationResponse | None = None
    customer_notes: str | None = None
    source: str
    order_date: datetime | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    version: int

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        cancellation = None
        if order.cancellation is not None:
            cancellation = CancellationResponse(
                reason=order.cancellation.reason,
                actor_id=order.cancellation.actor_id,
                actor_role=order.cancellation.actor_role.value,
                cancelled_at=order.cancellation.cancelled_at,
                refund_amount_cents=order.cancellation.refund_amount,
            )
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            status=order.status.value,
            currency=order.currency,
            subtotal_cents=order.subtotal,
            tax_cents=order.tax,
            shipping_cost_cents=order.shipping_cost,
            discount_cents=order.discount,
            total_cents=order.total,
            total_display=cents_to_display(order.total, order.currency),
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            sub_orders=[SubOrderResponse.from_domain(s) for s in order.sub_orders],
            shipping_address=AddressIn(**vars(order.shipping_address)),
            billing_address=AddressIn(**vars(order.billing_address)),
            payment=PaymentResponse(
                method=order.payment.method.value,
                status=order.payment.status.value,
                transaction_ref=order.payment.transaction_ref,
                failure_reason=order.payment.failure_reason,
                refunded_cents=order.payment.refunded_total,
                refunds=[
                    RefundResponse(
                        id=r.id,
                        amount_cents=r.amount,
                        reason=r.reason,
                        status=r.status.value,
                        created_at=r.created_at,
                        return_id=r.return_id,
                    )
                    for r in order.payment.refunds
                ],
            ),
            returns=[ReturnResponse.from_domain(r) for r in order.returns],
            cancellation=cancellation,
            customer_notes=order.customer_notes,
            source=order.source.value,
            order_date=order.order_date,
            confirmed_at=order.confirmed_at,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            version=order.version,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool


class SalesAnalyticsResponse(BaseModel):
    seller_id: str
    start: datetime
    end: datetime
    order_count: int
    units_sold: int
    revenue_cents: int
    revenue_display: str
    commission_cents: int
    commission_display: str
    net_payout_cents: int
    net_payout_display: str
