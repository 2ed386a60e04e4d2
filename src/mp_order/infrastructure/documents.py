"""Order <-> JSON document mapping.

The whole aggregate is stored as one JSONB document so that a single row
write commits the order, its items, sub-orders, returns and refunds together.
Decimals are kept as strings and datetimes as ISO-8601 so nothing is lost.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from src.mp_common.enums import (
    ActorRole,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
    ReturnCommissionPolicy,
    ReturnStatus,
)
from src.mp_order.domain.models import (
    Address,
    Cancellation,
    NotificationFlags,
    Order,
    OrderItem,
    Payment,
    RefundRecord,
    ReturnLine,
    ReturnRequest,
    Tracking,
    TrackingUpdate,
)
from src.mp_order.domain.splitter import SubOrder


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def _address_to_dict(address: Address) -> dict[str, Any]:
    return {
        "recipient_name": address.recipient_name,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "country": address.country,
        "postal_code": address.postal_code,
        "phone": address.phone,
    }


def _tracking_to_dict(tracking: Tracking | None) -> dict[str, Any] | None:
    if tracking is None:
        return None
    return {
        "carrier": tracking.carrier,
        "tracking_number": tracking.tracking_number,
        "estimated_delivery": (
            tracking.estimated_delivery.isoformat() if tracking.estimated_delivery else None
        ),
        "updates": [
            {
                "status": u.status,
                "message": u.message,
                "timestamp": _dt(u.timestamp),
                "location": u.location,
            }
            for u in tracking.updates
        ],
    }


def order_to_document(order: Order) -> dict[str, Any]:
    """Serialise the aggregate (without pending events) to a JSON-safe dict."""
    return {
        "id": order.id,
        "order_number": order.order_number,
        "customer_id": order.customer_id,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "product_name": i.product_name,
                "seller_id": i.seller_id,
                "quantity": i.quantity,
                "price": i.price,
                "commission_percent": str(i.commission_percent),
                "variant": i.variant,
                "status": i.status.value,
                "tracking": _tracking_to_dict(i.tracking),
            }
            for i in order.items
        ],
        "shipping_address": _address_to_dict(order.shipping_address),
        "billing_address": _address_to_dict(order.billing_address),
        "payment": {
            "method": order.payment.method.value,
            "status": order.payment.status.value,
            "transaction_ref": order.payment.transaction_ref,
            "failure_reason": order.payment.failure_reason,
            "refunds": [
                {
                    "id": r.id,
                    "amount": r.amount,
                    "reason": r.reason,
                    "status": r.status.value,
                    "created_at": _dt(r.created_at),
                    "gateway_refund_id": r.gateway_refund_id,
                    "return_id": r.return_id,
                }
                for r in order.payment.refunds
            ],
        },
        "currency": order.currency,
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping_cost": order.shipping_cost,
        "discount": order.discount,
        "total": order.total,
        "status": order.status.value,
        "order_date": _dt(order.order_date),
        "business_day": order.business_day.isoformat() if order.business_day else None,
        "confirmed_at": _dt(order.confirmed_at),
        "shipped_at": _dt(order.shipped_at),
        "delivered_at": _dt(order.delivered_at),
        "cancellation": (
            {
                "reason": order.cancellation.reason,
                "actor_id": order.cancellation.actor_id,
                "actor_role": order.cancellation.actor_role.value,
                "cancelled_at": _dt(order.cancellation.cancelled_at),
                "refund_amount": order.cancellation.refund_amount,
            }
            if order.cancellation
            else None
        ),
        "returns": [
            {
                "id": r.id,
                "lines": [{"item_id": ln.item_id, "quantity": ln.quantity} for ln in r.lines],
                "reason": r.reason,
                "status": r.status.value,
                "requested_at": _dt(r.requested_at),
                "processed_at": _dt(r.processed_at),
                "updated_at": _dt(r.updated_at),
                "refund_amount": r.refund_amount,
                "note": r.note,
                "refund_status": r.refund_status.value if r.refund_status else None,
            }
            for r in order.returns
        ],
        "sub_orders": [
            {
                "seller_id": s.seller_id,
                "item_ids": list(s.item_ids),
                "status": s.status.value,
                "total": s.total,
                "commission": s.commission,
                "return_commission_policy": s.return_commission_policy.value,
                "refunded_amount": s.refunded_amount,
                "commission_reversed": s.commission_reversed,
            }
            for s in order.sub_orders
        ],
        "return_commission_policy": order.return_commission_policy.value,
        "customer_notes": order.customer_notes,
        "source": order.source.value,
        "notifications": {
            "order_confirmed": order.notifications.order_confirmed,
            "order_shipped": order.notifications.order_shipped,
            "order_delivered": order.notifications.order_delivered,
        },
        "version": order.version,
        "updated_at": _dt(order.updated_at),
    }


# ---------------------------------------------------------------------------
# Deserialisation
# ---------------------------------------------------------------------------


def _address_from_dict(data: dict[str, Any]) -> Address:
    return Address(**data)


def _tracking_from_dict(data: dict[str, Any] | None) -> Tracking | None:
    if data is None:
        return None
    return Tracking(
        carrier=data["carrier"],
        tracking_number=data["tracking_number"],
        estimated_delivery=_parse_date(data.get("estimated_delivery")),
        updates=[
            TrackingUpdate(
                status=u["status"],
                message=u["message"],
                timestamp=_parse_dt(u["timestamp"]),  # type: ignore[arg-type]
                location=u.get("location"),
            )
            for u in data.get("updates", [])
        ],
    )


def order_from_document(doc: dict[str, Any]) -> Order:
    payment = doc["payment"]
    cancellation = doc.get("cancellation")
    notifications = doc.get("notifications") or {}
    return Order(
        id=doc["id"],
        order_number=doc["order_number"],
        customer_id=doc["customer_id"],
        items=[
            OrderItem(
                id=i["id"],
                product_id=i["product_id"],
                product_name=i["product_name"],
                seller_id=i["seller_id"],
                quantity=i["quantity"],
                price=i["price"],
                commission_percent=Decimal(i["commission_percent"]),
                variant=i.get("variant"),
                status=OrderStatus(i["status"]),
                tracking=_tracking_from_dict(i.get("tracking")),
            )
            for i in doc["items"]
        ],
        shipping_address=_address_from_dict(doc["shipping_address"]),
        billing_address=_address_from_dict(doc["billing_address"]),
        payment=Payment(
            method=PaymentMethod(payment["method"]),
            status=PaymentStatus(payment["status"]),
            transaction_ref=payment.get("transaction_ref"),
            failure_reason=payment.get("failure_reason"),
            refunds=[
                RefundRecord(
                    id=r["id"],
                    amount=r["amount"],
                    reason=r["reason"],
                    status=RefundStatus(r["status"]),
                    created_at=_parse_dt(r["created_at"]),  # type: ignore[arg-type]
                    gateway_refund_id=r.get("gateway_refund_id"),
                    return_id=r.get("return_id"),
                )
                for r in payment.get("refunds", [])
            ],
        ),
        currency=doc["currency"],
        subtotal=doc["subtotal"],
        tax=doc["tax"],
        shipping_cost=doc["shipping_cost"],
        discount=doc["discount"],
        total=doc["total"],
        status=OrderStatus(doc["status"]),
        order_date=_parse_dt(doc.get("order_date")),
        business_day=_parse_date(doc.get("business_day")),
        confirmed_at=_parse_dt(doc.get("confirmed_at")),
        shipped_at=_parse_dt(doc.get("shipped_at")),
        delivered_at=_parse_dt(doc.get("delivered_at")),
        cancellation=(
            Cancellation(
                reason=cancellation["reason"],
                actor_id=cancellation["actor_id"],
                actor_role=ActorRole(cancellation["actor_role"]),
                cancelled_at=_parse_dt(cancellation["cancelled_at"]),  # type: ignore[arg-type]
                refund_amount=cancellation["refund_amount"],
            )
            if cancellation
            else None
        ),
        returns=[
            ReturnRequest(
                id=r["id"],
                lines=[ReturnLine(item_id=ln["item_id"], quantity=ln["quantity"]) for ln in r["lines"]],
                reason=r["reason"],
                status=ReturnStatus(r["status"]),
                requested_at=_parse_dt(r.get("requested_at")),
                processed_at=_parse_dt(r.get("processed_at")),
                updated_at=_parse_dt(r.get("updated_at")),
                refund_amount=r.get("refund_amount", 0),
                note=r.get("note"),
                refund_status=RefundStatus(r["refund_status"]) if r.get("refund_status") else None,
            )
            for r in doc.get("returns", [])
        ],
        sub_orders=[
            SubOrder(
                seller_id=s["seller_id"],
                item_ids=list(s["item_ids"]),
                status=OrderStatus(s["status"]),
                total=s["total"],
                commission=s["commission"],
                return_commission_policy=ReturnCommissionPolicy(s["return_commission_policy"]),
                refunded_amount=s.get("refunded_amount", 0),
                commission_reversed=s.get("commission_reversed", 0),
            )
            for s in doc.get("sub_orders", [])
        ],
        return_commission_policy=ReturnCommissionPolicy(doc["return_commission_policy"]),
        customer_notes=doc.get("customer_notes"),
        source=OrderSource(doc.get("source", OrderSource.WEB.value)),
        notifications=NotificationFlags(
            order_confirmed=notifications.get("order_confirmed", False),
            order_shipped=notifications.get("order_shipped", False),
            order_delivered=notifications.get("order_delivered", False),
        ),
        version=doc.get("version", 0),
        updated_at=_parse_dt(doc.get("updated_at")),
    )
