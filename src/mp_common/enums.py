"""Global enums: values are the canonical wire/storage spelling."""

from enum import Enum


class OrderStatus(str, Enum):
    """Shared by orders, order items and sub-orders."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentMethod(str, Enum):
    CARD_GATEWAY_A = "card_gateway_a"
    CARD_GATEWAY_B = "card_gateway_b"
    REGIONAL_GATEWAY = "regional_gateway"
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"


class RefundStatus(str, Enum):
    PENDING = "pending"  # owed on a processed return, not yet paid out
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    MANUAL = "manual"  # settled outside the gateway (cash on delivery)


class ReturnStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    RECEIVED = "received"
    PROCESSED = "processed"
    COMPLETED = "completed"


class ActorRole(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"
    SYSTEM = "system"


class ReturnCommissionPolicy(str, Enum):
    """What happens to platform commission on items refunded through a return."""
    RETAIN = "retain"    # platform keeps the commission
    REVERSE = "reverse"  # commission on returned items is credited back to the seller


class OrderSource(str, Enum):
    WEB = "web"
    MOBILE = "mobile"
    API = "api"


class OrderEventType(str, Enum):
    ORDER_PLACED = "ORDER_PLACED"
    ORDER_CONFIRMED = "ORDER_CONFIRMED"
    ORDER_PROCESSING = "ORDER_PROCESSING"
    ORDER_SHIPPED = "ORDER_SHIPPED"
    ORDER_DELIVERED = "ORDER_DELIVERED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_RETURNED = "ORDER_RETURNED"
    RETURN_UPDATED = "RETURN_UPDATED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    REFUND_ISSUED = "REFUND_ISSUED"
    TRACKING_UPDATED = "TRACKING_UPDATED"
