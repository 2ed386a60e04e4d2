"""Order aggregate: pure dataclasses, no SQLAlchemy dependency.

The Order exclusively owns its items, sub-orders, returns and refund records.
Every mutation goes through a method on Order, which validates first and
only then changes state, so a rejected call leaves the aggregate untouched.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from src.mp_common.enums import (
    ActorRole,
    OrderEventType,
    OrderSource,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
    ReturnCommissionPolicy,
    ReturnStatus,
)
from src.mp_common.errors import (
    CancellationNotAllowedError,
    InvalidTransitionError,
    OrderItemNotFoundError,
    ReturnRequestNotFoundError,
    ValidationError,
)
from src.mp_common.money import percent_of
from src.mp_order.domain import policy
from src.mp_order.domain import state_machine as sm
from src.mp_order.domain.events import OrderEvent
from src.mp_order.domain.pricing import calculate_totals
from src.mp_order.domain.splitter import SubOrder, split_by_seller

_STATUS_EVENTS = {
    OrderStatus.CONFIRMED: OrderEventType.ORDER_CONFIRMED,
    OrderStatus.PROCESSING: OrderEventType.ORDER_PROCESSING,
    OrderStatus.SHIPPED: OrderEventType.ORDER_SHIPPED,
    OrderStatus.DELIVERED: OrderEventType.ORDER_DELIVERED,
}


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Address:
    recipient_name: str
    street: str
    city: str
    state: str
    country: str
    postal_code: str
    phone: str | None = None

    def validate(self, label: str) -> None:
        for name in ("recipient_name", "street", "city", "state", "country", "postal_code"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise ValidationError(f"{label}.{name} is required")


@dataclass(frozen=True)
class TrackingUpdate:
    status: str
    message: str
    timestamp: datetime
    location: str | None = None


@dataclass
class Tracking:
    carrier: str
    tracking_number: str
    estimated_delivery: date | None = None
    updates: list[TrackingUpdate] = field(default_factory=list)


@dataclass
class OrderItem:
    """One line, with product, seller, price and commission snapshotted at purchase."""

    id: str
    product_id: str
    product_name: str
    seller_id: str
    quantity: int
    price: int  # cents, price at purchase time
    commission_percent: Decimal
    variant: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    tracking: Tracking | None = None

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def validate(self) -> None:
        if self.quantity <= 0:
            raise ValidationError(f"quantity must be positive for product {self.product_id}")
        if self.price < 0:
            raise ValidationError(f"price must not be negative for product {self.product_id}")
        if not (0 <= self.commission_percent <= 100):
            raise ValidationError(f"commission_percent out of range for product {self.product_id}")
        if not self.seller_id:
            raise ValidationError(f"seller is required for product {self.product_id}")


@dataclass(frozen=True)
class RefundRecord:
    id: str
    amount: int
    reason: str
    status: RefundStatus
    created_at: datetime
    gateway_refund_id: str | None = None
    return_id: str | None = None


@dataclass
class Payment:
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_ref: str | None = None
    failure_reason: str | None = None
    refunds: list[RefundRecord] = field(default_factory=list)

    @property
    def refunded_total(self) -> int:
        return sum(
            r.amount
            for r in self.refunds
            if r.status in (RefundStatus.SUCCEEDED, RefundStatus.MANUAL)
        )

    @property
    def is_cash_on_delivery(self) -> bool:
        return self.method is PaymentMethod.CASH_ON_DELIVERY


@dataclass(frozen=True)
class Cancellation:
    reason: str
    actor_id: str
    actor_role: ActorRole
    cancelled_at: datetime
    refund_amount: int


@dataclass(frozen=True)
class ReturnLine:
    item_id: str
    quantity: int


@dataclass
class ReturnRequest:
    id: str
    lines: list[ReturnLine]
    reason: str
    status: ReturnStatus = ReturnStatus.REQUESTED
    requested_at: datetime | None = None
    processed_at: datetime | None = None
    updated_at: datetime | None = None
    refund_amount: int = 0
    note: str | None = None
    refund_status: RefundStatus | None = None

    @property
    def refund_outstanding(self) -> bool:
        return self.refund_status in (RefundStatus.PENDING, RefundStatus.FAILED)


@dataclass
class NotificationFlags:
    """Which customer notifications have been emitted for the order."""

    order_confirmed: bool = False
    order_shipped: bool = False
    order_delivered: bool = False


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------


@dataclass
class Order:
    id: str
    order_number: str
    customer_id: str
    items: list[OrderItem]
    shipping_address: Address
    billing_address: Address
    payment: Payment
    currency: str = "USD"
    subtotal: int = 0
    tax: int = 0
    shipping_cost: int = 0
    discount: int = 0
    total: int = 0
    status: OrderStatus = OrderStatus.PENDING
    order_date: datetime | None = None
    business_day: date | None = None
    confirmed_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancellation: Cancellation | None = None
    returns: list[ReturnRequest] = field(default_factory=list)
    sub_orders: list[SubOrder] = field(default_factory=list)
    return_commission_policy: ReturnCommissionPolicy = ReturnCommissionPolicy.RETAIN
    customer_notes: str | None = None
    source: OrderSource = OrderSource.WEB
    notifications: NotificationFlags = field(default_factory=NotificationFlags)
    version: int = 0
    updated_at: datetime | None = None
    _events: list[OrderEvent] = field(default_factory=list, init=False, repr=False, compare=False)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------

    @classmethod
    def place(
        cls,
        *,
        order_id: str,
        order_number: str,
        customer_id: str,
        items: list[OrderItem],
        shipping_address: Address,
        billing_address: Address,
        payment_method: PaymentMethod,
        now: datetime,
        business_day: date,
        tax: int = 0,
        shipping_cost: int = 0,
        discount: int = 0,
        currency: str = "USD",
        return_commission_policy: ReturnCommissionPolicy = ReturnCommissionPolicy.RETAIN,
        customer_notes: str | None = None,
        source: OrderSource = OrderSource.WEB,
    ) -> "Order":
        """Build a new pending order with reconciled totals and derived sub-orders."""
        if not items:
            raise ValidationError("order must contain at least one item")
        for item in items:
            item.validate()
        shipping_address.validate("shipping_address")
        billing_address.validate("billing_address")

        order = cls(
            id=order_id,
            order_number=order_number,
            customer_id=customer_id,
            items=list(items),
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment=Payment(method=payment_method),
            currency=currency,
            tax=tax,
            shipping_cost=shipping_cost,
            discount=discount,
            order_date=now,
            business_day=business_day,
            return_commission_policy=return_commission_policy,
            customer_notes=customer_notes,
            source=source,
            updated_at=now,
        )
        order.recompute_totals()
        order.sub_orders = order.derive_sub_orders()
        order._raise(
            OrderEventType.ORDER_PLACED,
            now,
            total=order.total,
            seller_ids=[s.seller_id for s in order.sub_orders],
        )
        return order

    # -------------------------------------------------------------------
    # Pricing & sub-orders
    # -------------------------------------------------------------------

    def recompute_totals(self) -> None:
        """The only routine that writes subtotal, discount and total."""
        summary = calculate_totals(
            [(i.price, i.quantity) for i in self.items],
            tax=self.tax,
            shipping_cost=self.shipping_cost,
            discount=self.discount,
        )
        self.subtotal = summary.subtotal
        self.discount = summary.discount
        self.total = summary.total

    def derive_sub_orders(self) -> list[SubOrder]:
        return split_by_seller(self.items, self.return_commission_policy)

    @property
    def composition_frozen(self) -> bool:
        """Items and sub-order membership are fixed once the order leaves pending."""
        return self.status is not OrderStatus.PENDING

    def add_item(self, item: OrderItem, now: datetime) -> None:
        if self.composition_frozen:
            raise ValidationError(f"items can only be added while pending (status={self.status.value})")
        item.validate()
        if any(i.id == item.id for i in self.items):
            raise ValidationError(f"duplicate item id {item.id}")
        self.items.append(item)
        self.recompute_totals()
        self.sub_orders = self.derive_sub_orders()
        self.updated_at = now

    def apply_discount(self, amount: int, now: datetime) -> None:
        if self.composition_frozen:
            raise ValidationError(f"discount can only change while pending (status={self.status.value})")
        if amount < 0:
            raise ValidationError(f"discount must not be negative, got {amount}")
        self.discount = amount
        self.recompute_totals()
        self.updated_at = now

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------

    def get_item(self, item_id: str) -> OrderItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise OrderItemNotFoundError(item_id)

    def items_for_seller(self, seller_id: str) -> list[OrderItem]:
        return [i for i in self.items if i.seller_id == seller_id]

    def sub_order_for(self, seller_id: str) -> SubOrder | None:
        return next((s for s in self.sub_orders if s.seller_id == seller_id), None)

    def has_seller(self, seller_id: str) -> bool:
        return self.sub_order_for(seller_id) is not None

    def get_return(self, return_id: str) -> ReturnRequest:
        for request in self.returns:
            if request.id == return_id:
                return request
        raise ReturnRequestNotFoundError(return_id)

    @property
    def active_items(self) -> list[OrderItem]:
        return [i for i in self.items if sm.is_active(i.status)]

    # -------------------------------------------------------------------
    # Payment sub-state
    # -------------------------------------------------------------------

    def record_authorization(self, transaction_ref: str, now: datetime) -> None:
        sm.assert_payment_transition(self.payment.status, PaymentStatus.AUTHORIZED)
        self.payment.status = PaymentStatus.AUTHORIZED
        self.payment.transaction_ref = transaction_ref
        self.payment.failure_reason = None
        self.updated_at = now

    def record_capture(self, now: datetime, transaction_ref: str | None = None) -> None:
        sm.assert_payment_transition(self.payment.status, PaymentStatus.COMPLETED)
        self.payment.status = PaymentStatus.COMPLETED
        if transaction_ref:
            self.payment.transaction_ref = transaction_ref
        self.payment.failure_reason = None
        self.updated_at = now

    def record_payment_failure(self, reason: str, now: datetime) -> None:
        """Mark the payment failed; the order itself stays where it is."""
        sm.assert_payment_transition(self.payment.status, PaymentStatus.FAILED)
        self.payment.status = PaymentStatus.FAILED
        self.payment.failure_reason = reason
        self.updated_at = now
        self._raise(OrderEventType.PAYMENT_FAILED, now, reason=reason)

    def record_refund(
        self,
        refund_id: str,
        amount: int,
        reason: str,
        status: RefundStatus,
        now: datetime,
        gateway_refund_id: str | None = None,
        return_id: str | None = None,
    ) -> RefundRecord:
        """Append a refund record; successful refunds move the payment status.

        A refund for a return settles that return's outstanding amount; a
        FAILED attempt leaves it outstanding for a retry.
        """
        if amount <= 0:
            raise ValidationError(f"refund amount must be positive, got {amount}")
        if status is RefundStatus.PENDING:
            raise ValidationError("a refund record needs an outcome, not pending")
        request = self.get_return(return_id) if return_id is not None else None
        if request is not None:
            if not request.refund_outstanding:
                raise ValidationError(f"return {request.id} has no outstanding refund")
            if amount != request.refund_amount:
                raise ValidationError(
                    f"refund of {amount} does not match {request.refund_amount} owed on return {request.id}"
                )
        counts = status in (RefundStatus.SUCCEEDED, RefundStatus.MANUAL)
        if counts and self.payment.refunded_total + amount > self.total:
            raise ValidationError(
                f"refund of {amount} exceeds refundable balance "
                f"{self.total - self.payment.refunded_total}"
            )
        if counts:
            new_status = policy.payment_status_after_refund(
                self.payment.refunded_total + amount, self.total
            )
            sm.assert_payment_transition(self.payment.status, new_status)
        else:
            new_status = self.payment.status

        record = RefundRecord(
            id=refund_id,
            amount=amount,
            reason=reason,
            status=status,
            created_at=now,
            gateway_refund_id=gateway_refund_id,
            return_id=return_id,
        )
        self.payment.refunds.append(record)
        self.payment.status = new_status
        if request is not None:
            request.refund_status = status
        self.updated_at = now
        if counts:
            self._raise(
                OrderEventType.REFUND_ISSUED,
                now,
                amount=amount,
                refunded_total=self.payment.refunded_total,
                return_id=return_id,
            )
        return record

    # -------------------------------------------------------------------
    # Forward status transitions
    # -------------------------------------------------------------------

    def _payment_allows_confirmation(self) -> bool:
        return self.payment.is_cash_on_delivery or self.payment.status in (
            PaymentStatus.AUTHORIZED,
            PaymentStatus.COMPLETED,
        )

    def confirm(self, now: datetime) -> None:
        self.advance_to(OrderStatus.CONFIRMED, now)

    def advance_to(
        self,
        target: OrderStatus,
        now: datetime,
        tracking: Tracking | None = None,
    ) -> None:
        """Order-level command: move every active item that is behind `target`.

        Only forward steps are accepted here; cancellation and returns have
        their own workflows.
        """
        sm.assert_transition(self.status, target)
        if target in sm.TERMINAL_STATUSES:
            raise InvalidTransitionError(
                self.status.value, target.value, "use the cancellation or return workflow"
            )
        moving = [i for i in self.active_items if sm.rank(i.status) < sm.rank(target)]
        self._advance_items(moving, target, now, tracking)

    def acknowledge(self, seller_id: str, now: datetime) -> None:
        """Seller acknowledges their part of the order: confirmed -> processing."""
        self._advance_items(self._seller_items(seller_id), OrderStatus.PROCESSING, now)

    def ship(self, seller_id: str, tracking: Tracking, now: datetime) -> None:
        self._advance_items(self._seller_items(seller_id), OrderStatus.SHIPPED, now, tracking)

    def deliver(self, seller_id: str, now: datetime) -> None:
        self._advance_items(self._seller_items(seller_id), OrderStatus.DELIVERED, now)

    def _seller_items(self, seller_id: str) -> list[OrderItem]:
        items = [i for i in self.items_for_seller(seller_id) if sm.is_active(i.status)]
        if not items:
            raise ValidationError(f"seller {seller_id} has no active items in order {self.order_number}")
        return items

    def _advance_items(
        self,
        items: list[OrderItem],
        target: OrderStatus,
        now: datetime,
        tracking: Tracking | None = None,
    ) -> None:
        # Validate everything before touching any item.
        for item in items:
            sm.assert_item_transition(item.status, target, item.id)
        if target is OrderStatus.CONFIRMED and not self._payment_allows_confirmation():
            raise InvalidTransitionError(
                self.status.value, target.value, "payment not authorized"
            )
        if target is OrderStatus.SHIPPED:
            untracked = [i.id for i in items if i.tracking is None and tracking is None]
            if untracked:
                raise InvalidTransitionError(
                    OrderStatus.PROCESSING.value,
                    target.value,
                    f"tracking not assigned for items {', '.join(untracked)}",
                )

        for item in items:
            if target is OrderStatus.SHIPPED and tracking is not None and item.tracking is None:
                item.tracking = Tracking(
                    carrier=tracking.carrier,
                    tracking_number=tracking.tracking_number,
                    estimated_delivery=tracking.estimated_delivery,
                    updates=list(tracking.updates),
                )
            item.status = target
        self.updated_at = now
        self._reconcile_status(now)

    def _reconcile_status(self, now: datetime) -> None:
        """Move the order forward to the earliest active item status."""
        for sub_order in self.sub_orders:
            sub_order.status = sm.aggregate_status(
                self.get_item(item_id).status for item_id in sub_order.item_ids
            )

        target = sm.earliest_status(i.status for i in self.items)
        if target is None or self.status in sm.TERMINAL_STATUSES:
            return
        while sm.rank(self.status) < sm.rank(target):
            step = sm.next_status(self.status)
            assert step is not None
            self._enter(step, now)

        if (
            self.status is OrderStatus.DELIVERED
            and self.payment.is_cash_on_delivery
            and self.payment.status is PaymentStatus.PENDING
        ):
            # Cash is collected on delivery.
            self.record_capture(now)

    def _enter(self, status: OrderStatus, now: datetime) -> None:
        sm.assert_transition(self.status, status)
        self.status = status
        stamp = sm.TIMESTAMP_FIELDS.get(status)
        if stamp and getattr(self, stamp) is None:
            setattr(self, stamp, now)
        event_type = _STATUS_EVENTS.get(status)
        if event_type is not None:
            self._raise(event_type, now, status=status.value)
        if status is OrderStatus.CONFIRMED:
            self.notifications.order_confirmed = True
        elif status is OrderStatus.SHIPPED:
            self.notifications.order_shipped = True
        elif status is OrderStatus.DELIVERED:
            self.notifications.order_delivered = True

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------

    def add_tracking_update(
        self,
        item_ids: list[str],
        status: str,
        message: str,
        now: datetime,
        location: str | None = None,
    ) -> None:
        if not item_ids:
            raise ValidationError("at least one item is required for a tracking update")
        items = [self.get_item(item_id) for item_id in item_ids]
        for item in items:
            if item.tracking is None:
                raise ValidationError(f"item {item.id} has no tracking assigned")
        update = TrackingUpdate(status=status, message=message, timestamp=now, location=location)
        for item in items:
            assert item.tracking is not None
            item.tracking.updates.append(update)
        self.updated_at = now
        self._raise(
            OrderEventType.TRACKING_UPDATED,
            now,
            item_ids=list(item_ids),
            status=status,
            message=message,
            location=location,
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------

    def cancel(self, actor_id: str, actor_role: ActorRole, reason: str, now: datetime) -> Cancellation:
        policy.ensure_cancellable(self.order_number, self.status)
        shipped = [i for i in self.active_items if sm.rank(i.status) >= sm.rank(OrderStatus.SHIPPED)]
        if shipped:
            raise CancellationNotAllowedError(self.order_number, shipped[0].status.value)
        sm.assert_transition(self.status, OrderStatus.CANCELLED)

        refund_amount = policy.cancellation_refund_amount(self.payment.status, self.total)
        for item in self.active_items:
            sm.assert_item_transition(item.status, OrderStatus.CANCELLED, item.id)
        for item in self.active_items:
            item.status = OrderStatus.CANCELLED
        for sub_order in self.sub_orders:
            sub_order.status = OrderStatus.CANCELLED

        self.status = OrderStatus.CANCELLED
        self.cancellation = Cancellation(
            reason=reason,
            actor_id=actor_id,
            actor_role=actor_role,
            cancelled_at=now,
            refund_amount=refund_amount,
        )
        self.updated_at = now
        self._raise(
            OrderEventType.ORDER_CANCELLED,
            now,
            reason=reason,
            cancelled_by=actor_role.value,
            refund_amount=refund_amount,
        )
        return self.cancellation

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------

    def returnable_quantity(self, item_id: str) -> int:
        item = self.get_item(item_id)
        claimed = sum(
            line.quantity
            for request in self.returns
            if request.status is not ReturnStatus.REJECTED
            for line in request.lines
            if line.item_id == item_id
        )
        return item.quantity - claimed

    def request_return(
        self,
        return_id: str,
        lines: list[ReturnLine],
        reason: str,
        now: datetime,
        window: timedelta = policy.DEFAULT_RETURN_WINDOW,
    ) -> ReturnRequest:
        policy.ensure_returnable(self.order_number, self.status, self.delivered_at, now, window)
        if not lines:
            raise ValidationError("return request must name at least one item")
        if not reason or not reason.strip():
            raise ValidationError("return reason is required")

        merged: dict[str, int] = {}
        for line in lines:
            if line.quantity <= 0:
                raise ValidationError(f"return quantity must be positive for item {line.item_id}")
            merged[line.item_id] = merged.get(line.item_id, 0) + line.quantity
        for item_id, quantity in merged.items():
            available = self.returnable_quantity(item_id)
            if quantity > available:
                raise ValidationError(
                    f"cannot return {quantity} of item {item_id}, only {available} returnable"
                )

        request = ReturnRequest(
            id=return_id,
            lines=[ReturnLine(item_id=i, quantity=q) for i, q in merged.items()],
            reason=reason,
            requested_at=now,
            updated_at=now,
        )
        self.returns.append(request)
        self.updated_at = now
        self._raise_return_event(request, now)
        return request

    def approve_return(self, return_id: str, now: datetime) -> ReturnRequest:
        return self._move_return(return_id, ReturnStatus.APPROVED, now)

    def reject_return(self, return_id: str, now: datetime, note: str | None = None) -> ReturnRequest:
        request = self._move_return(return_id, ReturnStatus.REJECTED, now)
        request.note = note
        return request

    def receive_return(self, return_id: str, now: datetime) -> ReturnRequest:
        return self._move_return(return_id, ReturnStatus.RECEIVED, now)

    def process_return(self, return_id: str, now: datetime) -> ReturnRequest:
        """Compute the refund for the returned lines and book it against sub-orders.

        The refund owed is the value of the returned lines, capped at what
        the customer paid and has not yet been refunded or promised. A
        positive amount is left PENDING until a refund record settles it.
        """
        request = self.get_return(return_id)
        sm.assert_return_transition(request.status, ReturnStatus.PROCESSED)

        line_value = 0
        for line in request.lines:
            item = self.get_item(line.item_id)
            amount = item.price * line.quantity
            line_value += amount
            sub_order = self.sub_order_for(item.seller_id)
            assert sub_order is not None
            sub_order.record_return_refund(amount, percent_of(amount, item.commission_percent))

        request.refund_amount = min(line_value, self.refundable_balance)
        request.refund_status = RefundStatus.PENDING if request.refund_amount > 0 else None
        request.processed_at = now
        return self._move_return(return_id, ReturnStatus.PROCESSED, now)

    @property
    def outstanding_return_refunds(self) -> int:
        return sum(r.refund_amount for r in self.returns if r.refund_outstanding)

    @property
    def refundable_balance(self) -> int:
        """Paid money not yet refunded nor owed to an earlier return."""
        return self.total - self.payment.refunded_total - self.outstanding_return_refunds

    def refund_due(self, return_id: str) -> int:
        """Amount still owed on a processed return; raises if nothing is owed."""
        request = self.get_return(return_id)
        if request.status not in (ReturnStatus.PROCESSED, ReturnStatus.COMPLETED):
            raise ValidationError(f"return {return_id} is {request.status.value}, not processed")
        if not request.refund_outstanding:
            raise ValidationError(f"return {return_id} has no outstanding refund")
        if self.payment.refunded_total + request.refund_amount > self.total:
            raise ValidationError(
                f"refund of {request.refund_amount} exceeds refundable balance "
                f"{self.total - self.payment.refunded_total}"
            )
        return request.refund_amount

    def complete_return(self, return_id: str, now: datetime) -> ReturnRequest:
        request = self._move_return(return_id, ReturnStatus.COMPLETED, now)

        for item in self.items:
            if item.status is not OrderStatus.DELIVERED:
                continue
            returned = sum(
                line.quantity
                for r in self.returns
                if r.status is ReturnStatus.COMPLETED
                for line in r.lines
                if line.item_id == item.id
            )
            if returned >= item.quantity:
                sm.assert_item_transition(item.status, OrderStatus.RETURNED, item.id)
                item.status = OrderStatus.RETURNED

        self._reconcile_status(now)
        if not self.active_items and self.status is OrderStatus.DELIVERED:
            sm.assert_transition(self.status, OrderStatus.RETURNED)
            self.status = OrderStatus.RETURNED
            self._raise(OrderEventType.ORDER_RETURNED, now, return_id=return_id)
        return request

    def _move_return(self, return_id: str, target: ReturnStatus, now: datetime) -> ReturnRequest:
        request = self.get_return(return_id)
        sm.assert_return_transition(request.status, target)
        request.status = target
        request.updated_at = now
        self.updated_at = now
        self._raise_return_event(request, now)
        return request

    def _raise_return_event(self, request: ReturnRequest, now: datetime) -> None:
        self._raise(
            OrderEventType.RETURN_UPDATED,
            now,
            return_id=request.id,
            return_status=request.status.value,
            refund_amount=request.refund_amount,
        )

    # -------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------

    def _raise(self, event_type: OrderEventType, now: datetime, **payload: object) -> None:
        self._events.append(
            OrderEvent(
                event_type=event_type,
                order_id=self.id,
                order_number=self.order_number,
                customer_id=self.customer_id,
                occurred_at=now,
                payload=dict(payload),
            )
        )

    def pull_events(self) -> list[OrderEvent]:
        events, self._events = self._events, []
        return events
