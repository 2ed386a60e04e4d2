"""OrderApplicationService: composition layer for the order engine.

Every state change is one call to `repo.update` with a mutation that runs
against freshly locked state, followed by commit (or rollback on any error).
Gateway calls and notification dispatch happen strictly before or after that
atomic step, never while the order is locked.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_catalog.domain.models import CatalogProtocol
from src.mp_catalog.infrastructure.persistence import CatalogReader
from src.mp_common.datetime_utils import as_utc, utc_now
from src.mp_common.enums import (
    ActorRole,
    OrderStatus,
    PaymentMethod,
    RefundStatus,
    ReturnCommissionPolicy,
)
from src.mp_common.errors import (
    ConcurrentModificationError,
    ForbiddenError,
    OrderNotFoundError,
    PaymentFailedError,
    ProductNotFoundError,
    ValidationError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.money import cents_to_display, parse_percent
from src.mp_notification.dispatcher import LoggingDispatcher, NotificationDispatcher
from src.mp_order.application.schemas import (
    CheckoutLine,
    CheckoutRequest,
    OrderListResponse,
    OrderResponse,
    ReturnCreateRequest,
    SalesAnalyticsResponse,
    TrackingIn,
    TrackingUpdateRequest,
    cursor_decode,
    cursor_encode,
)
from src.mp_order.domain.events import OrderEvent
from src.mp_order.domain.models import Order, OrderItem, ReturnLine, ReturnRequest
from src.mp_order.domain.order_number import OrderNumberGenerator
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.counters import RedisDailyCounter, RepositorySequenceCounter
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.gateway.factory import get_gateway
from src.mp_payment.gateway.port import GatewayResult, PaymentGateway

logger = logging.getLogger(__name__)

# Orders in these states are left out of seller sales figures.
_ANALYTICS_EXCLUDED = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})

# Paid through a gateway authorization at checkout.
_GATEWAY_METHODS = frozenset(
    {
        PaymentMethod.CARD_GATEWAY_A,
        PaymentMethod.CARD_GATEWAY_B,
        PaymentMethod.REGIONAL_GATEWAY,
    }
)


def build_number_generator(
    repo: OrderRepositoryProtocol, clock: Callable[[], datetime] = utc_now
) -> OrderNumberGenerator:
    """Order number generator wired from ORDER_NUMBER_* settings."""
    if settings.ORDER_NUMBER_COUNTER == "redis":
        counter: Any = RedisDailyCounter(repo)
    elif settings.ORDER_NUMBER_COUNTER == "postgres":
        counter = RepositorySequenceCounter(repo)
    else:
        raise ValueError(f"Unknown ORDER_NUMBER_COUNTER: {settings.ORDER_NUMBER_COUNTER!r}")
    return OrderNumberGenerator(
        counter,
        prefix=settings.ORDER_NUMBER_PREFIX,
        timezone=settings.ORDER_NUMBER_TIMEZONE,
        max_attempts=settings.ORDER_NUMBER_MAX_ATTEMPTS,
        clock=clock,
    )


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        catalog: CatalogProtocol | None = None,
        gateway: PaymentGateway | None = None,
        dispatcher: NotificationDispatcher | None = None,
        number_generator: OrderNumberGenerator | None = None,
        clock: Callable[[], datetime] = utc_now,
        *,
        return_window_days: int | None = None,
        return_commission_policy: ReturnCommissionPolicy | None = None,
        default_commission_percent: Decimal | None = None,
        currency: str | None = None,
        update_max_attempts: int | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._catalog: CatalogProtocol = catalog or CatalogReader()
        self._gateway = gateway or get_gateway()
        self._dispatcher: NotificationDispatcher = dispatcher or LoggingDispatcher()
        self._numbers = number_generator or build_number_generator(self._repo, clock)
        self._clock = clock
        self._return_window = timedelta(
            days=return_window_days if return_window_days is not None else settings.RETURN_WINDOW_DAYS
        )
        self._return_commission_policy = return_commission_policy or ReturnCommissionPolicy(
            settings.RETURN_COMMISSION_POLICY
        )
        self._default_commission = (
            default_commission_percent
            if default_commission_percent is not None
            else parse_percent(settings.DEFAULT_COMMISSION_PERCENT)
        )
        self._currency = currency or settings.DEFAULT_CURRENCY
        self._update_max_attempts = update_max_attempts or settings.UPDATE_MAX_ATTEMPTS

    # -------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------

    async def _mutate(
        self,
        db: AsyncSession,
        order_id: str,
        mutation: Callable[[Order], None],
        expected_version: int | None = None,
    ) -> Order:
        """Apply `mutation` atomically, retrying lost version races on fresh state."""
        attempts = 1 if expected_version is not None else self._update_max_attempts
        for attempt in range(1, attempts + 1):
            try:
                order = await self._repo.update(db, order_id, mutation, expected_version)
                await db.commit()
            except ConcurrentModificationError:
                await db.rollback()
                if attempt == attempts:
                    raise
                logger.warning(
                    "Concurrent update, retrying: order=%s, attempt=%d/%d",
                    order_id,
                    attempt,
                    attempts,
                )
                continue
            except Exception:
                await db.rollback()
                raise
            await self._dispatch(order.pull_events())
            return order
        raise ConcurrentModificationError(order_id)

    async def _dispatch(self, events: list[OrderEvent]) -> None:
        for event in events:
            try:
                await self._dispatcher.dispatch(event)
            except Exception:
                logger.exception(
                    "Notification dispatch failed: type=%s, order=%s",
                    event.event_type.value,
                    event.order_number,
                )

    async def _load(self, db: AsyncSession, order_id: str) -> Order:
        order = await self._repo.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _call_gateway(self, operation: str, order: Order, call: Any) -> GatewayResult:
        """Await a gateway coroutine; errors become an unsuccessful result."""
        try:
            result: GatewayResult = await call
        except Exception as exc:
            logger.exception("Gateway %s error: order=%s", operation, order.order_number)
            return GatewayResult(success=False, failure_reason=f"gateway error: {exc}")
        if not result.success:
            logger.warning(
                "Gateway %s declined: order=%s, reason=%s",
                operation,
                order.order_number,
                result.failure_reason,
            )
        return result

    # -------------------------------------------------------------------
    # Access control
    # -------------------------------------------------------------------

    @staticmethod
    def _ensure_can_view(order: Order, actor_id: str, role: ActorRole) -> None:
        if role in (ActorRole.ADMIN, ActorRole.SYSTEM):
            return
        if role is ActorRole.CUSTOMER and order.customer_id == actor_id:
            return
        if role is ActorRole.SELLER and order.has_seller(actor_id):
            return
        raise ForbiddenError(f"no access to order {order.order_number}")

    @staticmethod
    def _ensure_customer(order: Order, actor_id: str, role: ActorRole) -> None:
        if role is ActorRole.ADMIN:
            return
        if role is ActorRole.CUSTOMER and order.customer_id == actor_id:
            return
        raise ForbiddenError(f"only the customer may do this on order {order.order_number}")

    @staticmethod
    def _ensure_seller(order: Order, seller_id: str, actor_id: str, role: ActorRole) -> None:
        if role in (ActorRole.ADMIN, ActorRole.SYSTEM):
            return
        if role is ActorRole.SELLER and actor_id == seller_id and order.has_seller(seller_id):
            return
        raise ForbiddenError(f"seller {actor_id} does not own this part of {order.order_number}")

    @staticmethod
    def _ensure_return_handler(
        order: Order, request: ReturnRequest, actor_id: str, role: ActorRole
    ) -> None:
        if role in (ActorRole.ADMIN, ActorRole.SYSTEM):
            return
        if role is ActorRole.SELLER and all(
            order.get_item(line.item_id).seller_id == actor_id for line in request.lines
        ):
            return
        raise ForbiddenError(f"cannot handle return {request.id}")

    @staticmethod
    def _ensure_admin(role: ActorRole) -> None:
        if role not in (ActorRole.ADMIN, ActorRole.SYSTEM):
            raise ForbiddenError("admin role required")

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------

    async def _build_item(self, db: AsyncSession, line: CheckoutLine) -> OrderItem:
        snapshot = await self._catalog.get_product_snapshot(db, line.product_id)
        if snapshot is None:
            raise ProductNotFoundError(line.product_id)
        if not snapshot.is_purchasable:
            raise ValidationError(f"product {line.product_id} is not available ({snapshot.status})")
        if snapshot.currency != self._currency:
            raise ValidationError(
                f"product {line.product_id} is priced in {snapshot.currency}, "
                f"orders are placed in {self._currency}"
            )
        price = snapshot.unit_price(line.variant)
        if price is None:
            raise ValidationError(f"unknown variant {line.variant!r} for product {line.product_id}")
        commission = (
            snapshot.commission_percent
            if snapshot.commission_percent is not None
            else self._default_commission
        )
        return OrderItem(
            id=generate_id(),
            product_id=snapshot.product_id,
            product_name=snapshot.name,
            seller_id=snapshot.seller_id,
            quantity=line.quantity,
            price=price,
            commission_percent=commission,
            variant=line.variant,
        )

    async def checkout(
        self, db: AsyncSession, customer_id: str, req: CheckoutRequest
    ) -> OrderResponse:
        """Turn a cart into a persisted order, then take payment.

        Card-style methods are authorized right after the order is stored;
        a decline leaves the order pending with payment `failed` and raises
        PaymentFailedError. Cash on delivery confirms immediately. Bank
        transfer waits for the capture webhook.
        """
        items = [await self._build_item(db, line) for line in req.items]
        now = self._clock()
        order_id = generate_id()
        shipping_address = req.shipping_address.to_domain()
        billing_address = (req.billing_address or req.shipping_address).to_domain()

        async def _create(order_number: str, day: Any) -> Order:
            order = Order.place(
                order_id=order_id,
                order_number=order_number,
                customer_id=customer_id,
                items=items,
                shipping_address=shipping_address,
                billing_address=billing_address,
                payment_method=req.payment_method,
                now=now,
                business_day=day,
                tax=req.tax_cents,
                shipping_cost=req.shipping_cost_cents,
                discount=req.discount_cents,
                currency=self._currency,
                return_commission_policy=self._return_commission_policy,
                customer_notes=req.customer_notes,
                source=req.source,
            )
            await self._repo.create(db, order)
            return order

        try:
            order = await self._numbers.assign(db, _create, now)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order placed: number=%s, customer=%s, total=%d, sellers=%d",
            order.order_number,
            customer_id,
            order.total,
            len(order.sub_orders),
        )
        await self._dispatch(order.pull_events())

        if req.payment_method is PaymentMethod.CASH_ON_DELIVERY:
            order = await self._mutate(db, order.id, lambda o: o.confirm(self._clock()))
        elif req.payment_method in _GATEWAY_METHODS:
            order = await self._authorize(db, order)
        return OrderResponse.from_domain(order)

    async def _authorize(self, db: AsyncSession, order: Order) -> Order:
        result = await self._call_gateway(
            "authorize",
            order,
            self._gateway.authorize(
                order.total,
                order.currency,
                order.payment.method,
                idempotency_key=f"{order.id}:authorize:{order.version}",
            ),
        )
        if not result.success:
            reason = result.failure_reason or "declined"
            await self._mutate(
                db, order.id, lambda o: o.record_payment_failure(reason, self._clock())
            )
            raise PaymentFailedError(order.order_number, reason)

        transaction_ref = result.transaction_ref or ""

        def _authorized(o: Order) -> None:
            now = self._clock()
            o.record_authorization(transaction_ref, now)
            if o.status is OrderStatus.PENDING:
                o.confirm(now)

        order = await self._mutate(db, order.id, _authorized)
        if order.status is OrderStatus.CANCELLED and order.total > 0:
            # Cancelled while the authorization was in flight: release the hold.
            order = await self._issue_refund(db, order, order.total, "cancelled during authorization")
        return order

    async def authorize_payment(
        self, db: AsyncSession, order_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        """Retry authorization after a decline."""
        order = await self._load(db, order_id)
        self._ensure_customer(order, actor_id, role)
        if order.status is not OrderStatus.PENDING or order.payment.method not in _GATEWAY_METHODS:
            raise ValidationError(
                f"order {order.order_number} is not awaiting a gateway authorization"
            )
        return OrderResponse.from_domain(await self._authorize(db, order))

    async def capture_payment(
        self,
        db: AsyncSession,
        order_id: str,
        role: ActorRole,
        transaction_ref: str | None = None,
    ) -> OrderResponse:
        """Payment-provider webhook: funds captured (or bank transfer received)."""
        self._ensure_admin(role)
        order = await self._load(db, order_id)
        ref = transaction_ref
        if order.payment.transaction_ref and order.payment.method in _GATEWAY_METHODS:
            result = await self._call_gateway(
                "capture",
                order,
                self._gateway.capture(order.payment.transaction_ref, order.total),
            )
            if not result.success:
                reason = result.failure_reason or "capture failed"
                await self._mutate(
                    db, order.id, lambda o: o.record_payment_failure(reason, self._clock())
                )
                raise PaymentFailedError(order.order_number, reason)
            ref = result.transaction_ref or ref

        def _captured(o: Order) -> None:
            now = self._clock()
            o.record_capture(now, ref)
            if o.status is OrderStatus.PENDING:
                o.confirm(now)

        return OrderResponse.from_domain(await self._mutate(db, order_id, _captured))

    # -------------------------------------------------------------------
    # Composition changes while pending
    # -------------------------------------------------------------------

    async def add_item(
        self,
        db: AsyncSession,
        order_id: str,
        line: CheckoutLine,
        actor_id: str,
        role: ActorRole,
    ) -> OrderResponse:
        item = await self._build_item(db, line)

        def _add(o: Order) -> None:
            self._ensure_customer(o, actor_id, role)
            o.add_item(item, self._clock())

        return OrderResponse.from_domain(await self._mutate(db, order_id, _add))

    async def apply_discount(
        self, db: AsyncSession, order_id: str, discount: int, role: ActorRole
    ) -> OrderResponse:
        self._ensure_admin(role)
        order = await self._mutate(
            db, order_id, lambda o: o.apply_discount(discount, self._clock())
        )
        return OrderResponse.from_domain(order)

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------

    async def acknowledge(
        self, db: AsyncSession, order_id: str, seller_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        def _ack(o: Order) -> None:
            self._ensure_seller(o, seller_id, actor_id, role)
            o.acknowledge(seller_id, self._clock())

        order = await self._mutate(db, order_id, _ack)
        logger.info("Sub-order acknowledged: order=%s, seller=%s", order.order_number, seller_id)
        return OrderResponse.from_domain(order)

    async def ship(
        self,
        db: AsyncSession,
        order_id: str,
        seller_id: str,
        tracking: TrackingIn,
        actor_id: str,
        role: ActorRole,
    ) -> OrderResponse:
        def _ship(o: Order) -> None:
            self._ensure_seller(o, seller_id, actor_id, role)
            o.ship(seller_id, tracking.to_domain(), self._clock())

        order = await self._mutate(db, order_id, _ship)
        logger.info(
            "Sub-order shipped: order=%s, seller=%s, carrier=%s",
            order.order_number,
            seller_id,
            tracking.carrier,
        )
        return OrderResponse.from_domain(order)

    async def deliver(
        self, db: AsyncSession, order_id: str, seller_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        def _deliver(o: Order) -> None:
            self._ensure_seller(o, seller_id, actor_id, role)
            o.deliver(seller_id, self._clock())

        order = await self._mutate(db, order_id, _deliver)
        logger.info("Sub-order delivered: order=%s, seller=%s", order.order_number, seller_id)
        return OrderResponse.from_domain(order)

    async def add_tracking_update(
        self,
        db: AsyncSession,
        order_id: str,
        req: TrackingUpdateRequest,
        actor_id: str,
        role: ActorRole,
    ) -> OrderResponse:
        def _track(o: Order) -> None:
            if role is ActorRole.SELLER:
                for item_id in req.item_ids:
                    if o.get_item(item_id).seller_id != actor_id:
                        raise ForbiddenError(f"item {item_id} belongs to another seller")
            else:
                self._ensure_admin(role)
            o.add_tracking_update(
                req.item_ids, req.status, req.message, self._clock(), req.location
            )

        return OrderResponse.from_domain(await self._mutate(db, order_id, _track))

    async def update_order_status(
        self,
        db: AsyncSession,
        order_id: str,
        target: OrderStatus,
        role: ActorRole,
        tracking: TrackingIn | None = None,
        expected_version: int | None = None,
    ) -> OrderResponse:
        """Order-level command: move every lagging active item to `target`."""
        self._ensure_admin(role)
        order = await self._mutate(
            db,
            order_id,
            lambda o: o.advance_to(
                target, self._clock(), tracking.to_domain() if tracking else None
            ),
            expected_version,
        )
        logger.info("Order status updated: order=%s, status=%s", order.order_number, target.value)
        return OrderResponse.from_domain(order)

    # -------------------------------------------------------------------
    # Cancellation & refunds
    # -------------------------------------------------------------------

    async def _issue_refund(
        self,
        db: AsyncSession,
        order: Order,
        amount: int,
        reason: str,
        return_id: str | None = None,
    ) -> Order:
        """Refund through the gateway (outside the lock), then append the record.

        The amount is checked against the refundable balance before any
        money moves.
        """
        if order.payment.refunded_total + amount > order.total:
            raise ValidationError(
                f"refund of {amount} exceeds refundable balance "
                f"{order.total - order.payment.refunded_total}"
            )
        ref = order.payment.transaction_ref
        gateway_refund_id: str | None = None
        if ref is None:
            status = RefundStatus.MANUAL
        else:
            result = await self._call_gateway(
                "refund", order, self._gateway.refund(ref, amount, reason)
            )
            status = RefundStatus.SUCCEEDED if result.success else RefundStatus.FAILED
            gateway_refund_id = result.transaction_ref
        refund_id = generate_id()
        updated = await self._mutate(
            db,
            order.id,
            lambda o: o.record_refund(
                refund_id,
                amount,
                reason,
                status,
                self._clock(),
                gateway_refund_id=gateway_refund_id,
                return_id=return_id,
            ),
        )
        if status is RefundStatus.FAILED:
            logger.error(
                "Refund failed, needs manual follow-up: order=%s, amount=%d",
                order.order_number,
                amount,
            )
        return updated

    async def cancel_order(
        self,
        db: AsyncSession,
        order_id: str,
        reason: str,
        actor_id: str,
        role: ActorRole,
    ) -> OrderResponse:
        def _cancel(o: Order) -> None:
            if role is ActorRole.SELLER:
                # Cancelling stops every item, so the seller must own all of them
                if any(item.seller_id != actor_id for item in o.items):
                    raise ForbiddenError(
                        f"seller {actor_id} cannot cancel {o.order_number}: other sellers' items"
                    )
            elif role is not ActorRole.SYSTEM:
                self._ensure_customer(o, actor_id, role)
            o.cancel(actor_id, role, reason, self._clock())

        order = await self._mutate(db, order_id, _cancel)
        assert order.cancellation is not None
        logger.info(
            "Order cancelled: order=%s, by=%s, refund=%d",
            order.order_number,
            role.value,
            order.cancellation.refund_amount,
        )
        if order.cancellation.refund_amount > 0:
            order = await self._issue_refund(
                db, order, order.cancellation.refund_amount, f"cancellation: {reason}"
            )
        return OrderResponse.from_domain(order)

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------

    async def request_return(
        self,
        db: AsyncSession,
        order_id: str,
        req: ReturnCreateRequest,
        actor_id: str,
        role: ActorRole,
    ) -> OrderResponse:
        return_id = generate_id()
        lines = [ReturnLine(item_id=ln.item_id, quantity=ln.quantity) for ln in req.lines]

        def _request(o: Order) -> None:
            self._ensure_customer(o, actor_id, role)
            o.request_return(return_id, lines, req.reason, self._clock(), self._return_window)

        order = await self._mutate(db, order_id, _request)
        logger.info("Return requested: order=%s, return=%s", order.order_number, return_id)
        return OrderResponse.from_domain(order)

    async def _move_return(
        self,
        db: AsyncSession,
        order_id: str,
        return_id: str,
        actor_id: str,
        role: ActorRole,
        step: Callable[[Order, datetime], Any],
    ) -> Order:
        def _apply(o: Order) -> None:
            self._ensure_return_handler(o, o.get_return(return_id), actor_id, role)
            step(o, self._clock())

        return await self._mutate(db, order_id, _apply)

    async def approve_return(
        self, db: AsyncSession, order_id: str, return_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        order = await self._move_return(
            db, order_id, return_id, actor_id, role, lambda o, now: o.approve_return(return_id, now)
        )
        return OrderResponse.from_domain(order)

    async def reject_return(
        self,
        db: AsyncSession,
        order_id: str,
        return_id: str,
        actor_id: str,
        role: ActorRole,
        note: str | None = None,
    ) -> OrderResponse:
        order = await self._move_return(
            db,
            order_id,
            return_id,
            actor_id,
            role,
            lambda o, now: o.reject_return(return_id, now, note),
        )
        return OrderResponse.from_domain(order)

    async def receive_return(
        self, db: AsyncSession, order_id: str, return_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        order = await self._move_return(
            db, order_id, return_id, actor_id, role, lambda o, now: o.receive_return(return_id, now)
        )
        return OrderResponse.from_domain(order)

    async def process_return(
        self, db: AsyncSession, order_id: str, return_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        """Compute the refund for the returned lines, then pay it out."""
        order = await self._move_return(
            db, order_id, return_id, actor_id, role, lambda o, now: o.process_return(return_id, now)
        )
        request = order.get_return(return_id)
        logger.info(
            "Return processed: order=%s, return=%s, refund=%d",
            order.order_number,
            return_id,
            request.refund_amount,
        )
        if request.refund_outstanding:
            order = await self._settle_return_refund(db, order, return_id)
        return OrderResponse.from_domain(order)

    async def retry_return_refund(
        self, db: AsyncSession, order_id: str, return_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        """Pay out a processed return whose refund is still pending or failed."""
        order = await self._load(db, order_id)
        self._ensure_return_handler(order, order.get_return(return_id), actor_id, role)
        order = await self._settle_return_refund(db, order, return_id)
        return OrderResponse.from_domain(order)

    async def _settle_return_refund(self, db: AsyncSession, order: Order, return_id: str) -> Order:
        amount = order.refund_due(return_id)
        return await self._issue_refund(
            db, order, amount, f"return {return_id}", return_id=return_id
        )

    async def complete_return(
        self, db: AsyncSession, order_id: str, return_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        order = await self._move_return(
            db, order_id, return_id, actor_id, role, lambda o, now: o.complete_return(return_id, now)
        )
        return OrderResponse.from_domain(order)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------

    async def get_order(
        self, db: AsyncSession, order_id: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        order = await self._load(db, order_id)
        self._ensure_can_view(order, actor_id, role)
        return OrderResponse.from_domain(order)

    async def get_by_number(
        self, db: AsyncSession, order_number: str, actor_id: str, role: ActorRole
    ) -> OrderResponse:
        order = await self._repo.get_by_number(db, order_number)
        if order is None:
            raise OrderNotFoundError(order_number)
        self._ensure_can_view(order, actor_id, role)
        return OrderResponse.from_domain(order)

    async def list_customer_orders(
        self, db: AsyncSession, customer_id: str, cursor: str | None, limit: int
    ) -> OrderListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        orders = await self._repo.list_by_customer(db, customer_id, limit + 1, cursor_id)
        has_more = len(orders) > limit
        page = orders[:limit]
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def list_seller_orders(
        self, db: AsyncSession, seller_id: str, start: datetime, end: datetime
    ) -> list[OrderResponse]:
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise ValidationError("end must be after start")
        orders = await self._repo.list_by_seller(db, seller_id, start, end)
        return [OrderResponse.from_domain(o) for o in orders]

    async def seller_sales_analytics(
        self, db: AsyncSession, seller_id: str, start: datetime, end: datetime
    ) -> SalesAnalyticsResponse:
        """Orders, units, revenue and commission for one seller in [start, end)."""
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise ValidationError("end must be after start")
        orders = await self._repo.list_by_seller(db, seller_id, start, end)
        order_count = units = revenue = commission = payout = 0
        for order in orders:
            if order.status in _ANALYTICS_EXCLUDED:
                continue
            sub_order = order.sub_order_for(seller_id)
            if sub_order is None:
                continue
            order_count += 1
            units += sum(i.quantity for i in order.items_for_seller(seller_id))
            revenue += sub_order.total - sub_order.refunded_amount
            commission += sub_order.commission - sub_order.commission_reversed
            payout += sub_order.payout
        currency = self._currency
        return SalesAnalyticsResponse(
            seller_id=seller_id,
            start=start,
            end=end,
            order_count=order_count,
            units_sold=units,
            revenue_cents=revenue,
            revenue_display=cents_to_display(revenue, currency),
            commission_cents=commission,
            commission_display=cents_to_display(commission, currency),
            net_payout_cents=payout,
            net_payout_display=cents_to_display(payout, currency),
        )


_service: OrderApplicationService | None = None


def get_order_service() -> OrderApplicationService:
    """FastAPI dependency: process-wide service built from settings on first use."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = OrderApplicationService()
    return _service
