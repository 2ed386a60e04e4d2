"""mp_order REST API: all endpoints require JWT authentication."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import ActorRole
from src.mp_common.errors import ValidationError
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import Identity, get_current_identity, require_role
from src.mp_order.application.schemas import (
    AddItemRequest,
    CancelRequest,
    CapturePaymentRequest,
    CheckoutRequest,
    DiscountRequest,
    RejectReturnRequest,
    ReturnCreateRequest,
    ShipRequest,
    StatusUpdateRequest,
    TrackingUpdateRequest,
)
from src.mp_order.application.service import OrderApplicationService, get_order_service

router = APIRouter(prefix="/orders", tags=["orders"])

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[OrderApplicationService, Depends(get_order_service)]


def _seller_scope(identity: Identity, seller_id: str | None) -> str:
    """Sellers see their own data; admins must name the seller."""
    if identity.role is ActorRole.SELLER:
        return identity.user_id
    if seller_id is None:
        raise ValidationError("seller_id is required")
    return seller_id


# ---------------------------------------------------------------------------
# Checkout & queries
# ---------------------------------------------------------------------------


@router.post("/checkout", status_code=201)
async def checkout(
    body: CheckoutRequest,
    identity: Annotated[Identity, Depends(require_role(ActorRole.CUSTOMER))],
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.checkout(db, identity.user_id, body)
    return success_response(data.model_dump(mode="json"), request)


@router.get("")
async def list_my_orders(
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await service.list_customer_orders(db, identity.user_id, cursor, limit)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/seller")
async def list_seller_orders(
    identity: Annotated[Identity, Depends(require_role(ActorRole.SELLER, ActorRole.ADMIN))],
    db: Db,
    service: Service,
    request: Request,
    start: datetime = Query(..., description="Inclusive lower bound of order_date"),
    end: datetime = Query(..., description="Exclusive upper bound of order_date"),
    seller_id: str | None = Query(None, description="Admin only"),
) -> ApiResponse:
    orders = await service.list_seller_orders(db, _seller_scope(identity, seller_id), start, end)
    return success_response([o.model_dump(mode="json") for o in orders], request)


@router.get("/seller/analytics")
async def seller_sales_analytics(
    identity: Annotated[Identity, Depends(require_role(ActorRole.SELLER, ActorRole.ADMIN))],
    db: Db,
    service: Service,
    request: Request,
    start: datetime = Query(...),
    end: datetime = Query(...),
    seller_id: str | None = Query(None, description="Admin only"),
) -> ApiResponse:
    data = await service.seller_sales_analytics(
        db, _seller_scope(identity, seller_id), start, end
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/by-number/{order_number}")
async def get_order_by_number(
    order_number: str, identity: CurrentIdentity, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.get_by_number(db, order_number, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{order_id}")
async def get_order(
    order_id: str, identity: CurrentIdentity, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.get_order(db, order_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------


@router.post("/{order_id}/payment/authorize")
async def authorize_payment(
    order_id: str, identity: CurrentIdentity, db: Db, service: Service, request: Request
) -> ApiResponse:
    data = await service.authorize_payment(db, order_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/payment/capture")
async def capture_payment(
    order_id: str,
    body: CapturePaymentRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.capture_payment(db, order_id, identity.role, body.transaction_ref)
    return success_response(data.model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Pending-order changes
# ---------------------------------------------------------------------------


@router.post("/{order_id}/items")
async def add_item(
    order_id: str,
    body: AddItemRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.add_item(db, order_id, body, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/discount")
async def apply_discount(
    order_id: str,
    body: DiscountRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.apply_discount(db, order_id, body.discount_cents, identity.role)
    return success_response(data.model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Fulfilment
# ---------------------------------------------------------------------------


@router.post("/{order_id}/sellers/{seller_id}/acknowledge")
async def acknowledge(
    order_id: str,
    seller_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.acknowledge(db, order_id, seller_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/sellers/{seller_id}/ship")
async def ship(
    order_id: str,
    seller_id: str,
    body: ShipRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.ship(
        db, order_id, seller_id, body.tracking, identity.user_id, identity.role
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/sellers/{seller_id}/deliver")
async def deliver(
    order_id: str,
    seller_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.deliver(db, order_id, seller_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/tracking")
async def add_tracking_update(
    order_id: str,
    body: TrackingUpdateRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.add_tracking_update(db, order_id, body, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
    expected_version: int | None = Query(None, ge=0),
) -> ApiResponse:
    data = await service.update_order_status(
        db, order_id, body.status, identity.role, body.tracking, expected_version
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.cancel_order(db, order_id, body.reason, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------


@router.post("/{order_id}/returns", status_code=201)
async def request_return(
    order_id: str,
    body: ReturnCreateRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.request_return(db, order_id, body, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/approve")
async def approve_return(
    order_id: str,
    return_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.approve_return(db, order_id, return_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/reject")
async def reject_return(
    order_id: str,
    return_id: str,
    body: RejectReturnRequest,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.reject_return(
        db, order_id, return_id, identity.user_id, identity.role, body.note
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/receive")
async def receive_return(
    order_id: str,
    return_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.receive_return(db, order_id, return_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/process")
async def process_return(
    order_id: str,
    return_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.process_return(db, order_id, return_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/complete")
async def complete_return(
    order_id: str,
    return_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.complete_return(db, order_id, return_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/returns/{return_id}/refund")
async def retry_return_refund(
    order_id: str,
    return_id: str,
    identity: CurrentIdentity,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    data = await service.retry_return_refund(db, order_id, return_id, identity.user_id, identity.role)
    return success_response(data.model_dump(mode="json"), request)
