"""HTTP-level tests for the orders router, with in-memory adapters behind it."""

from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.main import app
from src.mp_catalog.domain.models import ProductSnapshot
from src.mp_catalog.infrastructure.memory import StaticCatalog
from src.mp_common.database import get_db_session
from src.mp_gateway.auth.jwt_handler import create_access_token
from src.mp_notification.dispatcher import RecordingDispatcher
from src.mp_order.application.service import OrderApplicationService, get_order_service
from src.mp_order.domain.order_number import OrderNumberGenerator
from src.mp_order.infrastructure.counters import InMemoryDailyCounter
from src.mp_order.infrastructure.memory import InMemoryOrderRepository
from src.mp_payment.gateway.fake_adapter import FakeGateway

T0 = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)

CHECKOUT_BODY = {
    "items": [
        {"product_id": "p1", "quantity": 2},
        {"product_id": "p2", "quantity": 1},
    ],
    "shipping_address": {
        "recipient_name": "Ada Buyer",
        "street": "1 Market St",
        "city": "Springfield",
        "state": "IL",
        "country": "US",
        "postal_code": "62701",
    },
    "payment_method": "card_gateway_a",
    "tax_cents": 10,
    "shipping_cost_cents": 5,
}


def _auth(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def service() -> OrderApplicationService:
    return OrderApplicationService(
        repo=InMemoryOrderRepository(),
        catalog=StaticCatalog(
            [
                ProductSnapshot("p1", "Mug", "S1", 100, commission_percent=Decimal("10")),
                ProductSnapshot("p2", "Poster", "S2", 50),
            ]
        ),
        gateway=FakeGateway(),
        dispatcher=RecordingDispatcher(),
        number_generator=OrderNumberGenerator(InMemoryDailyCounter(), clock=lambda: T0),
        clock=lambda: T0,
        default_commission_percent=Decimal("5"),
        currency="USD",
    )


@pytest.fixture(autouse=True)
def _overrides(service: OrderApplicationService) -> Iterator[None]:
    async def _db() -> AsyncIterator[AsyncMock]:
        yield AsyncMock()

    app.dependency_overrides[get_order_service] = lambda: service
    app.dependency_overrides[get_db_session] = _db
    yield
    app.dependency_overrides.clear()


async def _checkout(client: AsyncClient) -> dict:
    resp = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth("cust-1", "customer"))
    assert resp.status_code == 201
    return resp.json()["data"]


class TestCheckoutEndpoint:
    async def test_checkout_returns_envelope(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/orders/checkout",
            json=CHECKOUT_BODY,
            headers={**_auth("cust-1", "customer"), "x-request-id": "req_fromedge"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["request_id"] == "req_fromedge"
        assert resp.headers["x-request-id"] == "req_fromedge"
        data = body["data"]
        assert data["order_number"] == "MT2501150001"
        assert data["status"] == "confirmed"
        assert data["total_cents"] == 265
        assert data["total_display"] == "$2.65"
        assert [s["seller_id"] for s in data["sub_orders"]] == ["S1", "S2"]

    async def test_requires_token(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY)
        assert resp.status_code == 401

    async def test_sellers_cannot_check_out(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth("S1", "seller"))
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006

    async def test_empty_cart_is_unprocessable(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/orders/checkout",
            json={**CHECKOUT_BODY, "items": []},
            headers=_auth("cust-1", "customer"),
        )
        assert resp.status_code == 422

    async def test_declined_payment(self, client: AsyncClient, service: OrderApplicationService) -> None:
        service._gateway.configure(should_succeed=False)  # type: ignore[attr-defined]
        resp = await client.post("/api/v1/orders/checkout", json=CHECKOUT_BODY, headers=_auth("cust-1", "customer"))
        assert resp.status_code == 402
        assert resp.json()["code"] == 5001


class TestOrderEndpoints:
    async def test_get_and_list(self, client: AsyncClient) -> None:
        order = await _checkout(client)
        resp = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth("cust-1", "customer"))
        assert resp.json()["data"]["id"] == order["id"]

        resp = await client.get(
            f"/api/v1/orders/by-number/{order['order_number']}", headers=_auth("S2", "seller")
        )
        assert resp.status_code == 200

        resp = await client.get("/api/v1/orders", headers=_auth("cust-1", "customer"))
        page = resp.json()["data"]
        assert [o["id"] for o in page["items"]] == [order["id"]]
        assert page["has_more"] is False

    async def test_unknown_order(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/orders/missing", headers=_auth("admin-1", "admin"))
        assert resp.status_code == 404
        assert resp.json()["code"] == 4004

    async def test_fulfilment_and_blocked_cancel(self, client: AsyncClient) -> None:
        order = await _checkout(client)
        base = f"/api/v1/orders/{order['id']}"
        for seller in ("S1", "S2"):
            headers = _auth(seller, "seller")
            assert (await client.post(f"{base}/sellers/{seller}/acknowledge", headers=headers)).status_code == 200
            resp = await client.post(
                f"{base}/sellers/{seller}/ship",
                json={"tracking": {"carrier": "UPS", "tracking_number": f"1Z{seller}"}},
                headers=headers,
            )
            assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "shipped"

        resp = await client.post(
            f"{base}/cancel", json={"reason": "too slow"}, headers=_auth("cust-1", "customer")
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 4006

    async def test_status_conflict(self, client: AsyncClient) -> None:
        order = await _checkout(client)
        resp = await client.post(
            f"/api/v1/orders/{order['id']}/status",
            params={"expected_version": order["version"] + 5},
            json={"status": "processing"},
            headers=_auth("admin-1", "admin"),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 4009

    async def test_return_flow(self, client: AsyncClient) -> None:
        order = await _checkout(client)
        base = f"/api/v1/orders/{order['id']}"
        admin = _auth("admin-1", "admin")
        for target, extra in (
            ("processing", {}),
            ("shipped", {"tracking": {"carrier": "DHL", "tracking_number": "JD1"}}),
            ("delivered", {}),
        ):
            resp = await client.post(f"{base}/status", json={"status": target, **extra}, headers=admin)
            assert resp.status_code == 200
        mug = next(i for i in order["items"] if i["seller_id"] == "S1")

        resp = await client.post(
            f"{base}/returns",
            json={"lines": [{"item_id": mug["id"], "quantity": 1}], "reason": "chipped"},
            headers=_auth("cust-1", "customer"),
        )
        assert resp.status_code == 201
        return_id = resp.json()["data"]["returns"][0]["id"]

        seller = _auth("S1", "seller")
        for step in ("approve", "receive", "process"):
            resp = await client.post(f"{base}/returns/{return_id}/{step}", headers=seller)
            assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["returns"][0]["refund_amount_cents"] == 100
        assert data["returns"][0]["refund_status"] == "succeeded"
        assert data["payment"]["status"] == "partially_refunded"

        resp = await client.post(f"{base}/returns/{return_id}/refund", headers=seller)
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

    async def test_seller_analytics(self, client: AsyncClient) -> None:
        await _checkout(client)
        resp = await client.get(
            "/api/v1/orders/seller/analytics",
            params={"start": "2025-01-15T00:00:00Z", "end": "2025-01-16T00:00:00Z"},
            headers=_auth("S1", "seller"),
        )
        data = resp.json()["data"]
        assert data["seller_id"] == "S1"
        assert data["order_count"] == 1
        assert data["revenue_cents"] == 200

    async def test_admin_must_name_seller(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/v1/orders/seller",
            params={"start": "2025-01-15T00:00:00Z", "end": "2025-01-16T00:00:00Z"},
            headers=_auth("admin-1", "admin"),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001
