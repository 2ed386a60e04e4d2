"""Integration tests for the order lifecycle against PostgreSQL.

checkout → acknowledge → ship → deliver → return, plus cancellation and
optimistic-concurrency checks. Requires migrations applied (alembic upgrade
head); products are inserted by the ``products`` fixture with per-run ids.
"""

import uuid

import pytest
from httpx import AsyncClient

from src.mp_gateway.auth.jwt_handler import create_access_token

pytestmark = pytest.mark.asyncio(loop_scope="session")

ADDRESS = {
    "recipient_name": "Ada Buyer",
    "street": "1 Market St",
    "city": "Springfield",
    "state": "IL",
    "country": "US",
    "postal_code": "62701",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _auth(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


def _new_customer() -> str:
    return f"cust_{uuid.uuid4().hex[:8]}"


async def _checkout(
    client: AsyncClient, customer_id: str, products: dict[str, str], payment_method: str = "card_gateway_a"
) -> dict:
    resp = await client.post(
        "/api/v1/orders/checkout",
        json={
            "items": [
                {"product_id": products["mug"], "quantity": 2},
                {"product_id": products["poster"], "quantity": 1},
            ],
            "shipping_address": ADDRESS,
            "payment_method": payment_method,
            "tax_cents": 10,
            "shipping_cost_cents": 5,
        },
        headers=_auth(customer_id, "customer"),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCheckout:
    async def test_checkout_persists_order(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        order = await _checkout(client, customer, products)

        assert order["status"] == "confirmed"
        assert order["subtotal_cents"] == 250
        assert order["total_cents"] == 265
        assert order["order_number"].startswith("MT")
        assert len(order["order_number"]) == 12

        resp = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth(customer, "customer"))
        assert resp.status_code == 200
        fetched = resp.json()["data"]
        assert fetched["order_number"] == order["order_number"]
        assert fetched["version"] == order["version"]

    async def test_order_numbers_are_unique(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        first = await _checkout(client, customer, products)
        second = await _checkout(client, customer, products)
        assert first["order_number"] != second["order_number"]

    async def test_customer_lists_only_own_orders(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        order = await _checkout(client, customer, products)
        await _checkout(client, _new_customer(), products)

        resp = await client.get("/api/v1/orders", headers=_auth(customer, "customer"))
        assert [o["id"] for o in resp.json()["data"]["items"]] == [order["id"]]

    async def test_other_customer_is_forbidden(self, client: AsyncClient, products: dict[str, str]) -> None:
        order = await _checkout(client, _new_customer(), products)
        resp = await client.get(f"/api/v1/orders/{order['id']}", headers=_auth(_new_customer(), "customer"))
        assert resp.status_code == 403


class TestFulfilment:
    async def test_ship_all_then_cancel_is_blocked(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        order = await _checkout(client, customer, products)
        base = f"/api/v1/orders/{order['id']}"

        for seller in (products["seller_1"], products["seller_2"]):
            headers = _auth(seller, "seller")
            resp = await client.post(f"{base}/sellers/{seller}/acknowledge", headers=headers)
            assert resp.status_code == 200
            resp = await client.post(
                f"{base}/sellers/{seller}/ship",
                json={"tracking": {"carrier": "UPS", "tracking_number": f"1Z-{seller}"}},
                headers=headers,
            )
            assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "shipped"

        resp = await client.post(f"{base}/cancel", json={"reason": "late"}, headers=_auth(customer, "customer"))
        assert resp.status_code == 422
        assert resp.json()["code"] == 4006

    async def test_cancel_confirmed_order_refunds(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        order = await _checkout(client, customer, products)

        resp = await client.post(
            f"/api/v1/orders/{order['id']}/cancel", json={"reason": "changed mind"}, headers=_auth(customer, "customer")
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "cancelled"
        assert data["payment"]["status"] == "refunded"

    async def test_stale_version_conflicts(self, client: AsyncClient, products: dict[str, str]) -> None:
        order = await _checkout(client, _new_customer(), products)
        resp = await client.post(
            f"/api/v1/orders/{order['id']}/status",
            params={"expected_version": order["version"] + 5},
            json={"status": "processing"},
            headers=_auth("admin-it", "admin"),
        )
        assert resp.status_code == 409


class TestReturns:
    async def test_partial_return_refunds_line(self, client: AsyncClient, products: dict[str, str]) -> None:
        customer = _new_customer()
        order = await _checkout(client, customer, products)
        base = f"/api/v1/orders/{order['id']}"
        admin = _auth("admin-it", "admin")
        for target, extra in (
            ("processing", {}),
            ("shipped", {"tracking": {"carrier": "DHL", "tracking_number": "JD1"}}),
            ("delivered", {}),
        ):
            resp = await client.post(f"{base}/status", json={"status": target, **extra}, headers=admin)
            assert resp.status_code == 200, resp.text

        mug = next(i for i in order["items"] if i["seller_id"] == products["seller_1"])
        resp = await client.post(
            f"{base}/returns",
            json={"lines": [{"item_id": mug["id"], "quantity": 1}], "reason": "chipped"},
            headers=_auth(customer, "customer"),
        )
        assert resp.status_code == 201
        return_id = resp.json()["data"]["returns"][0]["id"]

        seller = _auth(products["seller_1"], "seller")
        for step in ("approve", "receive", "process"):
            resp = await client.post(f"{base}/returns/{return_id}/{step}", headers=seller)
            assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["returns"][0]["refund_amount_cents"] == 100
        assert data["payment"]["status"] == "partially_refunded"
