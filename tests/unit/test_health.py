from unittest.mock import AsyncMock, patch

from httpx import AsyncClient


async def test_liveness(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_ready_when_database_answers(client: AsyncClient) -> None:
    with patch("src.main.check_database", AsyncMock()):
        resp = await client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"] == {"database": "ok"}


async def test_degraded_when_database_is_down(client: AsyncClient) -> None:
    with patch("src.main.check_database", AsyncMock(side_effect=OSError("refused"))):
        resp = await client.get("/health/ready")
    assert resp.status_code == 503
    assert resp.json()["status"] == "degraded"


async def test_request_id_is_minted(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.headers["x-request-id"].startswith("req_")
