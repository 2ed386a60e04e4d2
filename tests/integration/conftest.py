"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session. Requires PostgreSQL with migrations applied
(alembic upgrade head); the tests are skipped when the database is down.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from src.main import app
from src.mp_common.database import engine

_UPSERT_PRODUCT_SQL = text("""
    INSERT INTO products (id, name, seller_id, price, commission_percent, status)
    VALUES (:id, :name, :seller_id, :price, :commission_percent, 'active')
    ON CONFLICT (id) DO NOTHING
""")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client; keeps the engine pool alive."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, DBAPIError) as exc:
        pytest.skip(f"PostgreSQL not reachable: {exc}")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def products(client: AsyncClient) -> dict[str, str]:
    """Two active products from two different sellers, unique per session."""
    run = uuid.uuid4().hex[:8]
    rows = [
        {"id": f"p-mug-{run}", "name": "Mug", "seller_id": f"S1-{run}", "price": 100, "commission_percent": 10},
        {"id": f"p-poster-{run}", "name": "Poster", "seller_id": f"S2-{run}", "price": 50, "commission_percent": None},
    ]
    async with engine.begin() as conn:
        for row in rows:
            await conn.execute(_UPSERT_PRODUCT_SQL, row)
    return {
        "mug": rows[0]["id"],
        "poster": rows[1]["id"],
        "seller_1": rows[0]["seller_id"],
        "seller_2": rows[1]["seller_id"],
    }
