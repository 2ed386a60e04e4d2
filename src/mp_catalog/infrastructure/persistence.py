"""Catalog reader: raw SQL over the `products` read model."""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_catalog.domain.models import ProductSnapshot

_GET_PRODUCT_SQL = text("""
    SELECT id, name, seller_id, price, commission_percent, status, currency, variant_prices
    FROM products WHERE id = :id
""")


def _row_to_snapshot(row: Any) -> ProductSnapshot:
    commission = row.commission_percent
    return ProductSnapshot(
        product_id=row.id,
        name=row.name,
        seller_id=row.seller_id,
        price=row.price,
        commission_percent=Decimal(str(commission)) if commission is not None else None,
        status=row.status,
        currency=row.currency,
        variant_prices={k: int(v) for k, v in (row.variant_prices or {}).items()},
    )


class CatalogReader:
    """Concrete implementation of CatalogProtocol using raw SQL."""

    async def get_product_snapshot(
        self, db: AsyncSession, product_id: str
    ) -> ProductSnapshot | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"id": product_id})
        row = result.fetchone()
        return _row_to_snapshot(row) if row else None
