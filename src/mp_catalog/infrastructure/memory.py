"""In-process catalog for tests and local development."""

from collections.abc import Iterable
from typing import Any

from src.mp_catalog.domain.models import ProductSnapshot


class StaticCatalog:
    def __init__(self, products: Iterable[ProductSnapshot] = ()) -> None:
        self._products = {p.product_id: p for p in products}

    def add(self, product: ProductSnapshot) -> None:
        self._products[product.product_id] = product

    async def get_product_snapshot(self, db: Any, product_id: str) -> ProductSnapshot | None:
        return self._products.get(product_id)
