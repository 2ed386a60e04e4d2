"""Catalog read model consumed at checkout.

The order engine never owns products. At checkout it reads one snapshot per
line (name, seller, price, commission rate) and copies those values into the
order item, so later catalog edits do not affect placed orders.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol

PRODUCT_STATUS_ACTIVE = "active"


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: str
    name: str
    seller_id: str
    price: int  # cents
    commission_percent: Decimal | None = None  # None -> marketplace default
    status: str = PRODUCT_STATUS_ACTIVE
    currency: str = "USD"
    # Variant label ("Size: Large") -> additional price in cents
    variant_prices: dict[str, int] = field(default_factory=dict)

    @property
    def is_purchasable(self) -> bool:
        return self.status == PRODUCT_STATUS_ACTIVE

    def unit_price(self, variant: str | None) -> int | None:
        """Base price plus the variant surcharge; None if the variant is unknown."""
        if variant is None:
            return self.price
        if variant not in self.variant_prices:
            return None
        return self.price + self.variant_prices[variant]


class CatalogProtocol(Protocol):
    async def get_product_snapshot(self, db: Any, product_id: str) -> ProductSnapshot | None: ...
