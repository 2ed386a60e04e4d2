"""Payment gateway port (abstract interface).

The order engine only needs three capabilities: authorize an amount, capture
a previous authorization and refund against a transaction. Wire protocols
live in the adapters. Every call is fallible and possibly slow; adapters
report declines and errors as an unsuccessful GatewayResult and only raise
for programming errors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.mp_common.enums import PaymentMethod


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of a gateway call."""

    success: bool
    transaction_ref: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def authorize(
        self,
        amount: int,
        currency: str,
        method: PaymentMethod,
        idempotency_key: str,
    ) -> GatewayResult:
        """Hold `amount` cents on the customer's payment method."""
        ...

    @abstractmethod
    async def capture(self, transaction_ref: str, amount: int) -> GatewayResult:
        """Capture a previous authorization."""
        ...

    @abstractmethod
    async def refund(self, transaction_ref: str, amount: int, reason: str) -> GatewayResult:
        """Refund (part of) a previous charge."""
        ...
