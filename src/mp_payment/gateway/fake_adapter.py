"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. It can be configured at
runtime to succeed, decline, or stall, which makes it useful for automated
tests with predictable outcomes and for local development.
"""

import asyncio
from typing import Any
from uuid import uuid4

from src.mp_common.enums import PaymentMethod
from src.mp_payment.gateway.port import GatewayResult, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.failing_operations: set[str] | None = None
        self.delay_seconds: float = 0.0
        self.calls: list[dict[str, Any]] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        operations: set[str] | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime.

        `operations` limits failures to the named calls ("authorize",
        "capture", "refund"); None means every call follows `should_succeed`.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failing_operations = operations
        self.delay_seconds = delay_seconds

    def _succeeds(self, operation: str) -> bool:
        if self.should_succeed:
            return True
        return self.failing_operations is not None and operation not in self.failing_operations

    async def _call(self, operation: str, prefix: str, **details: Any) -> GatewayResult:
        self.calls.append({"method": operation, **details})
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self._succeeds(operation):
            return GatewayResult(
                success=True,
                transaction_ref=f"{prefix}_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return GatewayResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )

    async def authorize(
        self,
        amount: int,
        currency: str,
        method: PaymentMethod,
        idempotency_key: str,
    ) -> GatewayResult:
        return await self._call(
            "authorize",
            "fake_auth",
            amount=amount,
            currency=currency,
            payment_method=method.value,
            idempotency_key=idempotency_key,
        )

    async def capture(self, transaction_ref: str, amount: int) -> GatewayResult:
        result = await self._call(
            "capture", "fake_cap", transaction_ref=transaction_ref, amount=amount
        )
        if result.success:
            # Captures keep the authorization's reference.
            return GatewayResult(success=True, transaction_ref=transaction_ref, gateway_status="succeeded")
        return result

    async def refund(self, transaction_ref: str, amount: int, reason: str) -> GatewayResult:
        return await self._call(
            "refund",
            "fake_ref",
            transaction_ref=transaction_ref,
            amount=amount,
            reason=reason,
        )
