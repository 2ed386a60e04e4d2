"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. Only the
fake adapter ships with this service; real adapters are registered by the
deployment through set_gateway().
"""

from config.settings import settings
from src.mp_payment.gateway.fake_adapter import FakeGateway
from src.mp_payment.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway(name: str) -> PaymentGateway:
    if name == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown PAYMENT_GATEWAY: {name!r}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from PAYMENT_GATEWAY on first use."""
    global _current_gateway  # noqa: PLW0603
    if _current_gateway is None:
        _current_gateway = _build_gateway(settings.PAYMENT_GATEWAY)
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway  # noqa: PLW0603
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway  # noqa: PLW0603
    _current_gateway = None
