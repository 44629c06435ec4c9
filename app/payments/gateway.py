"""Payment gateway port (abstract interface).

Exchanges a client-supplied payment token plus an amount for a confirmed
charge. Adapters: StripeGateway (production, HTTP) and FakeGateway (dev/test).
Implementations raise PaymentFailed / PaymentTimeout; they never retry a charge.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache

from app.config import Settings, get_settings


@dataclass(frozen=True)
class Charge:
    """Gateway confirmation of a completed charge."""

    id: str
    amount: int
    currency: str


class PaymentGateway(ABC):
    @abstractmethod
    async def charge(self, amount: int, currency: str, source: str) -> Charge:
        """Charge `amount` minor units of `currency` against the `source` token."""
        ...


def build_gateway(settings: Settings) -> PaymentGateway:
    from app.payments.fake_gateway import FakeGateway
    from app.payments.stripe_gateway import StripeGateway

    if settings.payment_gateway == "stripe":
        return StripeGateway(
            api_key=settings.stripe_api_key,
            api_base=settings.stripe_api_base,
            timeout=settings.payment_timeout_seconds,
        )
    if settings.payment_gateway == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {settings.payment_gateway}")


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency; overridden in tests."""
    return build_gateway(get_settings())
