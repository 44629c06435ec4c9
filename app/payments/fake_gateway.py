"""Configurable fake payment gateway for development and testing.

No external calls. Records every charge attempt so tests can assert that a
checkout charged exactly once, and can be told to decline or to hang.
"""

import asyncio
from collections.abc import Awaitable, Callable
from uuid import uuid4

from app.core.errors import PaymentFailed
from app.payments.gateway import Charge, PaymentGateway


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.delay_seconds: float = 0
        self.on_charge: Callable[[], Awaitable[None]] | None = None
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def charge(self, amount: int, currency: str, source: str) -> Charge:
        self.calls.append({"amount": amount, "currency": currency, "source": source})
        if self.on_charge is not None:
            await self.on_charge()
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if not self.should_succeed:
            raise PaymentFailed(self.failure_reason)
        return Charge(id=f"ch_fake_{uuid4().hex[:16]}", amount=amount, currency=currency)
