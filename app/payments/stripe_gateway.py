"""Stripe payment gateway adapter.

Creates charges through Stripe's REST API (`POST /v1/charges`) with httpx.
Each call sends a fresh Idempotency-Key and is never retried here; a timeout is
reported as PaymentTimeout and an unreadable success body as PaymentUnconfirmed,
because in both cases the charge may have been created anyway.
"""

import logging
from uuid import uuid4

import httpx

from app.core.errors import PaymentFailed, PaymentTimeout, PaymentUnconfirmed
from app.payments.gateway import Charge, PaymentGateway

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.stripe.com",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base,
            auth=(self.api_key, ""),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def charge(self, amount: int, currency: str, source: str) -> Charge:
        idempotency_key = uuid4().hex
        try:
            async with self._client() as client:
                response = await client.post(
                    "/v1/charges",
                    data={"amount": str(amount), "currency": currency, "source": source},
                    headers={"Idempotency-Key": idempotency_key},
                )
        except httpx.TimeoutException as exc:
            logger.error("Stripe charge timed out (idempotency_key=%s): %s", idempotency_key, exc)
            raise PaymentTimeout() from exc
        except httpx.HTTPError as exc:
            raise PaymentFailed(f"Payment gateway unreachable: {exc}") from exc

        body = _json_or_empty(response)
        if response.is_error:
            error = body.get("error") or {}
            message = error.get("message") or f"Payment gateway returned {response.status_code}"
            logger.warning("Stripe declined charge: %s (%s)", message, error.get("code"))
            raise PaymentFailed(message)

        try:
            return Charge(id=body["id"], amount=int(body["amount"]), currency=body.get("currency", currency))
        except (KeyError, TypeError, ValueError) as exc:
            # Stripe said yes; the charge may exist even though we cannot read it.
            reference = body.get("id") or idempotency_key
            logger.error(
                "Unreadable Stripe charge response (reference=%s, idempotency_key=%s): %r",
                reference, idempotency_key, body,
            )
            raise PaymentUnconfirmed(str(reference)) from exc


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
