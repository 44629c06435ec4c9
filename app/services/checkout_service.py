"""
Checkout - converts the caller's cart into a paid order.

Authenticated -> TotalComputed -> Charged -> OrderPersisted -> CartCleared,
any step may end in a failure. The charge is attempted exactly once. Once it has
succeeded, its id is logged and committed to the charge ledger before the order
is written, so a failed order write can be reconciled later.
"""

import asyncio
import logging
from dataclasses import asdict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache.redis_client import UserLock
from app.config import Settings
from app.core.errors import (
    EmptyCart,
    MutationError,
    PaymentFailed,
    PaymentTimeout,
    PaymentUnconfirmed,
    PendingReconciliation,
    UnreconciledCharge,
)
from app.core.guards import AuthContext, check_authenticated, enforce
from app.core.metrics import CHECKOUTS, UNRECONCILED_CHARGES
from app.db.models.charge import ChargeRecord, ChargeStatus
from app.db.models.order import Order
from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.order_repository import ChargeRepository, OrderRepository
from app.payments.gateway import Charge, PaymentGateway
from app.services.cart_aggregator import CartTotals, aggregate
from app.services.order_assembler import OrderAssembler

logger = logging.getLogger(__name__)


class CheckoutService:
    def __init__(
        self,
        session: AsyncSession,
        gateway: PaymentGateway,
        lock: UserLock,
        settings: Settings,
    ):
        self.session = session
        self.gateway = gateway
        self.lock = lock
        self.settings = settings
        self.carts = CartRepository(session)
        self.charges = ChargeRepository(session)
        self.assembler = OrderAssembler(OrderRepository(session), self.carts)

    async def checkout(self, auth: AuthContext, token: str) -> Order:
        enforce(check_authenticated(auth))
        user_id = auth.user_id
        try:
            async with self.lock.hold(user_id):
                order = await self._checkout(user_id, token)
        except MutationError as exc:
            CHECKOUTS.labels(outcome=exc.kind.lower()).inc()
            raise
        CHECKOUTS.labels(outcome="success").inc()
        return order

    async def _checkout(self, user_id: int, token: str) -> Order:
        totals = aggregate(await self.carts.list_for_user(user_id))
        if totals.is_empty and not self.settings.allow_empty_checkout:
            raise EmptyCart()
        pending = await self.charges.find_captured_overlapping(user_id, totals.cart_item_ids)
        if pending is not None:
            logger.warning(
                "Refusing checkout for user %s: cart rows already paid by unreconciled charge %s",
                user_id, pending.charge_id,
            )
            raise PendingReconciliation(pending.charge_id)

        charge = await self._charge(user_id, totals.total_cents, token)
        record = await self._record_charge(user_id, charge, totals)

        if charge.amount != totals.total_cents:
            UNRECONCILED_CHARGES.inc()
            logger.error(
                "Charge %s confirmed %s but cart total was %s for user %s; order not created",
                charge.id, charge.amount, totals.total_cents, user_id,
            )
            raise UnreconciledCharge(charge.id, "Charged amount differs from the cart total")

        try:
            order = await self.assembler.assemble(user_id, charge, totals, record)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            UNRECONCILED_CHARGES.inc()
            logger.exception("Order write failed after charge %s for user %s", charge.id, user_id)
            raise UnreconciledCharge(charge.id) from exc

        logger.info("Order %s created from charge %s (%s cents)", order.id, charge.id, order.total_cents)
        return order

    async def _charge(self, user_id: int, amount: int, token: str) -> Charge:
        currency = self.settings.payment_currency
        logger.info("Charging user %s %s %s", user_id, amount, currency)
        try:
            return await asyncio.wait_for(
                self.gateway.charge(amount, currency, token),
                timeout=self.settings.payment_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Payment gateway timed out for user %s; charge outcome unknown", user_id)
            raise PaymentTimeout() from exc
        except PaymentUnconfirmed as exc:
            UNRECONCILED_CHARGES.inc()
            logger.error("Charge for user %s unconfirmed (reference %s); check the gateway", user_id, exc.reference)
            raise
        except MutationError:
            raise
        except Exception as exc:
            raise PaymentFailed(f"Payment gateway error: {exc}") from exc

    async def _record_charge(self, user_id: int, charge: Charge, totals: CartTotals) -> ChargeRecord:
        # The log line is the record of last resort if the ledger write fails too.
        logger.warning(
            "Charge %s captured for user %s: %s %s (cart items %s)",
            charge.id, user_id, charge.amount, charge.currency, totals.cart_item_ids,
        )
        record = ChargeRecord(
            charge_id=charge.id,
            user_id=user_id,
            amount_cents=charge.amount,
            currency=charge.currency,
            status=ChargeStatus.CAPTURED.value,
            cart_item_ids=list(totals.cart_item_ids),
            line_items=[asdict(line) for line in totals.line_items],
        )
        try:
            record = await self.charges.add(record)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            UNRECONCILED_CHARGES.inc()
            logger.critical("Could not record charge %s for user %s", charge.id, user_id)
            raise UnreconciledCharge(charge.id) from exc
        return record
