"""
Reconciliation - admin tools for charges that were captured but never became orders.
Orders are rebuilt from the line items recorded with the charge, never from the
live cart, so the order always matches what was paid for.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ReconciliationConflict
from app.core.guards import AuthContext, Permission, check_authenticated, check_permission, enforce
from app.db.models.charge import ChargeRecord, ChargeStatus
from app.db.models.order import Order
from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.order_repository import ChargeRepository, OrderRepository
from app.payments.gateway import Charge
from app.services.cart_aggregator import CartTotals, OrderItemDraft
from app.services.order_assembler import OrderAssembler

logger = logging.getLogger(__name__)


def recorded_totals(record: ChargeRecord) -> CartTotals:
    """Totals as they were when the charge was taken."""
    drafts = [OrderItemDraft(**line) for line in record.line_items]
    return CartTotals(
        total_cents=sum(d.subtotal_cents for d in drafts),
        line_items=drafts,
        cart_item_ids=list(record.cart_item_ids),
    )


class ReconciliationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.orders = OrderRepository(session)
        self.carts = CartRepository(session)
        self.charges = ChargeRepository(session)
        self.assembler = OrderAssembler(self.orders, self.carts)

    @staticmethod
    def _require_admin(auth: AuthContext) -> None:
        enforce(check_authenticated(auth))
        enforce(check_permission(auth.permissions, {Permission.ADMIN}))

    async def _record(self, charge_id: str) -> ChargeRecord:
        record = await self.charges.get_by_charge_id(charge_id)
        if record is None:
            raise NotFound(f"No charge recorded with id {charge_id}")
        return record

    async def list_unreconciled(self, auth: AuthContext) -> list[ChargeRecord]:
        self._require_admin(auth)
        return await self.charges.list_unreconciled()

    async def reconcile(self, auth: AuthContext, charge_id: str) -> Order:
        """Create the missing order for a captured charge.

        Refuses with ReconciliationConflict when the recorded line items do not
        add up to the charged amount; such a charge stays CAPTURED until voided.
        """
        self._require_admin(auth)
        record = await self._record(charge_id)
        if record.status == ChargeStatus.VOIDED.value:
            raise ReconciliationConflict(f"Charge {charge_id} was voided")

        existing = await self.orders.get_by_charge_id(charge_id)
        if existing is not None:
            record.status = ChargeStatus.FULFILLED.value
            record.order_id = existing.id
            await self.session.flush()
            return existing

        totals = recorded_totals(record)
        if totals.total_cents != record.amount_cents:
            logger.error(
                "Cannot reconcile charge %s: charged %s, line items total %s",
                charge_id, record.amount_cents, totals.total_cents,
            )
            raise ReconciliationConflict(
                f"Charge {charge_id} is for {record.amount_cents} but its items total {totals.total_cents}"
            )

        charge = Charge(id=record.charge_id, amount=record.amount_cents, currency=record.currency)
        order = await self.assembler.assemble(record.user_id, charge, totals, record)
        logger.info("Reconciled charge %s into order %s", charge_id, order.id)
        return order

    async def void(self, auth: AuthContext, charge_id: str) -> ChargeRecord:
        """Close a captured charge that was settled outside the system (e.g. refunded)."""
        self._require_admin(auth)
        record = await self._record(charge_id)
        if record.status == ChargeStatus.FULFILLED.value:
            raise ReconciliationConflict(f"Charge {charge_id} already has order {record.order_id}")
        record.status = ChargeStatus.VOIDED.value
        await self.session.flush()
        logger.warning("User %s voided charge %s (%s cents)", auth.user_id, charge_id, record.amount_cents)
        return record
