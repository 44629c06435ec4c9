"""
Order assembly - turns a confirmed charge and cart line drafts into an Order.
The order total and charge reference come from the gateway's confirmation, not
from the locally computed cart total.
"""

from dataclasses import asdict

from app.db.models.charge import ChargeRecord, ChargeStatus
from app.db.models.order import Order, OrderItem
from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.order_repository import OrderRepository
from app.payments.gateway import Charge
from app.services.cart_aggregator import CartTotals


class OrderAssembler:
    def __init__(self, orders: OrderRepository, carts: CartRepository):
        self.orders = orders
        self.carts = carts

    async def assemble(
        self,
        user_id: int,
        charge: Charge,
        totals: CartTotals,
        record: ChargeRecord,
    ) -> Order:
        """Persist order + snapshot items, clear the charged cart rows, close the ledger entry.

        Flushes only; the caller commits or rolls back the whole step.
        """
        order = Order(
            user_id=user_id,
            total_cents=charge.amount,
            currency=charge.currency,
            charge_id=charge.id,
            items=[OrderItem(user_id=user_id, **asdict(line)) for line in totals.line_items],
        )
        order = await self.orders.add(order)
        # Only what was charged; anything added since stays in the cart.
        await self.carts.consume(user_id, totals.charged_quantities)
        record.status = ChargeStatus.FULFILLED.value
        record.order_id = order.id
        await self.orders.session.flush()
        return order
