"""
Order repository - order and charge ledger data access.
"""

from datetime import datetime

from sqlalchemy import select

from app.db.models.charge import ChargeRecord, ChargeStatus
from app.db.models.order import Order
from app.db.repositories.base_repository import BaseRepository


class OrderRepository(BaseRepository[Order]):
    def __init__(self, session):
        super().__init__(session, Order)

    async def get_by_charge_id(self, charge_id: str) -> Order | None:
        result = await self.session.execute(select(Order).where(Order.charge_id == charge_id))
        return result.scalar_one_or_none()


class ChargeRepository(BaseRepository[ChargeRecord]):
    def __init__(self, session):
        super().__init__(session, ChargeRecord)

    async def get_by_charge_id(self, charge_id: str) -> ChargeRecord | None:
        result = await self.session.execute(
            select(ChargeRecord)
            .where(ChargeRecord.charge_id == charge_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_unreconciled(self, created_before: datetime | None = None) -> list[ChargeRecord]:
        """Charges captured at the gateway that never got an order."""
        stmt = select(ChargeRecord).where(ChargeRecord.status == ChargeStatus.CAPTURED.value)
        if created_before is not None:
            stmt = stmt.where(ChargeRecord.created_at <= created_before)
        result = await self.session.execute(stmt.order_by(ChargeRecord.id))
        return list(result.scalars().all())

    async def find_captured_overlapping(self, user_id: int, cart_item_ids: list[int]) -> ChargeRecord | None:
        """A still-unfulfilled charge of this user that paid for any of these cart rows."""
        if not cart_item_ids:
            return None
        result = await self.session.execute(
            select(ChargeRecord)
            .where(ChargeRecord.user_id == user_id, ChargeRecord.status == ChargeStatus.CAPTURED.value)
            .order_by(ChargeRecord.id)
        )
        wanted = set(cart_item_ids)
        for record in result.scalars():
            if wanted.intersection(record.cart_item_ids):
                return record
        return None
