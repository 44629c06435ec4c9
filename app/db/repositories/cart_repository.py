"""
Cart repository - cart item data access.
Challenge: Concurrent add-to-cart for the same (user, item) must never create two rows.
Design: A single INSERT ... ON CONFLICT DO UPDATE backed by the unique constraint,
instead of a read-then-write from Python.
"""

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite

from app.db.models.cart_item import CartItem
from app.db.repositories.base_repository import BaseRepository

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class CartRepository(BaseRepository[CartItem]):
    def __init__(self, session):
        super().__init__(session, CartItem)

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _UPSERT_DIALECTS[dialect]
        except KeyError:
            raise NotImplementedError(f"Cart upsert is not supported on {dialect}") from None

    async def add_or_increment(self, user_id: int, item_id: int) -> CartItem:
        """Create the (user, item) row with quantity 1, or bump its quantity by 1."""
        insert = self._insert()
        stmt = insert(CartItem).values(user_id=user_id, item_id=item_id, quantity=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartItem.user_id, CartItem.item_id],
            set_={"quantity": CartItem.quantity + 1},
        ).returning(CartItem.id)
        cart_item_id = (await self.session.execute(stmt)).scalar_one()
        return await self.get_by_id(cart_item_id)

    async def list_for_user(self, user_id: int) -> list[CartItem]:
        """The user's live cart, items loaded eagerly (selectin)."""
        result = await self.session.execute(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def consume(self, user_id: int, charged: dict[int, int]) -> None:
        """Take the charged quantity out of each of this user's cart rows.

        A row is deleted once nothing unpaid is left in it; units added after the
        charge stay in the cart. Rows that no longer exist are ignored.
        """
        for cart_item_id, quantity in charged.items():
            owned = (CartItem.id == cart_item_id, CartItem.user_id == user_id)
            await self.session.execute(
                delete(CartItem)
                .where(*owned, CartItem.quantity <= quantity)
                .execution_options(synchronize_session="fetch")
            )
            await self.session.execute(
                update(CartItem)
                .where(*owned, CartItem.quantity > quantity)
                .values(quantity=CartItem.quantity - quantity)
                .execution_options(synchronize_session="fetch")
            )
