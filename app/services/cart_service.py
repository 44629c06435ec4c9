"""
Cart service - add to and remove from the caller's cart.
"""

import logging

from app.core.errors import NotFound
from app.core.guards import AuthContext, check_authenticated, check_ownership, enforce
from app.db.models.cart_item import CartItem
from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.item_repository import ItemRepository

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, cart_repo: CartRepository, item_repo: ItemRepository):
        self.cart_repo = cart_repo
        self.item_repo = item_repo

    async def add(self, auth: AuthContext, item_id: int) -> CartItem:
        """Put one more of `item_id` in the caller's cart (new row or quantity + 1)."""
        enforce(check_authenticated(auth))
        if await self.item_repo.get_by_id(item_id) is None:
            raise NotFound(f"No item found with id {item_id}")
        cart_item = await self.cart_repo.add_or_increment(auth.user_id, item_id)
        logger.info("User %s cart: item %s x%s", auth.user_id, item_id, cart_item.quantity)
        return cart_item

    async def remove(self, auth: AuthContext, cart_item_id: int) -> CartItem:
        enforce(check_authenticated(auth))
        cart_item = await self.cart_repo.get_by_id(cart_item_id)
        if cart_item is None:
            raise NotFound("No cart item found")
        enforce(check_ownership(cart_item.user_id, auth.user_id))
        await self.cart_repo.delete(cart_item)
        return cart_item
