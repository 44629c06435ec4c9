"""
Item service - create, update and delete listings.
Challenge: Every write is preceded by identity, ownership and capability checks.
Design: Guards are called explicitly here; ownership is checked against the row
just read from the database, never against ids sent by the client.
"""

import logging

from app.core.errors import NotFound
from app.core.guards import (
    AuthContext,
    Allow,
    Permission,
    check_authenticated,
    check_ownership,
    check_permission,
    enforce,
)
from app.db.models.item import Item
from app.db.repositories.item_repository import ItemRepository
from app.schemas.item import ItemCreate, ItemUpdate

logger = logging.getLogger(__name__)


class ItemService:
    def __init__(self, item_repo: ItemRepository):
        self.item_repo = item_repo

    async def _owned_item(self, auth: AuthContext, item_id: int) -> Item:
        """Fetch the item and check the caller may modify it (owner, or ADMIN)."""
        enforce(check_authenticated(auth))
        item = await self.item_repo.get_by_id(item_id)
        if item is None:
            raise NotFound(f"No item found with id {item_id}")
        is_admin = isinstance(check_permission(auth.permissions, {Permission.ADMIN}), Allow)
        if not is_admin:
            enforce(check_ownership(item.owner_id, auth.user_id))
        return item

    async def create(self, auth: AuthContext, data: ItemCreate) -> Item:
        enforce(check_authenticated(auth))
        enforce(check_permission(auth.permissions, {Permission.ITEMCREATE}))
        item = Item(owner_id=auth.user_id, **data.model_dump())
        item = await self.item_repo.add(item)
        logger.info("User %s created item %s", auth.user_id, item.id)
        return item

    async def update(self, auth: AuthContext, item_id: int, data: ItemUpdate) -> Item:
        item = await self._owned_item(auth, item_id)
        enforce(check_permission(auth.permissions, {Permission.ITEMUPDATE, Permission.ADMIN}))
        item = await self.item_repo.update(item, data.model_dump(exclude_unset=True, exclude_none=True))
        logger.info("User %s updated item %s", auth.user_id, item.id)
        return item

    async def delete(self, auth: AuthContext, item_id: int) -> None:
        item = await self._owned_item(auth, item_id)
        enforce(check_permission(auth.permissions, {Permission.ITEMDELETE, Permission.ADMIN}))
        await self.item_repo.delete(item)
        logger.info("User %s deleted item %s", auth.user_id, item_id)
