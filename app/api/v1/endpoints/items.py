"""
Item mutation endpoints (POST/PUT/DELETE).
Design: Thin controller; ItemService runs the guards and the write.
"""

from fastapi import APIRouter, status

from app.core.dependencies import Auth
from app.db.repositories.item_repository import ItemRepository
from app.db.session import DbSession
from app.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from app.services.item_service import ItemService

router = APIRouter()


def _get_item_service(session: DbSession) -> ItemService:
    """Factory for service with repository injection (Dependency Inversion)."""
    return ItemService(ItemRepository(session))


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(session: DbSession, data: ItemCreate, auth: Auth):
    """Create item owned by the caller. Requires ITEMCREATE."""
    return await _get_item_service(session).create(auth, data)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(session: DbSession, item_id: int, data: ItemUpdate, auth: Auth):
    """Update own item. Requires ITEMUPDATE."""
    return await _get_item_service(session).update(auth, item_id, data)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(session: DbSession, item_id: int, auth: Auth):
    """Delete own item. Requires ITEMDELETE."""
    await _get_item_service(session).delete(auth, item_id)
