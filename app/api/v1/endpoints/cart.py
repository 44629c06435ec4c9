"""
Cart endpoints - add/remove items in the caller's cart.
"""

from fastapi import APIRouter

from app.core.dependencies import Auth
from app.db.repositories.cart_repository import CartRepository
from app.db.repositories.item_repository import ItemRepository
from app.db.session import DbSession
from app.schemas.cart import AddToCartRequest, CartItemResponse
from app.services.cart_service import CartService

router = APIRouter()


def _get_cart_service(session: DbSession) -> CartService:
    return CartService(CartRepository(session), ItemRepository(session))


@router.post("/items", response_model=CartItemResponse)
async def add_to_cart(session: DbSession, data: AddToCartRequest, auth: Auth):
    """Add one of an item; repeated adds increase the quantity."""
    return await _get_cart_service(session).add(auth, data.item_id)


@router.delete("/items/{cart_item_id}", response_model=CartItemResponse)
async def remove_from_cart(session: DbSession, cart_item_id: int, auth: Auth):
    return await _get_cart_service(session).remove(auth, cart_item_id)
