"""
Order endpoints - checkout.
"""

from fastapi import APIRouter, status

from app.core.dependencies import Auth, CheckoutLock, Gateway, SettingsDep
from app.db.session import DbSession
from app.schemas.cart import CheckoutRequest, OrderResponse
from app.services.checkout_service import CheckoutService

router = APIRouter()


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    session: DbSession,
    settings: SettingsDep,
    gateway: Gateway,
    lock: CheckoutLock,
    data: CheckoutRequest,
    auth: Auth,
):
    """Charge the caller's cart and turn it into an order."""
    svc = CheckoutService(session, gateway, lock, settings)
    return await svc.checkout(auth, data.token)
