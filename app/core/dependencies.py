"""
FastAPI dependencies - request-scoped AuthContext and injected collaborators.
Challenge: Resolve identity once per request; let handlers decide what it allows.
"""

from typing import Annotated

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.cache.redis_client import UserLock, get_checkout_lock
from app.config import Settings, get_settings
from app.core.guards import AuthContext
from app.core.security import decode_access_token
from app.db.repositories.user_repository import UserRepository
from app.db.session import DbSession
from app.payments.gateway import PaymentGateway, get_payment_gateway
from app.services.notification_service import ResetNotifier, get_reset_notifier

security = HTTPBearer(auto_error=False)

SESSION_COOKIE = "token"

SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_auth_context(
    session: DbSession,
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    token: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> AuthContext:
    """Bearer header first, then the session cookie. Anything invalid means anonymous."""
    raw = credentials.credentials if credentials else token
    if not raw:
        return AuthContext()
    payload = decode_access_token(raw, settings)
    if not payload or "sub" not in payload:
        return AuthContext()
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return AuthContext()
    user = await UserRepository(session).get_by_id(user_id)
    if not user or not user.is_active:
        return AuthContext()
    return AuthContext(user_id=user.id, user=user)


Auth = Annotated[AuthContext, Depends(get_auth_context)]
Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]
CheckoutLock = Annotated[UserLock, Depends(get_checkout_lock)]
Notifier = Annotated[ResetNotifier, Depends(get_reset_notifier)]
