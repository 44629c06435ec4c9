"""
User endpoints - signup, signin, signout, password reset, permissions.
Signin-like endpoints return the JWT and also set it as an httpOnly cookie.
"""

from fastapi import APIRouter, Response, status

from app.config import Settings
from app.core.dependencies import SESSION_COOKIE, Auth, Notifier, SettingsDep
from app.db.models.user import User
from app.db.repositories.user_repository import UserRepository
from app.db.session import DbSession
from app.schemas.user import (
    AuthResponse,
    MessageResponse,
    PermissionsUpdate,
    ResetPasswordRequest,
    ResetRequest,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from app.services.user_service import UserService

router = APIRouter()


def _get_user_service(session: DbSession, settings: Settings) -> UserService:
    return UserService(UserRepository(session), settings)


def _signed_in(response: Response, svc: UserService, user: User) -> AuthResponse:
    token = svc.issue_token(user)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        httponly=True,
        secure=svc.settings.cookie_secure,
        max_age=svc.settings.jwt_expire_minutes * 60,
    )
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(session: DbSession, settings: SettingsDep, data: SignupRequest, response: Response):
    """Create account with default permissions and sign it in."""
    svc = _get_user_service(session, settings)
    user = await svc.signup(data)
    return _signed_in(response, svc, user)


@router.post("/signin", response_model=AuthResponse)
async def signin(session: DbSession, settings: SettingsDep, data: SigninRequest, response: Response):
    svc = _get_user_service(session, settings)
    user = await svc.signin(data)
    return _signed_in(response, svc, user)


@router.post("/signout", response_model=MessageResponse)
async def signout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return MessageResponse(message="Signed out successfully")


@router.post("/request-reset", response_model=MessageResponse)
async def request_reset(session: DbSession, settings: SettingsDep, data: ResetRequest, notifier: Notifier):
    """Issue a one hour reset token and email the reset link."""
    svc = _get_user_service(session, settings)
    await svc.request_reset(data.email, notifier)
    return MessageResponse(message="Success!")


@router.post("/reset-password", response_model=AuthResponse)
async def reset_password(
    session: DbSession, settings: SettingsDep, data: ResetPasswordRequest, response: Response
):
    svc = _get_user_service(session, settings)
    user = await svc.reset_password(data)
    return _signed_in(response, svc, user)


@router.put("/permissions", response_model=UserResponse)
async def update_permissions(session: DbSession, settings: SettingsDep, data: PermissionsUpdate, auth: Auth):
    """Replace a user's permission set. Requires ADMIN or PERMISSIONUPDATE."""
    svc = _get_user_service(session, settings)
    return await svc.update_permissions(auth, data)
