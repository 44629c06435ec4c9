"""
User service - signup, signin, password reset and permission management.
Token signing and hashing live in app.core.security; this class decides who gets
a token and when.
"""

import logging
from datetime import datetime, timezone, timedelta

from sqlalchemy.exc import IntegrityError

from app.config import Settings
from app.core.errors import (
    EmailTaken,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFound,
    PasswordMismatch,
)
from app.core.guards import (
    DEFAULT_PERMISSIONS,
    AuthContext,
    Permission,
    check_authenticated,
    check_permission,
    enforce,
)
from app.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
)
from app.db.models.user import User
from app.db.repositories.user_repository import UserRepository
from app.schemas.user import (
    PermissionsUpdate,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
)
from app.services.notification_service import ResetNotifier

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, user_repo: UserRepository, settings: Settings):
        self.user_repo = user_repo
        self.settings = settings

    def issue_token(self, user: User) -> str:
        return create_access_token(user.id, self.settings)

    async def signup(self, data: SignupRequest) -> User:
        email = data.email.lower()
        if await self.user_repo.get_by_email(email):
            raise EmailTaken()
        user = User(
            email=email,
            name=data.name,
            hashed_password=hash_password(data.password),
            permissions=[p.value for p in DEFAULT_PERMISSIONS],
        )
        try:
            user = await self.user_repo.add(user)
        except IntegrityError as exc:
            raise EmailTaken() from exc
        logger.info("Signed up user %s", user.id)
        return user

    async def signin(self, data: SigninRequest) -> User:
        user = await self.user_repo.get_by_email(data.email)
        if user is None:
            raise InvalidCredentials(f"No such user found for email {data.email}")
        if not verify_password(data.password, user.hashed_password):
            raise InvalidCredentials("Invalid password!")
        return user

    async def request_reset(self, email: str, notifier: ResetNotifier) -> None:
        user = await self.user_repo.get_by_email(email)
        if user is None:
            raise NotFound(f"No such user found for email {email}")
        token = generate_reset_token()
        expiry = datetime.now(timezone.utc) + timedelta(seconds=self.settings.reset_token_ttl_seconds)
        await self.user_repo.update(user, {"reset_token": token, "reset_token_expiry": expiry})
        notifier.send_reset(user.email, token)
        logger.info("Issued password reset token for user %s", user.id)

    async def reset_password(self, data: ResetPasswordRequest) -> User:
        if data.password != data.confirm_password:
            raise PasswordMismatch()
        user = await self.user_repo.get_by_valid_reset_token(data.reset_token, datetime.now(timezone.utc))
        if user is None:
            raise InvalidOrExpiredToken()
        return await self.user_repo.update(
            user,
            {
                "hashed_password": hash_password(data.password),
                "reset_token": None,
                "reset_token_expiry": None,
            },
        )

    async def update_permissions(self, auth: AuthContext, data: PermissionsUpdate) -> User:
        """Replace (not merge) the target user's permissions. Needs ADMIN or PERMISSIONUPDATE."""
        enforce(check_authenticated(auth))
        caller = await self.user_repo.get_by_id(auth.user_id)
        enforce(
            check_permission(
                caller.permissions if caller else None,
                {Permission.ADMIN, Permission.PERMISSIONUPDATE},
            )
        )
        target = await self.user_repo.get_by_id(data.user_id)
        if target is None:
            raise NotFound(f"No user found with id {data.user_id}")
        permissions = list(dict.fromkeys(p.value for p in data.permissions))
        target = await self.user_repo.update(target, {"permissions": permissions})
        logger.info("User %s set permissions of user %s to %s", auth.user_id, target.id, permissions)
        return target
