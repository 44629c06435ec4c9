"""
User repository - encapsulates all user data access.
"""

from datetime import datetime

from sqlalchemy import select

from app.db.models.user import User
from app.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """User-specific queries. Emails are compared in their stored lowercase form."""

    def __init__(self, session):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        """Find user by email - used for sign in and reset requests."""
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_valid_reset_token(self, token: str, now: datetime) -> User | None:
        """User holding `token` whose expiry has not passed yet."""
        result = await self.session.execute(
            select(User).where(
                User.reset_token == token,
                User.reset_token_expiry.is_not(None),
                User.reset_token_expiry >= now,
            )
        )
        return result.scalars().first()
