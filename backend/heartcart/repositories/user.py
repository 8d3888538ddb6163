"""
User repository for account lookups.
"""
from typing import Optional

from sqlalchemy import func, or_, select

from heartcart.models.user import User
from heartcart.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    model = User

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._first(select(User).where(User.username == username))

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._first(select(User).where(func.lower(User.email) == email.lower()))

    async def get_by_login(self, username_or_email: str) -> Optional[User]:
        """Find a user by username or (case-insensitive) email."""
        return await self._first(
            select(User).where(
                or_(
                    User.username == username_or_email,
                    func.lower(User.email) == username_or_email.lower(),
                )
            )
        )
