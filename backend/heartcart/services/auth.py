"""
Authentication service - registration, login and token issuing.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import utcnow
from heartcart.core.exceptions import AuthenticationError, ConflictError
from heartcart.core.logging import get_logger
from heartcart.core.security import create_access_token, hash_password, verify_password
from heartcart.models.user import User, UserRole
from heartcart.repositories.user import UserRepository

logger = get_logger(__name__)


def issue_token(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


class AuthService:
    """Account registration and credential checks."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        email = email.strip().lower()
        username = username.strip()
        if await self.users.get_by_username(username):
            raise ConflictError("Username is already taken")
        if await self.users.get_by_email(email):
            raise ConflictError("Email is already registered")

        user = await self.users.create(
            {
                "username": username,
                "email": email,
                "password_hash": hash_password(password),
                "full_name": full_name,
                "phone_number": phone_number,
                "role": role.value,
            }
        )
        logger.info("User registered", user_id=str(user.id), username=username)
        return user

    async def authenticate(self, username_or_email: str, password: str) -> User:
        user = await self.users.get_by_login(username_or_email.strip())
        if not user or not verify_password(password, user.password_hash):
            logger.info("Login failed", login=username_or_email)
            raise AuthenticationError("Invalid username or password")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")

        user.last_login = utcnow()
        await self.session.flush()
        logger.info("User logged in", user_id=str(user.id))
        return user
