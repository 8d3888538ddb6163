"""
Shared router dependencies: authentication and service wiring.
"""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import get_db_session
from heartcart.core.logging import bind_user
from heartcart.core.security import decode_access_token
from heartcart.models.user import User
from heartcart.repositories.user import UserRepository
from heartcart.services.object_store import ObjectStore, get_object_store

bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    session: AsyncSession,
) -> Optional[User]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        return None
    user = await UserRepository(session).get_by_id(payload["sub"])
    if not user or not user.is_active:
        return None
    bind_user(user.id)
    return user


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Optional[User]:
    """Current user when a valid token is sent, otherwise None."""
    return await _user_from_token(credentials, session)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> User:
    """Require an authenticated, active user."""
    user = await _user_from_token(credentials, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require an administrator."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(require_admin)]
Store = Annotated[ObjectStore, Depends(get_object_store)]
