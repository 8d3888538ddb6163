"""
Authentication API routes.
"""
from fastapi import APIRouter, status

from heartcart.core.database import DbSession
from heartcart.core.security import token_lifetime
from heartcart.routers.deps import CurrentUser
from heartcart.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from heartcart.services.auth import AuthService, issue_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user) -> TokenResponse:
    return TokenResponse(
        access_token=issue_token(user),
        expires_in=int(token_lifetime().total_seconds()),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, session: DbSession) -> TokenResponse:
    """Create an account and return an access token for it."""
    user = await AuthService(session).register(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        phone_number=payload.phone_number,
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, session: DbSession) -> TokenResponse:
    """Exchange a username or email and password for an access token."""
    user = await AuthService(session).authenticate(payload.username, payload.password)
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(user)
