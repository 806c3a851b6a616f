"""Authentication routes for registration, login, logout, and token management."""
from fastapi import APIRouter, Depends, Request, status
from typing import Optional
from eventhub.schemas import UserCreate, UserOut, Token, TokenResponse, LoginRequest, RefreshTokenRequest
from eventhub.services.auth_service import AuthService
from eventhub.api.deps import get_auth_service
from eventhub.auth import get_current_user, get_request_token
from eventhub.core.rate_limit import limiter
from eventhub.db.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserOut)
@limiter.limit("3/minute")
async def register(
    request: Request,
    payload: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user account.

    Rate limit: 3 requests per minute
    """
    return await auth_service.register(payload)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    form_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Exchange credentials for access and refresh tokens.

    Rate limit: 5 requests per minute
    """
    return await auth_service.login(form_data)


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    payload: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.refresh_access_token(payload.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Optional[str] = Depends(get_request_token),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Revoke the token used for this request."""
    await auth_service.logout(token)
    return None


@router.get("/me", response_model=UserOut)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    return current_user
