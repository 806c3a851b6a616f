from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.core.config import settings
from eventhub.core.security import decode_token, is_token_revoked
from eventhub.db.models.user import User
from eventhub.db.repositories import get_user
from eventhub.db.session import get_session
from eventhub.schemas import SessionUser

# API clients send a Bearer token; browsers carry the same token in a cookie
security = HTTPBearer(auto_error=False)


def get_request_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def authenticate_token(token: str, session: AsyncSession) -> User:
    """
    Resolve an access token to its user.

    Raises:
        HTTPException: 401 if the token is revoked, invalid, not an access
            token, or points at a user that no longer exists
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if await is_token_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(token)
    except ValueError:
        raise credentials_exception

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_user(session, payload["sub"])
    if not user:
        raise credentials_exception
    return user


async def get_current_user(
    token: Optional[str] = Depends(get_request_token),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Require a valid token and return the signed-in user."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await authenticate_token(token, session)


async def get_optional_user(
    token: Optional[str] = Depends(get_request_token),
    session: AsyncSession = Depends(get_session),
) -> Optional[SessionUser]:
    """The signed-in user as a plain snapshot, or None for anonymous requests."""
    if not token:
        return None
    try:
        user = await authenticate_token(token, session)
    except HTTPException:
        return None
    return SessionUser.model_validate(user)
