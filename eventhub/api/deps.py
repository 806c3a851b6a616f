from typing import Optional
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.api.caller import Caller
from eventhub.auth import get_optional_user
from eventhub.db.session import get_session
from eventhub.schemas import SessionUser
from eventhub.services.auth_service import AuthService


def get_caller(
    session: AsyncSession = Depends(get_session),
    user: Optional[SessionUser] = Depends(get_optional_user),
) -> Caller:
    return Caller(session, user)


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)
