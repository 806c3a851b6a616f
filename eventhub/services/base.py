"""Shared plumbing for domain services."""
from functools import wraps
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.core.exceptions import DomainError, InternalError, UnauthenticatedError
from eventhub.core.logging import logger
from eventhub.schemas import SessionUser


def translate_errors(message: str):
    """
    Decorator for service methods.

    Rolls back the session on any failure. Domain errors propagate as they
    are; anything else is logged and re-raised as InternalError(message).

    Usage:
        @translate_errors("Failed to fetch events")
        async def list_all(self): ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except DomainError:
                await self._rollback()
                raise
            except Exception as e:
                await self._rollback()
                logger.exception(f"{message}: {e}")
                raise InternalError(message) from e
        return wrapper
    return decorator


class BaseService:
    """A service bound to one request: its session and its (optional) user."""

    def __init__(self, session: AsyncSession, user: Optional[SessionUser] = None):
        self.session = session
        self.user = user

    def require_user(self) -> SessionUser:
        if self.user is None:
            raise UnauthenticatedError()
        return self.user

    async def _rollback(self) -> None:
        if self.session.in_transaction():
            await self.session.rollback()
