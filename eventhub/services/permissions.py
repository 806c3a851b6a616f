from eventhub.core.exceptions import ForbiddenError
from eventhub.schemas import SessionUser


def is_owner(user: SessionUser, owner_id: str) -> bool:
    return user.id == owner_id


def ensure_owner(user: SessionUser, owner_id: str, message: str) -> None:
    """Raise ForbiddenError unless `user` is the owner. Call before mutating."""
    if not is_owner(user, owner_id):
        raise ForbiddenError(message)
