"""
Repository layer for database operations.

Async functions for reading and writing users, accounts, events and RSVPs.
Functions that write commit their own transaction; everything read before
that commit (including row locks) belongs to the same transaction.
"""
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from eventhub.db.models.user import User, Account
from eventhub.db.models.event import Event
from eventhub.db.models.rsvp import RSVP, RSVPStatusEnum
from eventhub.db.session import utcnow
from eventhub.schemas import UserCreate, EventCreate
from eventhub.core.exceptions import DuplicateRSVPError
from eventhub.core.security import hash_password
from typing import Optional, List

UNIQUE_RSVP_CONSTRAINT = "uq_user_event_rsvp"


async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    """
    Create a user together with its credential account.

    Args:
        db: Database session
        user_in: Signup data

    Returns:
        Created User object
    """
    user = User(name=user_in.name, email=user_in.email)
    user.accounts.append(
        Account(provider_id="credential", hashed_password=hash_password(user_in.password))
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_credential_account(db: AsyncSession, user_id: str) -> Optional[Account]:
    q = select(Account).where(Account.user_id == user_id, Account.provider_id == "credential")
    res = await db.execute(q)
    return res.scalars().first()


async def list_accounts(db: AsyncSession) -> List[Account]:
    """All accounts with their user's profile loaded."""
    q = select(Account).options(selectinload(Account.user)).order_by(Account.created_at)
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_event(db: AsyncSession, payload: EventCreate, creator_id: str) -> Optional[Event]:
    """
    Insert a new event owned by `creator_id`.

    Returns:
        The stored Event, or None if the insert produced no row
    """
    ev = Event(**payload.model_dump(), created_by=creator_id)
    db.add(ev)
    await db.commit()
    return await get_event(db, ev.id)


async def list_events(db: AsyncSession) -> List[Event]:
    """All events, newest first, with their creator loaded."""
    q = select(Event).options(selectinload(Event.creator)).order_by(Event.created_at.desc())
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_event(db: AsyncSession, event_id: str, for_update: bool = False) -> Optional[Event]:
    """
    Retrieve an event by id with its creator loaded.

    Args:
        db: Database session
        event_id: Event id
        for_update: Lock the event row until the transaction ends. Used to
            serialize capacity checks for one event.

    Returns:
        Event object if found, None otherwise
    """
    q = select(Event).where(Event.id == event_id).options(selectinload(Event.creator))
    if for_update:
        q = q.with_for_update(of=Event)
    res = await db.execute(q)
    return res.scalars().first()


async def list_events_created_by(db: AsyncSession, user_id: str) -> List[Event]:
    """Events owned by `user_id` with their RSVPs and each RSVP's user loaded."""
    q = (
        select(Event)
        .where(Event.created_by == user_id)
        .options(selectinload(Event.rsvps).selectinload(RSVP.user))
        .order_by(Event.created_at.desc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def count_attending_rsvps(db: AsyncSession, event_id: str) -> int:
    """Live count of attending RSVPs for an event."""
    q = select(func.count(RSVP.id)).where(
        RSVP.event_id == event_id,
        RSVP.status == RSVPStatusEnum.attending,
    )
    res = await db.execute(q)
    return res.scalar() or 0


async def get_rsvp(db: AsyncSession, rsvp_id: str, for_update: bool = False) -> Optional[RSVP]:
    """
    Retrieve an RSVP by id.

    Args:
        db: Database session
        rsvp_id: RSVP id
        for_update: Lock the row and overwrite any copy already in the
            session with the committed values.
    """
    q = select(RSVP).where(RSVP.id == rsvp_id)
    if for_update:
        q = q.with_for_update().execution_options(populate_existing=True)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user_rsvp_for_event(db: AsyncSession, user_id: str, event_id: str) -> Optional[RSVP]:
    q = select(RSVP).where(
        RSVP.user_id == user_id,
        RSVP.event_id == event_id,
    )
    res = await db.execute(q)
    return res.scalars().first()


def is_duplicate_rsvp_violation(error: IntegrityError) -> bool:
    """
    True when `error` comes from the (user_id, event_id) unique constraint.
    PostgreSQL names the constraint; SQLite only lists the columns.
    """
    message = str(error.orig).lower()
    return UNIQUE_RSVP_CONSTRAINT in message or "rsvps.user_id, rsvps.event_id" in message


async def create_rsvp(db: AsyncSession, user_id: str, event_id: str, status: RSVPStatusEnum) -> RSVP:
    """
    Insert an RSVP and commit.

    Raises:
        DuplicateRSVPError: the (user, event) unique constraint rejected the row
        IntegrityError: any other constraint violation
    """
    r = RSVP(user_id=user_id, event_id=event_id, status=status)
    db.add(r)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if is_duplicate_rsvp_violation(e):
            raise DuplicateRSVPError(event_id) from e
        raise
    await db.refresh(r)
    return r


async def update_rsvp_status(db: AsyncSession, rsvp_id: str, status: Optional[RSVPStatusEnum]) -> Optional[RSVP]:
    """
    Set the status of an RSVP (when given) and stamp `updated_at`.

    Returns:
        The updated RSVP, or None if no row matched
    """
    values = {"updated_at": utcnow()}
    if status is not None:
        values["status"] = status
    q = (
        update(RSVP)
        .where(RSVP.id == rsvp_id)
        .values(**values)
        .returning(RSVP)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    res = await db.execute(q)
    r = res.scalars().first()
    await db.commit()
    return r


async def delete_rsvp(db: AsyncSession, rsvp_id: str) -> int:
    res = await db.execute(delete(RSVP).where(RSVP.id == rsvp_id))
    await db.commit()
    return res.rowcount


async def list_rsvps_for_event(db: AsyncSession, event_id: str) -> List[RSVP]:
    q = (
        select(RSVP)
        .where(RSVP.event_id == event_id)
        .options(selectinload(RSVP.user))
        .order_by(RSVP.created_at)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_rsvps_for_user(db: AsyncSession, user_id: str) -> List[RSVP]:
    q = (
        select(RSVP)
        .where(RSVP.user_id == user_id)
        .options(selectinload(RSVP.event))
        .order_by(RSVP.created_at.desc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())
