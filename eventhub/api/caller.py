"""
In-process caller for the domain operations.

Both the JSON API and the HTML pages go through a Caller, so every request
path hits the same authorization and capacity rules.
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.schemas import SessionUser
from eventhub.services.event_service import EventService
from eventhub.services.rsvp_service import RSVPService
from eventhub.services.user_service import UserService


class Caller:
    def __init__(self, session: AsyncSession, user: Optional[SessionUser] = None):
        self.user = user
        self.events = EventService(session, user)
        self.rsvp = RSVPService(session, user)
        self.users = UserService(session, user)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
