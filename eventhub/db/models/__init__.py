"""Database models package."""
from eventhub.db.models.user import User, Account
from eventhub.db.models.event import Event
from eventhub.db.models.rsvp import RSVP, RSVPStatusEnum

__all__ = ["User", "Account", "Event", "RSVP", "RSVPStatusEnum"]
