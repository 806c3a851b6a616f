from typing import List
from eventhub.schemas import EventCreate
from eventhub.db.models.event import Event
from eventhub.db.repositories import (
    create_event as db_create_event,
    get_event as db_get_event,
    list_events as db_list_events,
    list_events_created_by as db_list_events_created_by,
)
from eventhub.core.exceptions import InternalError, NotFoundError
from eventhub.core.logging import logger
from eventhub.services.base import BaseService, translate_errors


class EventService(BaseService):
    @translate_errors("Failed to fetch events")
    async def list_all(self) -> List[Event]:
        return await db_list_events(self.session)

    @translate_errors("Failed to fetch event")
    async def get_by_id(self, event_id: str) -> Event:
        event = await db_get_event(self.session, event_id)
        if event is None:
            raise NotFoundError("Event not found", details={"event_id": event_id})
        return event

    @translate_errors("Failed to fetch events")
    async def list_created_by_current_user(self) -> List[Event]:
        user = self.require_user()
        return await db_list_events_created_by(self.session, user.id)

    @translate_errors("Failed to create event")
    async def create(self, payload: EventCreate) -> Event:
        user = self.require_user()
        event = await db_create_event(self.session, payload, user.id)
        if event is None:
            raise InternalError("Failed to create event")
        logger.info(f"Event {event.id} created by user {user.id} (capacity={event.capacity})")
        return event
