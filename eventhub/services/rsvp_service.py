from typing import List, Optional
from eventhub.schemas import RSVPCreate, RSVPUpdate, DeleteResult
from eventhub.db.models.event import Event
from eventhub.db.models.rsvp import RSVP, RSVPStatusEnum
from eventhub.db.repositories import (
    count_attending_rsvps as db_count_attending_rsvps,
    create_rsvp as db_create_rsvp,
    delete_rsvp as db_delete_rsvp,
    get_event as db_get_event,
    get_rsvp as db_get_rsvp,
    get_user_rsvp_for_event as db_get_user_rsvp_for_event,
    list_rsvps_for_event as db_list_rsvps_for_event,
    list_rsvps_for_user as db_list_rsvps_for_user,
    update_rsvp_status as db_update_rsvp_status,
)
from eventhub.core.exceptions import CapacityExceededError, DuplicateRSVPError, InternalError, NotFoundError
from eventhub.core.logging import logger
from eventhub.services.base import BaseService, translate_errors
from eventhub.services.permissions import ensure_owner


class RSVPService(BaseService):
    """
    RSVP lifecycle with capacity-bounded admission.

    Admission into `attending` locks the event row, counts the attending
    RSVPs and only then writes, all in one transaction. Concurrent admissions
    for the same event therefore queue on the lock instead of both reading
    an under-capacity count.
    """

    @translate_errors("Failed to fetch RSVPs")
    async def list_by_event(self, event_id: str) -> List[RSVP]:
        return await db_list_rsvps_for_event(self.session, event_id)

    @translate_errors("Failed to fetch your RSVPs")
    async def list_mine(self) -> List[RSVP]:
        user = self.require_user()
        return await db_list_rsvps_for_user(self.session, user.id)

    @translate_errors("Failed to create RSVP")
    async def create(self, payload: RSVPCreate) -> RSVP:
        user = self.require_user()

        event = await db_get_event(self.session, payload.event_id, for_update=True)
        if event is None:
            raise NotFoundError("Event not found", details={"event_id": payload.event_id})

        if payload.status == RSVPStatusEnum.attending:
            await self._ensure_capacity(event)

        existing = await db_get_user_rsvp_for_event(self.session, user.id, event.id)
        if existing is not None:
            logger.info(f"Duplicate RSVP by user {user.id} for event {event.id} rejected")
            raise DuplicateRSVPError(event.id)

        rsvp = await db_create_rsvp(self.session, user.id, event.id, payload.status)
        logger.info(f"RSVP {rsvp.id} created: user {user.id} is {rsvp.status.value} for event {event.id}")
        return rsvp

    @translate_errors("Failed to update RSVP")
    async def update(self, rsvp_id: str, payload: RSVPUpdate, event_id: Optional[str] = None) -> RSVP:
        """
        Change the caller's RSVP. When `event_id` is given the RSVP must belong
        to that event, otherwise it is reported as not found.
        """
        user = self.require_user()

        rsvp = await self._get_owned(rsvp_id, event_id, user, "You can only update your own RSVPs")

        if payload.status == RSVPStatusEnum.attending:
            # Event lock first, then the RSVP's committed status decides whether this is an admission
            event = await db_get_event(self.session, rsvp.event_id, for_update=True)
            rsvp = await db_get_rsvp(self.session, rsvp_id, for_update=True)
            if rsvp is None:
                raise NotFoundError("RSVP not found", details={"rsvp_id": rsvp_id})
            if event is not None and rsvp.status != RSVPStatusEnum.attending:
                await self._ensure_capacity(event)

        updated = await db_update_rsvp_status(self.session, rsvp_id, payload.status)
        if updated is None:
            raise InternalError("Failed to update RSVP")
        return updated

    @translate_errors("Failed to delete RSVP")
    async def delete(self, rsvp_id: str, event_id: Optional[str] = None) -> DeleteResult:
        user = self.require_user()

        await self._get_owned(rsvp_id, event_id, user, "You can only delete your own RSVPs")

        await db_delete_rsvp(self.session, rsvp_id)
        logger.info(f"RSVP {rsvp_id} deleted by user {user.id}")
        return DeleteResult(success=True)

    async def _get_owned(self, rsvp_id: str, event_id: Optional[str], user, forbidden_message: str) -> RSVP:
        rsvp = await db_get_rsvp(self.session, rsvp_id)
        if rsvp is None or (event_id is not None and rsvp.event_id != event_id):
            raise NotFoundError("RSVP not found", details={"rsvp_id": rsvp_id})
        ensure_owner(user, rsvp.user_id, forbidden_message)
        return rsvp

    async def _ensure_capacity(self, event: Event) -> None:
        if event.capacity is None:
            return
        attending = await db_count_attending_rsvps(self.session, event.id)
        if attending >= event.capacity:
            logger.warning(f"Event {event.id} is full ({attending}/{event.capacity}), admission rejected")
            raise CapacityExceededError(event.id, event.capacity)
