from fastapi import APIRouter, Depends
from eventhub.schemas import RSVPCreate, RSVPUpdate, RSVPOut, RSVPWithUser, RSVPWithEvent, DeleteResult
from eventhub.api.caller import Caller
from eventhub.api.deps import get_caller
from typing import List

router = APIRouter(prefix="/rsvps", tags=["rsvps"])


@router.get("/event/{event_id}", response_model=List[RSVPWithUser])
async def get_rsvps_by_event(event_id: str, caller: Caller = Depends(get_caller)):
    return await caller.rsvp.list_by_event(event_id)


@router.get("/mine", response_model=List[RSVPWithEvent])
async def get_my_rsvps(caller: Caller = Depends(get_caller)):
    return await caller.rsvp.list_mine()


@router.post("/", response_model=RSVPOut)
async def create_rsvp_endpoint(payload: RSVPCreate, caller: Caller = Depends(get_caller)):
    """
    RSVP the signed-in user to an event.

    400 when the event is full or the user already has an RSVP for it.
    """
    return await caller.rsvp.create(payload)


@router.patch("/{rsvp_id}", response_model=RSVPOut)
async def update_rsvp_endpoint(rsvp_id: str, payload: RSVPUpdate, caller: Caller = Depends(get_caller)):
    return await caller.rsvp.update(rsvp_id, payload)


@router.delete("/{rsvp_id}", response_model=DeleteResult)
async def delete_rsvp_endpoint(rsvp_id: str, caller: Caller = Depends(get_caller)):
    return await caller.rsvp.delete(rsvp_id)
