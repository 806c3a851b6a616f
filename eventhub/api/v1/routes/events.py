from fastapi import APIRouter, Depends
from eventhub.schemas import EventCreate, EventOut, EventWithCreator, EventWithRSVPs
from eventhub.api.caller import Caller
from eventhub.api.deps import get_caller
from typing import List

router = APIRouter(prefix="/events", tags=["events"])


@router.get("/", response_model=List[EventWithCreator])
async def get_all_events(caller: Caller = Depends(get_caller)):
    """Every event with its creator's public profile."""
    return await caller.events.list_all()


@router.post("/", response_model=EventOut)
async def create_event_endpoint(payload: EventCreate, caller: Caller = Depends(get_caller)):
    return await caller.events.create(payload)


@router.get("/mine", response_model=List[EventWithRSVPs])
async def get_events_created_by_user(caller: Caller = Depends(get_caller)):
    """Events created by the signed-in user, with their RSVPs."""
    return await caller.events.list_created_by_current_user()


@router.get("/{event_id}", response_model=EventOut)
async def get_event_detail(event_id: str, caller: Caller = Depends(get_caller)):
    return await caller.events.get_by_id(event_id)
