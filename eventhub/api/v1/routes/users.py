from fastapi import APIRouter, Depends
from eventhub.schemas import AccountOut
from eventhub.api.caller import Caller
from eventhub.api.deps import get_caller
from typing import List

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/", response_model=List[AccountOut])
async def get_users(caller: Caller = Depends(get_caller)):
    """Accounts joined with their user's public profile."""
    return await caller.users.get()
