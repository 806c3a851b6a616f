from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from eventhub.db.models.rsvp import RSVPStatusEnum


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenResponse(BaseModel):
    """Access token plus the refresh token to renew it."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str


class UserPublic(BaseModel):
    """Public profile fields of a user."""
    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class UserOut(UserPublic):
    created_at: datetime


class SessionUser(UserPublic):
    """Snapshot of the signed-in user handed to domain operations."""


class UserName(BaseModel):
    name: str

    class Config:
        from_attributes = True


class AccountOut(BaseModel):
    id: str
    provider_id: str
    user_id: str
    created_at: datetime
    user: UserPublic

    class Config:
        from_attributes = True


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    date: str = Field(..., min_length=1, max_length=64)
    capacity: Optional[int] = Field(None, ge=0)


class EventOut(BaseModel):
    id: str
    name: str
    location: str
    date: str
    capacity: Optional[int]
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EventWithCreator(EventOut):
    creator: UserPublic


class RSVPCreate(BaseModel):
    event_id: str
    status: RSVPStatusEnum


class RSVPUpdate(BaseModel):
    status: Optional[RSVPStatusEnum] = None


class RSVPOut(BaseModel):
    id: str
    user_id: str
    event_id: str
    status: RSVPStatusEnum
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RSVPWithUser(RSVPOut):
    user: UserPublic


class RSVPWithUserName(RSVPOut):
    user: UserName


class RSVPWithEvent(RSVPOut):
    event: EventOut


class EventWithRSVPs(EventOut):
    rsvps: List[RSVPWithUserName] = []


class DeleteResult(BaseModel):
    success: bool = True
