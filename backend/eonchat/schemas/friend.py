from typing import Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel
from eonchat.schemas.user import UserSummary

class FriendRequestCreate(BaseModel):
    receiver_id: UUID

class FriendRequestAccept(BaseModel):
    request_id: UUID

class FriendRequestResponse(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    status: str
    created_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None

class FriendRequestAccepted(BaseModel):
    msg: str
    new_friend: UserSummary
