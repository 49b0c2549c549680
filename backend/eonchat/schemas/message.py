from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID
from eonchat.schemas.user import UserSummary

class MessageCreate(BaseModel):
    receiver_id: UUID
    content: str = Field(..., min_length=1)

    @field_validator('content')
    @classmethod
    def reject_blank(cls, v):
        if not v.strip():
            raise ValueError('Message cannot be empty')
        return v

class MessageResponse(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    is_read: bool = False
    created_at: datetime
    sender: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ActivityReport(BaseModel):
    peak_time: str
    peak_hour: int
    message_count: int
    total_analyzed: int
    percentage: str
    histogram: dict
