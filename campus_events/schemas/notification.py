# campus_events/schemas/notification.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from campus_events.schemas.common import to_naive_utc

NotificationType = Literal["info", "success", "warning", "error", "reminder", "announcement"]
Category = Literal["event", "registration", "certificate", "system", "promotional", "reminder"]
Priority = Literal["low", "medium", "high", "urgent"]


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = "info"
    category: Category = "system"
    priority: Priority = "medium"
    # omitted recipient: broadcast to every user
    recipient_id: Optional[int] = None
    related_event_id: Optional[int] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def naive_utc(cls, v):
        return to_naive_utc(v)


class NotificationRead(BaseModel):
    id: int
    title: str
    message: str
    type: str
    category: str
    priority: str
    recipient_id: Optional[int] = None
    sender_id: Optional[int] = None
    related_event_id: Optional[int] = None
    related_registration_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    is_read: bool = False
