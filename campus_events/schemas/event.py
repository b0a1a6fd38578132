# campus_events/schemas/event.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from campus_events.schemas.common import to_naive_utc
from campus_events.schemas.user import UserSummary

Category = Literal["hackathon", "workshop", "seminar", "competition", "cultural", "sports",
                   "conference", "networking", "other"]
Visibility = Literal["public", "private", "department-only"]
Difficulty = Literal["beginner", "intermediate", "advanced"]

DATE_FIELDS = ("start_date", "end_date", "registration_deadline")


class EventBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    short_description: Optional[str] = Field(None, max_length=200)
    department: str = Field(..., min_length=1, max_length=100)
    category: Category
    tags: List[str] = []
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    venue: str = Field(..., min_length=1, max_length=150)
    address: Optional[str] = Field(None, max_length=255)
    is_online: bool = False
    online_link: Optional[str] = Field(None, max_length=255)
    max_participants: Optional[int] = Field(None, ge=1)
    registration_fee: float = Field(0.0, ge=0)
    is_team_event: bool = False
    team_size_min: int = Field(1, ge=1)
    team_size_max: int = Field(1, ge=1)
    difficulty: Difficulty = "beginner"
    visibility: Visibility = "public"

    @field_validator(*DATE_FIELDS)
    @classmethod
    def naive_utc(cls, v):
        return to_naive_utc(v)


class EventCreate(EventBase):
    co_organizer_ids: List[int] = []

    @model_validator(mode="after")
    def check_window(self):
        if self.registration_deadline > self.start_date:
            raise ValueError("Registration deadline must be before the event start date")
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.team_size_min > self.team_size_max:
            raise ValueError("Minimum team size cannot exceed maximum team size")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    short_description: Optional[str] = Field(None, max_length=200)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[Category] = None
    tags: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    venue: Optional[str] = Field(None, min_length=1, max_length=150)
    address: Optional[str] = Field(None, max_length=255)
    is_online: Optional[bool] = None
    online_link: Optional[str] = Field(None, max_length=255)
    max_participants: Optional[int] = Field(None, ge=1)
    registration_fee: Optional[float] = Field(None, ge=0)
    is_team_event: Optional[bool] = None
    team_size_min: Optional[int] = Field(None, ge=1)
    team_size_max: Optional[int] = Field(None, ge=1)
    difficulty: Optional[Difficulty] = None
    visibility: Optional[Visibility] = None
    co_organizer_ids: Optional[List[int]] = None

    @field_validator(*DATE_FIELDS)
    @classmethod
    def naive_utc(cls, v):
        return to_naive_utc(v)


class EventStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = Field(None, max_length=500)


class EventRead(EventBase):
    id: int
    organizer: UserSummary
    co_organizers: List[UserSummary] = []
    current_participants: int
    status: str
    event_status: str
    is_registration_open: bool
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
