# campus_events/schemas/forum.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from campus_events.schemas.user import UserSummary

Category = Literal["general", "team-formation", "help", "announcement", "event-discussion",
                   "project-showcase", "networking"]
PostType = Literal["discussion", "question", "announcement", "team-request", "project-showcase"]


class PostCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=200)
    content: str = Field(..., min_length=10, max_length=5000)
    category: Category = "general"
    type: PostType = "discussion"
    tags: List[str] = []
    related_event_id: Optional[int] = None
    visibility: Literal["public", "event-participants", "department", "private"] = "public"
    is_looking_for_team: bool = False
    skills_required: List[str] = []
    max_team_size: Optional[int] = Field(None, ge=2, le=20)


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class ApplicationCreate(BaseModel):
    message: str = Field(..., min_length=10, max_length=500)
    skills: List[str] = []


class ReplyRead(BaseModel):
    id: int
    author: UserSummary
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationRead(BaseModel):
    id: int
    user: UserSummary
    message: str
    skills: List[str] = []
    status: str
    applied_at: datetime

    class Config:
        from_attributes = True


class PostSummary(BaseModel):
    id: int
    title: str
    author: UserSummary
    category: str
    type: str
    tags: List[str] = []
    related_event_id: Optional[int] = None
    is_looking_for_team: bool
    max_team_size: Optional[int] = None
    current_team_size: int
    is_team_complete: bool
    views: int
    like_count: int
    reply_count: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class PostRead(PostSummary):
    content: str
    visibility: str
    department: Optional[str] = None
    skills_required: List[str] = []
    replies: List[ReplyRead] = []
    applications: List[ApplicationRead] = []
    updated_at: Optional[datetime] = None


class LikeResult(BaseModel):
    liked: bool
    like_count: int
