# campus_events/schemas/user.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

Year = Literal["1st", "2nd", "3rd", "4th", "Graduate", "Faculty"]


class BadgeRead(BaseModel):
    name: str
    icon: Optional[str] = None
    description: Optional[str] = None
    earned_at: datetime

    class Config:
        from_attributes = True


class UserBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[Year] = None
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    # admin is never self-assignable
    role: Literal["student", "organizer"] = "student"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[Year] = None
    phone: Optional[str] = Field(None, max_length=30)
    bio: Optional[str] = Field(None, max_length=500)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    department: Optional[str] = None

    class Config:
        from_attributes = True


class UserRead(UserSummary):
    role: str
    year: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    points: int
    badges: List[BadgeRead] = []
    is_active: bool
    is_verified: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_info: UserRead


class LeaderboardEntry(BaseModel):
    rank: int
    id: int
    name: str
    department: Optional[str] = None
    year: Optional[str] = None
    points: int
    badges: List[BadgeRead] = []
