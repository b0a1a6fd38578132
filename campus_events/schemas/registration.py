# campus_events/schemas/registration.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from campus_events.schemas.user import UserSummary

CheckInMethod = Literal["qr-code", "manual", "self-checkin"]
Status = Literal["pending", "confirmed", "cancelled", "waitlisted", "checked-in", "completed"]


class TeamInfo(BaseModel):
    team_name: str = Field(..., min_length=2, max_length=50)


class Response(BaseModel):
    question: str = Field(..., max_length=200)
    answer: str = Field(..., max_length=1000)
    type: Literal["text", "multiple-choice", "checkbox", "file"] = "text"


class EmergencyContact(BaseModel):
    name: str = Field(..., max_length=50)
    phone: str = Field(..., max_length=30)
    relationship: Optional[str] = Field(None, max_length=30)


class RegistrationCreate(BaseModel):
    event_id: int
    team_info: Optional[TeamInfo] = None
    responses: List[Response] = []
    special_requirements: Optional[str] = Field(None, max_length=500)
    dietary_restrictions: List[str] = []
    emergency_contact: Optional[EmergencyContact] = None


class JoinTeam(BaseModel):
    team_code: str = Field(..., min_length=1, max_length=40)
    event_id: int


class CheckIn(BaseModel):
    method: CheckInMethod = "manual"
    location: Optional[str] = Field(None, max_length=100)
    # scanned payload, raw string or already decoded JSON
    qr_data: Optional[Union[Dict[str, Any], str]] = None


class AttendanceMark(BaseModel):
    session_name: str = Field(..., min_length=1, max_length=100)
    attended: bool = True


class Feedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=1000)
    recommendations: Optional[str] = Field(None, max_length=500)
    would_recommend: Optional[bool] = None


class StatusUpdate(BaseModel):
    status: Status


class TeamUpdate(BaseModel):
    team_name: str = Field(..., min_length=2, max_length=50)


class EventSummary(BaseModel):
    id: int
    title: str
    department: str
    category: str
    start_date: datetime
    end_date: datetime
    venue: str
    status: str

    class Config:
        from_attributes = True


class SessionRead(BaseModel):
    session_name: str
    attended: bool
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class RegistrationRead(BaseModel):
    id: int
    user: UserSummary
    event: EventSummary
    status: str
    registration_date: datetime
    payment_status: str
    amount_paid: float
    team_code: Optional[str] = None
    team_name: Optional[str] = None
    is_team_lead: bool
    responses: List[Dict[str, Any]] = []
    special_requirements: Optional[str] = None
    dietary_restrictions: List[str] = []
    emergency_contact: Optional[Dict[str, Any]] = None
    is_checked_in: bool
    check_in_time: Optional[datetime] = None
    check_in_method: Optional[str] = None
    check_in_location: Optional[str] = None
    total_sessions: int
    attended_sessions: int
    attendance_percentage: float
    sessions: List[SessionRead] = []
    feedback_rating: Optional[int] = None
    feedback_comments: Optional[str] = None
    feedback_recommendations: Optional[str] = None
    feedback_would_recommend: Optional[bool] = None
    feedback_submitted_at: Optional[datetime] = None
    certificate_eligible: bool
    certificate_id: Optional[str] = None
    certificate_issued_at: Optional[datetime] = None
    qr_code_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TeamMember(BaseModel):
    registration_id: int
    user_id: int
    name: str
    email: str
    department: Optional[str] = None
    status: str
    joined_at: datetime


class TeamRead(BaseModel):
    team_name: str
    team_code: str
    max_members: int
    size: int
    lead: Optional[TeamMember] = None
    members: List[TeamMember] = []
    qr_code: Optional[str] = None
    join_url: str


class EventRegistrations(BaseModel):
    registrations: List[RegistrationRead]
    stats: Dict[str, int]
