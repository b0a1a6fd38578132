# campus_events/schemas/certificate.py
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from campus_events.schemas.registration import EventSummary
from campus_events.schemas.user import UserSummary

CertificateType = Literal["participation", "winner", "completion", "achievement", "appreciation"]


class CertificateGenerate(BaseModel):
    registration_id: int
    type: CertificateType = "participation"
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    position: Optional[str] = Field(None, max_length=50)
    score: Optional[float] = Field(None, ge=0, le=100)
    duration: Optional[str] = Field(None, max_length=30)


class CertificateShare(BaseModel):
    platform: Literal["linkedin", "twitter", "facebook"]


class CertificateRevoke(BaseModel):
    reason: str = Field(..., min_length=5, max_length=500)


class CertificateRead(BaseModel):
    id: int
    certificate_id: str
    user: UserSummary
    event: EventSummary
    registration_id: int
    type: str
    title: str
    description: Optional[str] = None
    issued_date: datetime
    valid_until: Optional[datetime] = None
    certificate_url: str
    position: Optional[str] = None
    score: Optional[float] = None
    duration: Optional[str] = None
    verification_code: str
    verification_url: Optional[str] = None
    download_count: int
    last_downloaded: Optional[datetime] = None
    share_count: int
    linkedin_shares: int
    twitter_shares: int
    facebook_shares: int
    status: str
    revoked_at: Optional[datetime] = None
    revoked_reason: Optional[str] = None

    class Config:
        from_attributes = True


class CertificateVerification(BaseModel):
    certificate_id: str
    recipient_name: str
    recipient_email: str
    event_title: str
    event_date: datetime
    type: str
    title: str
    position: Optional[str] = None
    score: Optional[float] = None
    issued_date: datetime
    organizer: Optional[str] = None
    status: str


class EventCertificates(BaseModel):
    certificates: List[CertificateRead]
    stats: Dict[str, int]


class ShareLink(BaseModel):
    platform: str
    share_url: str
    share_text: str
