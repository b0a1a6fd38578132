# campus_events/models/certificate.py
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from campus_events.database import Base

TYPES = ("participation", "winner", "completion", "achievement", "appreciation")
STATUSES = ("active", "revoked", "expired", "pending")
SHARE_PLATFORMS = ("linkedin", "twitter", "facebook")


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (UniqueConstraint("user_id", "event_id", "type", name="uq_certificate_user_event_type"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False)
    issued_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    certificate_id = Column(String(40), unique=True, index=True, nullable=False)
    type = Column(String(20), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    issued_date = Column(DateTime, default=datetime.utcnow, index=True)
    valid_until = Column(DateTime, nullable=True)
    certificate_url = Column(String(255), nullable=False)

    position = Column(String(50), nullable=True)
    score = Column(Float, nullable=True)
    duration = Column(String(30), nullable=True)

    verification_code = Column(String(20), unique=True, index=True, nullable=False)
    verification_url = Column(String(255), nullable=True)

    download_count = Column(Integer, nullable=False, default=0)
    last_downloaded = Column(DateTime, nullable=True)

    share_count = Column(Integer, nullable=False, default=0)
    linkedin_shares = Column(Integer, nullable=False, default=0)
    twitter_shares = Column(Integer, nullable=False, default=0)
    facebook_shares = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default="active", index=True)
    revoked_at = Column(DateTime, nullable=True)
    revoked_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    revoked_reason = Column(String(500), nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    event = relationship("Event")
    registration = relationship("Registration")
    issued_by = relationship("User", foreign_keys=[issued_by_id])
    revoked_by = relationship("User", foreign_keys=[revoked_by_id])

    @property
    def is_expired(self):
        return self.valid_until is not None and datetime.utcnow() > self.valid_until
