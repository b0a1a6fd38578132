# campus_events/models/event.py
from datetime import datetime

from sqlalchemy import (Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String,
                        Table, Text)
from sqlalchemy.orm import relationship

from campus_events.database import Base

CATEGORIES = ("hackathon", "workshop", "seminar", "competition", "cultural", "sports",
              "conference", "networking", "other")
STATUSES = ("draft", "pending", "approved", "rejected", "active", "completed", "cancelled")
VISIBILITIES = ("public", "private", "department-only")
DIFFICULTIES = ("beginner", "intermediate", "advanced")

event_co_organizers = Table(
    "event_co_organizers",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    short_description = Column(String(200), nullable=True)
    department = Column(String(100), nullable=False, index=True)
    category = Column(String(30), nullable=False, index=True)
    tags = Column(JSON, default=list)

    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)
    registration_deadline = Column(DateTime, nullable=False)

    venue = Column(String(150), nullable=False)
    address = Column(String(255), nullable=True)
    is_online = Column(Boolean, default=False)
    online_link = Column(String(255), nullable=True)

    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # None means unlimited
    max_participants = Column(Integer, nullable=True)
    current_participants = Column(Integer, nullable=False, default=0)
    registration_fee = Column(Float, nullable=False, default=0.0)

    is_team_event = Column(Boolean, nullable=False, default=False)
    team_size_min = Column(Integer, nullable=False, default=1)
    team_size_max = Column(Integer, nullable=False, default=1)

    difficulty = Column(String(20), default="beginner")
    status = Column(String(20), nullable=False, default="draft", index=True)
    visibility = Column(String(20), nullable=False, default="public")

    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    organizer = relationship("User", foreign_keys=[organizer_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])
    co_organizers = relationship("User", secondary=event_co_organizers)
    registrations = relationship("Registration", back_populates="event")

    @property
    def is_registration_open(self):
        if self.status != "approved" or datetime.utcnow() > self.registration_deadline:
            return False
        return self.max_participants is None or self.current_participants < self.max_participants

    @property
    def event_status(self):
        now = datetime.utcnow()
        if now < self.start_date:
            return "upcoming"
        if now <= self.end_date:
            return "ongoing"
        return "completed"

    @property
    def co_organizer_ids(self):
        return [user.id for user in self.co_organizers]
