# campus_events/models/registration.py
from datetime import datetime

from sqlalchemy import (Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String,
                        Text, UniqueConstraint)
from sqlalchemy.orm import relationship

from campus_events.database import Base

STATUSES = ("pending", "confirmed", "cancelled", "waitlisted", "checked-in", "completed")
TERMINAL_STATUSES = ("completed", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded", "not-required")
CHECKIN_METHODS = ("qr-code", "manual", "self-checkin")


class Team(Base):
    """A team is the set of registrations sharing one team code."""
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(40), unique=True, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    max_members = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)

    event = relationship("Event")
    registrations = relationship("Registration", back_populates="team",
                                 foreign_keys="Registration.team_id",
                                 order_by="Registration.id")

    @property
    def lead_registration(self):
        return next((r for r in self.registrations if r.is_team_lead), None)

    @property
    def members(self):
        return [r for r in self.registrations if not r.is_team_lead]

    @property
    def size(self):
        return len(self.registrations)


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_registration_user_event"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    registration_date = Column(DateTime, default=datetime.utcnow)

    payment_status = Column(String(20), nullable=False, default="not-required")
    amount_paid = Column(Float, nullable=False, default=0.0)

    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True, index=True)
    is_team_lead = Column(Boolean, nullable=False, default=False)

    responses = Column(JSON, default=list)
    special_requirements = Column(String(500), nullable=True)
    dietary_restrictions = Column(JSON, default=list)
    emergency_contact = Column(JSON, nullable=True)

    # check-in
    is_checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime, nullable=True)
    check_in_method = Column(String(20), nullable=True)
    check_in_location = Column(String(100), nullable=True)
    checked_in_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # attendance, derived from attendance_sessions
    total_sessions = Column(Integer, nullable=False, default=0)
    attended_sessions = Column(Integer, nullable=False, default=0)
    attendance_percentage = Column(Float, nullable=False, default=0.0)

    # feedback
    feedback_rating = Column(Integer, nullable=True)
    feedback_comments = Column(Text, nullable=True)
    feedback_recommendations = Column(Text, nullable=True)
    feedback_would_recommend = Column(Boolean, nullable=True)
    feedback_submitted_at = Column(DateTime, nullable=True)

    # certificate eligibility
    certificate_eligible = Column(Boolean, nullable=False, default=False)
    certificate_id = Column(String(40), nullable=True)
    certificate_url = Column(String(255), nullable=True)
    certificate_issued_at = Column(DateTime, nullable=True)

    # check-in QR
    qr_code = Column(Text, nullable=True)
    qr_code_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="registrations", foreign_keys=[user_id])
    event = relationship("Event", back_populates="registrations")
    checked_in_by = relationship("User", foreign_keys=[checked_in_by_id])
    team = relationship("Team", back_populates="registrations", foreign_keys=[team_id])
    sessions = relationship("AttendanceSession", back_populates="registration",
                            cascade="all, delete-orphan", order_by="AttendanceSession.id")

    @property
    def team_code(self):
        return self.team.code if self.team else None

    @property
    def team_name(self):
        return self.team.name if self.team else None

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class AttendanceSession(Base):
    __tablename__ = "attendance_sessions"
    __table_args__ = (UniqueConstraint("registration_id", "session_name", name="uq_attendance_session"),)

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False, index=True)
    session_name = Column(String(100), nullable=False)
    attended = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)

    registration = relationship("Registration", back_populates="sessions")
