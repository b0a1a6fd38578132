# campus_events/models/notification.py
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from campus_events.database import Base

TYPES = ("info", "success", "warning", "error", "reminder", "announcement")
CATEGORIES = ("event", "registration", "certificate", "system", "promotional", "reminder")
PRIORITIES = ("low", "medium", "high", "urgent")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    type = Column(String(20), nullable=False, default="info")
    category = Column(String(20), nullable=False)
    priority = Column(String(10), nullable=False, default="medium")

    # recipient None means broadcast to every user
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    # sender None means a system notification
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    related_event_id = Column(Integer, ForeignKey("events.id"), nullable=True)
    related_registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=True)

    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    recipient = relationship("User", foreign_keys=[recipient_id])
    sender = relationship("User", foreign_keys=[sender_id])
    reads = relationship("NotificationRead", back_populates="notification", cascade="all, delete-orphan")


class NotificationRead(Base):
    __tablename__ = "notification_reads"
    __table_args__ = (UniqueConstraint("notification_id", "user_id", name="uq_notification_read"),)

    id = Column(Integer, primary_key=True, index=True)
    notification_id = Column(Integer, ForeignKey("notifications.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    read_at = Column(DateTime, default=datetime.utcnow)

    notification = relationship("Notification", back_populates="reads")
