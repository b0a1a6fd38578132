# campus_events/models/user.py
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from campus_events.database import Base

ROLES = ("student", "organizer", "admin")
YEARS = ("1st", "2nd", "3rd", "4th", "Graduate", "Faculty")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student", index=True)
    department = Column(String(100), nullable=True, index=True)
    year = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    bio = Column(String(500), nullable=True)

    # gamification wallet, only moved by services.points
    points = Column(Integer, nullable=False, default=0, index=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    badges = relationship("Badge", back_populates="user", cascade="all, delete-orphan",
                          order_by="Badge.earned_at")
    registrations = relationship("Registration", back_populates="user",
                                 foreign_keys="Registration.user_id")


class Badge(Base):
    __tablename__ = "badges"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_badge_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    icon = Column(String(20), nullable=True)
    description = Column(String(255), nullable=True)
    earned_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="badges")
