# campus_events/models/forum.py
from datetime import datetime

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from campus_events.database import Base

CATEGORIES = ("general", "team-formation", "help", "announcement", "event-discussion",
              "project-showcase", "networking")
POST_TYPES = ("discussion", "question", "announcement", "team-request", "project-showcase")
VISIBILITIES = ("public", "event-participants", "department", "private")
APPLICATION_STATUSES = ("pending", "accepted", "rejected")


class ForumPost(Base):
    __tablename__ = "forum_posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String(30), nullable=False, index=True)
    type = Column(String(30), nullable=False, default="discussion")
    tags = Column(JSON, default=list)
    related_event_id = Column(Integer, ForeignKey("events.id"), nullable=True)
    visibility = Column(String(30), nullable=False, default="public")
    department = Column(String(100), nullable=True)

    # team formation
    is_looking_for_team = Column(Boolean, nullable=False, default=False)
    skills_required = Column(JSON, default=list)
    max_team_size = Column(Integer, nullable=True)
    current_team_size = Column(Integer, nullable=False, default=1)
    is_team_complete = Column(Boolean, nullable=False, default=False)

    views = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active", index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")
    related_event = relationship("Event")
    replies = relationship("ForumReply", back_populates="post", cascade="all, delete-orphan",
                           order_by="ForumReply.created_at")
    likes = relationship("ForumLike", back_populates="post", cascade="all, delete-orphan")
    applications = relationship("TeamApplication", back_populates="post",
                                cascade="all, delete-orphan", order_by="TeamApplication.id")

    @property
    def like_count(self):
        return len(self.likes)

    @property
    def reply_count(self):
        return len(self.replies)


class ForumReply(Base):
    __tablename__ = "forum_replies"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("forum_posts.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(String(2000), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    post = relationship("ForumPost", back_populates="replies")
    author = relationship("User")


class ForumLike(Base):
    __tablename__ = "forum_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_forum_like"),)

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("forum_posts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    liked_at = Column(DateTime, default=datetime.utcnow)

    post = relationship("ForumPost", back_populates="likes")


class TeamApplication(Base):
    __tablename__ = "team_applications"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_team_application"),)

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("forum_posts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(String(500), nullable=False)
    skills = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default="pending")
    applied_at = Column(DateTime, default=datetime.utcnow)

    post = relationship("ForumPost", back_populates="applications")
    user = relationship("User")
