# campus_events/routes/notifications_fastapi.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_admin_user, get_current_active_user
from campus_events.models.user import User
from campus_events.schemas.common import Envelope
from campus_events.schemas.notification import Category, NotificationCreate, NotificationRead
from campus_events.services import notifications as notification_service

router = APIRouter(
    tags=["Notifications"],
    prefix="/api/v1/notifications"
)


@router.get("", response_model=Envelope[List[NotificationRead]])
def read_notifications(unread_only: bool = False, category: Optional[Category] = None,
                       limit: int = Query(50, ge=1, le=200),
                       current_user: User = Depends(get_current_active_user),
                       db: Session = Depends(database.get_db)):
    notifications = notification_service.list_for_user(db, current_user, unread_only=unread_only,
                                                       category=category, limit=limit)
    unread = notification_service.unread_count(db, current_user)
    return {"success": True, "message": f"{unread} unread notifications", "data": notifications}


@router.post("", response_model=Envelope[NotificationRead], status_code=status.HTTP_201_CREATED)
def create_notification(payload: NotificationCreate, admin: User = Depends(get_admin_user),
                        db: Session = Depends(database.get_db)):
    notification = notification_service.create_notification(db, admin, payload)
    return {"success": True, "message": "Notification created successfully", "data": notification}


@router.patch("/{notification_id}/read", response_model=Envelope[NotificationRead])
def mark_notification_read(notification_id: int, current_user: User = Depends(get_current_active_user),
                           db: Session = Depends(database.get_db)):
    notification = notification_service.mark_read(db, current_user, notification_id)
    return {"success": True, "message": "Notification marked as read", "data": notification}
