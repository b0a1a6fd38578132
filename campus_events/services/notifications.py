"""
User notifications.

``notify`` is the entry point for system notifications emitted by the
registration lifecycle. It runs after the primary change is committed and
never raises: a failed notification is logged and rolled back on its own.
"""

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_events.errors import NotFound
from campus_events.models.notification import Notification, NotificationRead
from campus_events.models.user import User

logger = logging.getLogger(__name__)


def notify(db: Session, recipient_id, title, message, category, type="info", priority="medium",
           sender_id=None, related_event_id=None, related_registration_id=None):
    try:
        notification = Notification(
            title=title[:100],
            message=message[:500],
            type=type,
            category=category,
            priority=priority,
            recipient_id=recipient_id,
            sender_id=sender_id,
            related_event_id=related_event_id,
            related_registration_id=related_registration_id,
        )
        db.add(notification)
        db.commit()
        return notification
    except Exception:
        db.rollback()
        logger.exception("Failed to send notification %r to user %s", title, recipient_id)
        return None


def _visible_to(user: User):
    now = datetime.utcnow()
    return [
        or_(Notification.recipient_id == user.id, Notification.recipient_id.is_(None)),
        or_(Notification.expires_at.is_(None), Notification.expires_at > now),
    ]


def _read_ids(db: Session, user: User, notification_ids):
    if not notification_ids:
        return set()
    rows = db.query(NotificationRead.notification_id).filter(
        NotificationRead.user_id == user.id,
        NotificationRead.notification_id.in_(notification_ids),
    ).all()
    return {row[0] for row in rows}


def _as_dict(notification: Notification, is_read: bool) -> dict:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "category": notification.category,
        "priority": notification.priority,
        "recipient_id": notification.recipient_id,
        "sender_id": notification.sender_id,
        "related_event_id": notification.related_event_id,
        "related_registration_id": notification.related_registration_id,
        "expires_at": notification.expires_at,
        "created_at": notification.created_at,
        "is_read": is_read,
    }


def list_for_user(db: Session, user: User, unread_only=False, category=None, limit=50):
    """
    Own and broadcast notifications that have not expired, newest first,
    each flagged with the user's read receipt.
    """
    query = db.query(Notification).filter(*_visible_to(user))
    if category:
        query = query.filter(Notification.category == category)
    if unread_only:
        read = db.query(NotificationRead.notification_id).filter(NotificationRead.user_id == user.id)
        query = query.filter(Notification.id.notin_(read))

    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    read_ids = _read_ids(db, user, [n.id for n in notifications])
    return [_as_dict(n, n.id in read_ids) for n in notifications]


def unread_count(db: Session, user: User) -> int:
    read = db.query(NotificationRead.notification_id).filter(NotificationRead.user_id == user.id)
    return db.query(Notification).filter(*_visible_to(user), Notification.id.notin_(read)).count()


def mark_read(db: Session, user: User, notification_id: int) -> dict:
    notification = db.query(Notification).filter(Notification.id == notification_id, *_visible_to(user)).first()
    if notification is None:
        raise NotFound("Notification not found")

    already = db.query(NotificationRead.id).filter(
        NotificationRead.notification_id == notification.id,
        NotificationRead.user_id == user.id,
    ).first()
    if not already:
        db.add(NotificationRead(notification_id=notification.id, user_id=user.id))
        db.commit()
    return _as_dict(notification, True)


def create_notification(db: Session, sender: User, data) -> dict:
    if data.recipient_id is not None and db.get(User, data.recipient_id) is None:
        raise NotFound("Recipient not found")

    notification = Notification(sender_id=sender.id, **data.model_dump())
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info("Notification %s created by user %s", notification.id, sender.id)
    return _as_dict(notification, False)
