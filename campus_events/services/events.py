"""
Event management: creation, approval, updates and the participant counter.

``current_participants`` is only ever moved by ``add_participant`` and
``remove_participant``, each a single conditional UPDATE.
"""

import logging
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from campus_events.errors import NotFound, StateConflict, ValidationFailed
from campus_events.models.event import Event
from campus_events.models.registration import Registration
from campus_events.models.user import User
from campus_events.permissions import ensure_can, is_admin
from campus_events.schemas.common import paginate
from campus_events.services.notifications import notify

logger = logging.getLogger(__name__)

LOCKED_STATUSES = ("completed", "cancelled")
# changes that send an approved event back to review
REVIEW_FIELDS = ("start_date", "end_date", "venue", "max_participants")
FEATURED_LIMIT = 6


def get_event_or_404(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found", reason="event_not_found")
    return event


def _co_organizers(db: Session, ids):
    if not ids:
        return []
    users = db.query(User).filter(User.id.in_(ids)).all()
    if len(users) != len(set(ids)):
        raise ValidationFailed.field("co_organizer_ids", "One or more co-organizers do not exist")
    return users


def _check_window(start_date, end_date, registration_deadline, team_size_min, team_size_max):
    errors = []
    if registration_deadline > start_date:
        errors.append({"field": "registration_deadline",
                       "message": "Registration deadline must be before the event start date"})
    if end_date <= start_date:
        errors.append({"field": "end_date", "message": "End date must be after start date"})
    if team_size_min > team_size_max:
        errors.append({"field": "team_size_min",
                       "message": "Minimum team size cannot exceed maximum team size"})
    if errors:
        raise ValidationFailed(errors)


def create_event(db: Session, user: User, data) -> Event:
    values = data.model_dump(exclude={"co_organizer_ids"})
    event = Event(organizer_id=user.id, **values)
    event.co_organizers = _co_organizers(db, data.co_organizer_ids)

    if is_admin(user):
        event.status = "approved"
        event.approved_by_id = user.id
        event.approved_at = datetime.utcnow()
    else:
        event.status = "pending"

    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Event %s created by user %s with status %s", event.id, user.id, event.status)
    return event


def _listed_for(user: User = None):
    """Visibility filter for approved events shown to someone who does not manage them."""
    visible = Event.visibility == "public"
    if user is not None and user.department:
        visible = or_(visible, (Event.visibility == "department-only") & (Event.department == user.department))
    return visible


def list_events(db: Session, user: User = None, category=None, department=None, search=None,
                upcoming=False, status=None, page=1, limit=10):
    query = db.query(Event)

    if status and user is not None and user.role in ("organizer", "admin"):
        query = query.filter(Event.status == status)
        if not is_admin(user):
            query = query.filter(or_(Event.organizer_id == user.id,
                                     Event.co_organizers.any(User.id == user.id)))
    else:
        query = query.filter(Event.status == "approved")
        if not is_admin(user):
            query = query.filter(_listed_for(user))

    if category:
        query = query.filter(Event.category == category)
    if department:
        query = query.filter(func.lower(Event.department) == department.lower())
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if upcoming:
        query = query.filter(Event.start_date > datetime.utcnow())

    query = query.order_by(Event.start_date.asc(), Event.id.asc())
    return paginate(query, page, limit)


def organizer_events(db: Session, organizer_id: int, user: User = None, page=1, limit=20):
    """
    Events organized by one user, latest first. The organizer and admins see
    every status; everybody else only sees approved events they could open.
    """
    query = db.query(Event).filter(Event.organizer_id == organizer_id)
    if not (is_admin(user) or (user is not None and user.id == organizer_id)):
        query = query.filter(Event.status == "approved", _listed_for(user))
    query = query.order_by(Event.start_date.desc(), Event.id.desc())
    return paginate(query, page, limit)


def featured_events(db: Session):
    return db.query(Event).filter(
        Event.status == "approved",
        Event.visibility == "public",
        Event.start_date >= datetime.utcnow(),
    ).order_by(Event.start_date.asc(), Event.id.asc()).limit(FEATURED_LIMIT).all()


def get_event(db: Session, event_id: int, user: User = None) -> Event:
    event = get_event_or_404(db, event_id)
    ensure_can(user, "event.view", event, "Not authorized to view this event")
    return event


def update_event(db: Session, user: User, event_id: int, data) -> Event:
    event = get_event_or_404(db, event_id)
    ensure_can(user, "event.manage", event, "Not authorized to update this event")

    if event.status in LOCKED_STATUSES:
        raise StateConflict("Cannot edit completed or cancelled events", reason="event_locked")

    changes = data.model_dump(exclude_unset=True)
    co_organizer_ids = changes.pop("co_organizer_ids", None)

    def merged(field):
        return changes[field] if changes.get(field) is not None else getattr(event, field)

    _check_window(merged("start_date"), merged("end_date"), merged("registration_deadline"),
                  merged("team_size_min"), merged("team_size_max"))

    new_capacity = changes.get("max_participants")
    if new_capacity is not None and new_capacity < event.current_participants:
        raise ValidationFailed.field(
            "max_participants",
            f"Capacity cannot be lower than the current number of participants ({event.current_participants})",
        )

    def changed(field):
        if field not in changes:
            return False
        if changes[field] is None and field != "max_participants":
            return False
        return changes[field] != getattr(event, field)

    needs_review = (
        event.status == "approved"
        and not is_admin(user)
        and any(changed(field) for field in REVIEW_FIELDS)
    )

    for key, value in changes.items():
        # None only clears nullable fields
        if value is None and key != "max_participants":
            continue
        setattr(event, key, value)
    if co_organizer_ids is not None:
        event.co_organizers = _co_organizers(db, co_organizer_ids)

    if needs_review:
        event.status = "pending"
        event.approved_by_id = None
        event.approved_at = None
        logger.info("Event %s sent back to review after changes by user %s", event.id, user.id)

    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, user: User, event_id: int) -> str:
    """Deletes an event without registrations; an admin cancels one that has them."""
    event = get_event_or_404(db, event_id)
    ensure_can(user, "event.manage", event, "Not authorized to delete this event")

    has_registrations = db.query(Registration.id).filter(Registration.event_id == event.id).first()
    if has_registrations:
        if not is_admin(user):
            raise StateConflict("Cannot delete event with existing registrations. Cancel the event instead.",
                                reason="event_has_registrations")
        event.status = "cancelled"
        db.commit()
        logger.info("Event %s cancelled by admin %s", event.id, user.id)
        return "cancelled"

    db.delete(event)
    db.commit()
    logger.info("Event %s deleted by user %s", event_id, user.id)
    return "deleted"


def set_event_status(db: Session, admin: User, event_id: int, status: str, rejection_reason=None) -> Event:
    event = get_event_or_404(db, event_id)
    if event.status in LOCKED_STATUSES:
        raise StateConflict("Cannot change the status of completed or cancelled events", reason="event_locked")

    event.status = status
    if status == "approved":
        event.approved_by_id = admin.id
        event.approved_at = datetime.utcnow()
        event.rejection_reason = None
    else:
        event.approved_by_id = None
        event.approved_at = None
        event.rejection_reason = rejection_reason
    db.commit()
    db.refresh(event)
    logger.info("Event %s %s by admin %s", event.id, status, admin.id)

    if status == "approved":
        notify(db, event.organizer_id, "Event approved",
               f'Your event "{event.title}" has been approved.', "event",
               type="success", sender_id=admin.id, related_event_id=event.id)
    else:
        message = f'Your event "{event.title}" has been rejected.'
        if rejection_reason:
            message += f" Reason: {rejection_reason}"
        notify(db, event.organizer_id, "Event rejected", message, "event",
               type="warning", sender_id=admin.id, related_event_id=event.id)
    return event


def add_participant(db: Session, event_id: int) -> bool:
    """Claims one seat. False when the event is already at capacity."""
    updated = db.query(Event).filter(
        Event.id == event_id,
        or_(Event.max_participants.is_(None), Event.current_participants < Event.max_participants),
    ).update({Event.current_participants: Event.current_participants + 1}, synchronize_session="fetch")
    return updated == 1


def remove_participant(db: Session, event_id: int) -> bool:
    updated = db.query(Event).filter(
        Event.id == event_id,
        Event.current_participants > 0,
    ).update({Event.current_participants: Event.current_participants - 1}, synchronize_session="fetch")
    return updated == 1


def registration_stats(db: Session, event_id: int) -> dict:
    rows = db.query(Registration.status, func.count(Registration.id)).filter(
        Registration.event_id == event_id
    ).group_by(Registration.status).all()
    stats = {status: count for status, count in rows}
    stats["total"] = sum(count for _, count in rows)
    return stats


def event_registrations(db: Session, user: User, event_id: int, status=None) -> dict:
    event = get_event_or_404(db, event_id)
    ensure_can(user, "event.manage", event, "Not authorized to view registrations for this event")

    query = db.query(Registration).filter(Registration.event_id == event.id)
    if status:
        query = query.filter(Registration.status == status)
    registrations = query.order_by(Registration.registration_date.asc(), Registration.id.asc()).all()
    return {"registrations": registrations, "stats": registration_stats(db, event.id)}
