"""
Registration lifecycle.

States: ``pending -> confirmed -> checked-in -> completed``, with ``cancelled``
and ``waitlisted`` as side branches. Every precondition failure raises an
``AppError`` carrying a machine-checkable ``reason``.

The event seat, the registration row and the point award are written in one
transaction. The check-in QR code and the notifications are produced after
the commit and are best effort: their failure is logged and never undoes the
registration.
"""

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_events.errors import NotFound, PermissionDenied, StateConflict, ValidationFailed
from campus_events.id_utils import new_team_code
from campus_events.models.event import Event
from campus_events.models.registration import (AttendanceSession, Registration, Team,
                                               TERMINAL_STATUSES)
from campus_events.models.user import User
from campus_events.permissions import can, ensure_can
from campus_events.qr_utils import (generate_checkin_qr, generate_team_qr, parse_qr_data,
                                   team_join_url, validate_checkin_qr)
from campus_events.schemas.common import paginate
from campus_events.services import events as event_service
from campus_events.services.notifications import notify
from campus_events.services.points import (ATTENDANCE_POINTS, FEEDBACK_POINTS, REGISTRATION_POINTS,
                                           award_points)

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS = {
    ("pending", "confirmed"),
    ("pending", "waitlisted"),
    ("confirmed", "waitlisted"),
    ("waitlisted", "confirmed"),
    ("checked-in", "completed"),
}


def get_registration_or_404(db: Session, registration_id: int) -> Registration:
    registration = db.get(Registration, registration_id)
    if registration is None:
        raise NotFound("Registration not found", reason="registration_not_found")
    return registration


def _approved_event(db: Session, event_id: int, user: User) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found", reason="event_not_found")
    if event.status != "approved":
        raise StateConflict("Event is not available for registration", reason="event_not_open")
    if not can(user, "event.view", event):
        raise NotFound("Event not found", reason="event_not_found")
    return event


def _open_event(db: Session, event_id: int, user: User) -> Event:
    event = _approved_event(db, event_id, user)
    if datetime.utcnow() > event.registration_deadline:
        raise StateConflict("Registration for this event is closed", reason="registration_closed")
    return event


def _ensure_not_registered(db: Session, user: User, event: Event):
    # any status counts, a cancelled registration still blocks a new one
    existing = db.query(Registration.id).filter(
        Registration.user_id == user.id, Registration.event_id == event.id
    ).first()
    if existing:
        raise StateConflict("You are already registered for this event", reason="duplicate_registration")


def _claim_seat(db: Session, event: Event):
    if not event_service.add_participant(db, event.id):
        db.rollback()
        raise StateConflict("Event is full", reason="event_full")


def _commit_new_registration(db: Session, registration: Registration):
    try:
        db.commit()
    except IntegrityError:
        # lost a race against a concurrent registration of the same user
        db.rollback()
        raise StateConflict("You are already registered for this event", reason="duplicate_registration")
    db.refresh(registration)


def _attach_checkin_qr(db: Session, registration: Registration):
    try:
        qr = generate_checkin_qr(registration.id, registration.event_id)
        registration.qr_code = qr["code"]
        registration.qr_code_url = qr["data_url"]
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("QR code generation failed for registration %s", registration.id)


def create_registration(db: Session, user: User, data) -> Registration:
    event = _open_event(db, data.event_id, user)
    _ensure_not_registered(db, user, event)
    _claim_seat(db, event)

    registration = Registration(
        user_id=user.id,
        event_id=event.id,
        status="confirmed",
        payment_status="not-required" if not event.registration_fee else "pending",
        responses=[response.model_dump() for response in data.responses],
        special_requirements=data.special_requirements,
        dietary_restrictions=list(data.dietary_restrictions),
        emergency_contact=data.emergency_contact.model_dump() if data.emergency_contact else None,
    )

    if event.is_team_event and data.team_info:
        registration.team = Team(
            code=new_team_code(),
            name=data.team_info.team_name,
            event_id=event.id,
            max_members=event.team_size_max,
        )
        registration.is_team_lead = True

    db.add(registration)
    award_points(db, user.id, REGISTRATION_POINTS, "event registration")
    _commit_new_registration(db, registration)
    logger.info("User %s registered for event %s (registration %s%s)", user.id, event.id,
                registration.id, f", team {registration.team_code}" if registration.team else "")

    _attach_checkin_qr(db, registration)
    notify(db, user.id, "Registration confirmed",
           f'You are registered for "{event.title}".', "registration", type="success",
           related_event_id=event.id, related_registration_id=registration.id)
    return registration


def join_team(db: Session, user: User, data) -> Registration:
    # no deadline check, a team formed in time keeps accepting members
    event = _approved_event(db, data.event_id, user)

    team = db.query(Team).filter(
        func.upper(Team.code) == data.team_code.strip().upper(),
        Team.event_id == event.id,
    ).first()
    if team is None or team.lead_registration is None:
        raise NotFound("Team not found or invalid team code", reason="team_not_found")

    _ensure_not_registered(db, user, event)

    if team.size >= team.max_members:
        raise StateConflict("Team is already full", reason="team_full")

    _claim_seat(db, event)

    registration = Registration(
        user_id=user.id,
        event_id=event.id,
        status="confirmed",
        payment_status="not-required" if not event.registration_fee else "pending",
        team_id=team.id,
        is_team_lead=False,
    )
    db.add(registration)
    db.flush()

    size = db.query(func.count(Registration.id)).filter(Registration.team_id == team.id).scalar()
    if size > team.max_members:
        db.rollback()
        raise StateConflict("Team is already full", reason="team_full")

    award_points(db, user.id, REGISTRATION_POINTS, "team join")
    _commit_new_registration(db, registration)
    logger.info("User %s joined team %s for event %s (registration %s)", user.id, team.code,
                event.id, registration.id)

    _attach_checkin_qr(db, registration)
    lead = team.lead_registration
    notify(db, user.id, "Joined team",
           f'You joined team "{team.name}" for "{event.title}".', "registration", type="success",
           related_event_id=event.id, related_registration_id=registration.id)
    notify(db, lead.user_id, "New team member",
           f'{user.name} joined your team "{team.name}".', "registration",
           related_event_id=event.id, related_registration_id=lead.id)
    return registration


def get_registration(db: Session, user: User, registration_id: int) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    ensure_can(user, "registration.view", registration, "Not authorized to view this registration")
    return registration


def my_registrations(db: Session, user: User, status=None, page=1, limit=10) -> dict:
    query = db.query(Registration).filter(Registration.user_id == user.id)
    if status:
        query = query.filter(Registration.status == status)
    query = query.order_by(Registration.registration_date.desc(), Registration.id.desc())
    return paginate(query, page, limit)


def _member(registration: Registration) -> dict:
    return {
        "registration_id": registration.id,
        "user_id": registration.user_id,
        "name": registration.user.name,
        "email": registration.user.email,
        "department": registration.user.department,
        "status": registration.status,
        "joined_at": registration.registration_date,
    }


def _team_of(registration: Registration) -> Team:
    if registration.team is None:
        raise NotFound("This registration is not part of a team", reason="team_not_found")
    return registration.team


def get_team(db: Session, user: User, registration_id: int) -> dict:
    registration = get_registration(db, user, registration_id)
    team = _team_of(registration)

    qr_code = None
    try:
        qr_code = generate_team_qr(team.code)["data_url"]
    except Exception:
        logger.exception("Team QR generation failed for team %s", team.code)

    lead = team.lead_registration
    return {
        "team_name": team.name,
        "team_code": team.code,
        "max_members": team.max_members,
        "size": team.size,
        "lead": _member(lead) if lead else None,
        "members": [_member(r) for r in team.members],
        "qr_code": qr_code,
        "join_url": team_join_url(team.code),
    }


def update_team(db: Session, user: User, registration_id: int, data) -> dict:
    registration = get_registration(db, user, registration_id)
    team = _team_of(registration)
    if not can(user, "registration.team", registration):
        raise PermissionDenied("Only the team lead can update team details", reason="not_team_lead")

    team.name = data.team_name
    db.commit()
    logger.info("Team %s renamed by user %s", team.code, user.id)
    return get_team(db, user, registration_id)


def _qr_payload(qr_data):
    if isinstance(qr_data, str):
        parsed = parse_qr_data(qr_data)
        # a bare URL is never a check-in payload
        return parsed["data"] if parsed["type"] != "url" else None
    return qr_data


def check_in(db: Session, actor: User, registration_id: int, data) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    ensure_can(actor, "registration.checkin", registration,
               "Not authorized to check in this registration", method=data.method)

    if registration.is_checked_in:
        raise StateConflict("User is already checked in", reason="already_checked_in")
    if registration.status in TERMINAL_STATUSES:
        raise StateConflict(f"Cannot check in a {registration.status} registration",
                            reason="registration_inactive")

    if data.method == "qr-code":
        if data.qr_data is None:
            raise ValidationFailed.field("qr_data", "QR data is required for QR code check-in")
        result = validate_checkin_qr(_qr_payload(data.qr_data), registration.event_id)
        if not result["valid"]:
            raise StateConflict(result["message"], reason=result["reason"])
        if result["registration_id"] != str(registration.id):
            raise StateConflict("QR code does not match this registration", reason="qr_wrong_registration")

    updated = db.query(Registration).filter(
        Registration.id == registration.id,
        Registration.is_checked_in.is_(False),
    ).update({
        Registration.is_checked_in: True,
        Registration.check_in_time: datetime.utcnow(),
        Registration.check_in_method: data.method,
        Registration.check_in_location: data.location,
        Registration.checked_in_by_id: actor.id,
        Registration.status: "checked-in",
    }, synchronize_session="fetch")
    if not updated:
        db.rollback()
        raise StateConflict("User is already checked in", reason="already_checked_in")

    award_points(db, registration.user_id, ATTENDANCE_POINTS, "event check-in")
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s checked in by user %s via %s", registration.id, actor.id, data.method)
    return registration


def mark_attendance(db: Session, actor: User, registration_id: int, data) -> Registration:
    """
    Upserts one session by name and recomputes the totals from the stored sessions.
    A session counts towards the total the first time it is recorded.
    """
    registration = get_registration_or_404(db, registration_id)
    ensure_can(actor, "registration.attendance", registration,
               "Not authorized to record attendance for this registration")
    if registration.status == "cancelled":
        raise StateConflict("Cannot record attendance for a cancelled registration",
                            reason="registration_inactive")

    now = datetime.utcnow()
    session = db.query(AttendanceSession).filter(
        AttendanceSession.registration_id == registration.id,
        AttendanceSession.session_name == data.session_name,
    ).first()
    if session is None:
        session = AttendanceSession(registration_id=registration.id, session_name=data.session_name)
        db.add(session)
    if data.attended and not session.attended:
        session.check_in_time = now
    elif not data.attended and session.attended:
        session.check_out_time = now
    session.attended = data.attended
    db.flush()

    total = db.query(func.count(AttendanceSession.id)).filter(
        AttendanceSession.registration_id == registration.id).scalar()
    attended = db.query(func.count(AttendanceSession.id)).filter(
        AttendanceSession.registration_id == registration.id,
        AttendanceSession.attended.is_(True)).scalar()

    registration.total_sessions = total
    registration.attended_sessions = attended
    registration.attendance_percentage = attended / total * 100 if total else 0.0
    db.commit()
    db.refresh(registration)
    return registration


def submit_feedback(db: Session, user: User, registration_id: int, data) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    ensure_can(user, "registration.feedback", registration,
               "Not authorized to submit feedback for this registration")

    if registration.status == "cancelled":
        raise StateConflict("Cannot submit feedback for a cancelled registration",
                            reason="registration_inactive")
    if datetime.utcnow() < registration.event.end_date:
        raise StateConflict("Cannot submit feedback before event completion", reason="event_not_finished")

    updated = db.query(Registration).filter(
        Registration.id == registration.id,
        Registration.feedback_submitted_at.is_(None),
    ).update({
        Registration.feedback_rating: data.rating,
        Registration.feedback_comments: data.comments,
        Registration.feedback_recommendations: data.recommendations,
        Registration.feedback_would_recommend: data.would_recommend,
        Registration.feedback_submitted_at: datetime.utcnow(),
    }, synchronize_session="fetch")
    if not updated:
        db.rollback()
        raise StateConflict("Feedback has already been submitted", reason="feedback_already_submitted")

    award_points(db, user.id, FEEDBACK_POINTS, "event feedback")
    db.commit()
    db.refresh(registration)
    logger.info("Feedback submitted for registration %s", registration.id)
    return registration


def cancel_registration(db: Session, user: User, registration_id: int) -> Registration:
    """Cancels before the event starts and releases the seat. Points already awarded are kept."""
    registration = get_registration_or_404(db, registration_id)
    ensure_can(user, "registration.cancel", registration, "Not authorized to cancel this registration")

    if registration.status == "cancelled":
        raise StateConflict("Registration is already cancelled", reason="already_cancelled")
    if datetime.utcnow() >= registration.event.start_date:
        raise StateConflict("Cannot cancel registration after event has started", reason="event_started")

    updated = db.query(Registration).filter(
        Registration.id == registration.id,
        Registration.status != "cancelled",
    ).update({Registration.status: "cancelled"}, synchronize_session="fetch")
    if not updated:
        db.rollback()
        raise StateConflict("Registration is already cancelled", reason="already_cancelled")

    event_service.remove_participant(db, registration.event_id)
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s cancelled by user %s", registration.id, user.id)
    return registration


def update_status(db: Session, actor: User, registration_id: int, status: str) -> Registration:
    registration = get_registration_or_404(db, registration_id)
    ensure_can(actor, "registration.status", registration,
               "Not authorized to change the status of this registration")

    if (registration.status, status) not in STATUS_TRANSITIONS:
        raise StateConflict(f"Cannot change status from {registration.status} to {status}",
                            reason="invalid_transition")

    previous = registration.status
    registration.status = status
    db.commit()
    db.refresh(registration)
    logger.info("Registration %s moved from %s to %s by user %s", registration.id, previous, status, actor.id)
    return registration
