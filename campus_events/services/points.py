"""Points wallet and badges. The only code that mutates ``User.points``."""

import logging

from sqlalchemy.orm import Session

from campus_events.models.user import Badge, User

logger = logging.getLogger(__name__)

REGISTRATION_POINTS = 10
ATTENDANCE_POINTS = 20
FEEDBACK_POINTS = 5

CERTIFICATE_POINTS = {
    "participation": 25,
    "completion": 50,
    "appreciation": 30,
    "achievement": 75,
    "winner": 100,
}

WINNER_BADGE = {"name": "Winner", "icon": "🏆", "description": "Won an event"}


def award_points(db: Session, user_id: int, amount: int, reason: str = "") -> None:
    """
    Adds ``amount`` to the user's balance in a single UPDATE, so concurrent
    awards never overwrite each other. The caller commits.
    """
    if amount <= 0:
        return
    db.query(User).filter(User.id == user_id).update(
        {User.points: User.points + amount}, synchronize_session="fetch"
    )
    logger.info("Awarded %s points to user %s (%s)", amount, user_id, reason or "unspecified")


def award_badge(db: Session, user: User, name: str, icon: str = None, description: str = None) -> bool:
    """Adds a badge unless the user already holds one with that name."""
    exists = db.query(Badge.id).filter(Badge.user_id == user.id, Badge.name == name).first()
    if exists:
        return False
    db.add(Badge(user_id=user.id, name=name, icon=icon, description=description))
    logger.info("Badge %r granted to user %s", name, user.id)
    return True
