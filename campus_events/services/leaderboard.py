"""Points leaderboard."""

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from campus_events.models.user import User


def leaderboard(db: Session, department: str = None, limit: int = 50):
    """
    Active users with points, highest first; ties keep the older account
    ahead. Each entry carries its 1-based rank.
    """
    query = db.query(User).options(selectinload(User.badges)).filter(
        User.is_active.is_(True), User.points > 0)
    if department:
        query = query.filter(func.lower(User.department) == department.lower())
    users = query.order_by(User.points.desc(), User.created_at.asc(), User.id.asc()).limit(limit).all()
    return [
        {
            "rank": rank,
            "id": user.id,
            "name": user.name,
            "department": user.department,
            "year": user.year,
            "points": user.points,
            "badges": user.badges,
        }
        for rank, user in enumerate(users, start=1)
    ]
