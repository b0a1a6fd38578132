# campus_events/routes/users_fastapi.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_admin_user, get_current_active_user
from campus_events.errors import NotFound, PermissionDenied, StateConflict
from campus_events.models.user import User
from campus_events.permissions import is_admin
from campus_events.schemas.common import Envelope
from campus_events.schemas.user import UserRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"]
)


def _get_user(db: Session, user_id: int) -> User:
    db_user = db.get(User, user_id)
    if db_user is None:
        raise NotFound("User not found", reason="user_not_found")
    return db_user


@router.get("", response_model=Envelope[List[UserRead]], dependencies=[Depends(get_admin_user)])
def read_users(role: Optional[str] = None, department: Optional[str] = None, search: Optional[str] = None,
               skip: int = Query(0, ge=0), limit: int = Query(100, ge=1, le=500),
               db: Session = Depends(database.get_db)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if department:
        query = query.filter(User.department == department)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    users = query.order_by(User.id).offset(skip).limit(limit).all()
    return {"success": True, "message": f"{len(users)} users", "data": users}


@router.get("/{user_id}", response_model=Envelope[UserRead])
def read_user(user_id: int, current_user: User = Depends(get_current_active_user),
              db: Session = Depends(database.get_db)):
    if current_user.id != user_id and not is_admin(current_user):
        raise PermissionDenied("Not authorized to view this user")
    return {"success": True, "message": "User found", "data": _get_user(db, user_id)}


def _set_active(db: Session, admin: User, user_id: int, active: bool) -> User:
    db_user = _get_user(db, user_id)
    if db_user.id == admin.id and not active:
        raise StateConflict("You cannot deactivate your own account", reason="self_deactivation")
    db_user.is_active = active
    db.commit()
    db.refresh(db_user)
    logger.info("User %s %s by admin %s", db_user.id, "activated" if active else "deactivated", admin.id)
    return db_user


@router.patch("/{user_id}/deactivate", response_model=Envelope[UserRead])
def deactivate_user(user_id: int, admin: User = Depends(get_admin_user), db: Session = Depends(database.get_db)):
    return {"success": True, "message": "User deactivated", "data": _set_active(db, admin, user_id, False)}


@router.patch("/{user_id}/activate", response_model=Envelope[UserRead])
def activate_user(user_id: int, admin: User = Depends(get_admin_user), db: Session = Depends(database.get_db)):
    return {"success": True, "message": "User activated", "data": _set_active(db, admin, user_id, True)}
