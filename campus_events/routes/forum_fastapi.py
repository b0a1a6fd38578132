# campus_events/routes/forum_fastapi.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_current_active_user
from campus_events.models.user import User
from campus_events.schemas.common import Envelope, Page
from campus_events.schemas.forum import (ApplicationCreate, ApplicationRead, Category, LikeResult, PostCreate,
                                         PostRead, PostSummary, ReplyCreate, ReplyRead)
from campus_events.services import forum as forum_service

router = APIRouter(
    tags=["Forum"],
    prefix="/api/v1/forum",
)


@router.get("", response_model=Envelope[Page[PostSummary]])
def read_posts(category: Optional[Category] = "general", search: Optional[str] = None,
               page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=50),
               current_user: User = Depends(get_current_active_user),
               db: Session = Depends(database.get_db)):
    result = forum_service.list_posts(db, current_user, category=category, search=search, page=page, limit=limit)
    return {"success": True, "message": f"{result['total']} posts found", "data": result}


@router.post("", response_model=Envelope[PostRead], status_code=status.HTTP_201_CREATED)
def create_post(payload: PostCreate, current_user: User = Depends(get_current_active_user),
                db: Session = Depends(database.get_db)):
    post = forum_service.create_post(db, current_user, payload)
    return {"success": True, "message": "Post created successfully", "data": post}


@router.get("/{post_id}", response_model=Envelope[PostRead])
def read_post(post_id: int, current_user: User = Depends(get_current_active_user),
              db: Session = Depends(database.get_db)):
    return {"success": True, "message": "Post found", "data": forum_service.view_post(db, current_user, post_id)}


@router.delete("/{post_id}", response_model=Envelope[dict])
def delete_post(post_id: int, current_user: User = Depends(get_current_active_user),
                db: Session = Depends(database.get_db)):
    forum_service.delete_post(db, current_user, post_id)
    return {"success": True, "message": "Post deleted successfully", "data": {"id": post_id}}


@router.post("/{post_id}/like", response_model=Envelope[LikeResult])
def like_post(post_id: int, current_user: User = Depends(get_current_active_user),
              db: Session = Depends(database.get_db)):
    result = forum_service.toggle_like(db, current_user, post_id)
    return {"success": True, "message": "Post liked" if result["liked"] else "Post unliked", "data": result}


@router.post("/{post_id}/replies", response_model=Envelope[ReplyRead], status_code=status.HTTP_201_CREATED)
def reply_to_post(post_id: int, payload: ReplyCreate, current_user: User = Depends(get_current_active_user),
                  db: Session = Depends(database.get_db)):
    reply = forum_service.add_reply(db, current_user, post_id, payload)
    return {"success": True, "message": "Reply added successfully", "data": reply}


@router.post("/{post_id}/apply", response_model=Envelope[ApplicationRead], status_code=status.HTTP_201_CREATED)
def apply_to_team(post_id: int, payload: ApplicationCreate, current_user: User = Depends(get_current_active_user),
                  db: Session = Depends(database.get_db)):
    application = forum_service.apply_to_team(db, current_user, post_id, payload)
    return {"success": True, "message": "Application submitted successfully", "data": application}


@router.post("/{post_id}/applications/{application_id}/accept", response_model=Envelope[ApplicationRead])
def accept_application(post_id: int, application_id: int, current_user: User = Depends(get_current_active_user),
                       db: Session = Depends(database.get_db)):
    application = forum_service.accept_application(db, current_user, post_id, application_id)
    return {"success": True, "message": "Application accepted", "data": application}
