"""Community forum: posts, replies, likes and team-formation applications."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_events.errors import NotFound, StateConflict, ValidationFailed
from campus_events.models.event import Event
from campus_events.models.forum import ForumLike, ForumPost, ForumReply, TeamApplication
from campus_events.models.user import User
from campus_events.permissions import ensure_can, is_admin
from campus_events.schemas.common import paginate
from campus_events.services.notifications import notify

logger = logging.getLogger(__name__)


def _visible(user: User):
    conditions = [ForumPost.visibility.in_(("public", "event-participants")), ForumPost.author_id == user.id]
    if user.department:
        conditions.append((ForumPost.visibility == "department") & (ForumPost.department == user.department))
    return or_(*conditions)


def get_post_or_404(db: Session, post_id: int, user: User = None) -> ForumPost:
    query = db.query(ForumPost).filter(ForumPost.id == post_id, ForumPost.status == "active")
    if user is not None and not is_admin(user):
        query = query.filter(_visible(user))
    post = query.first()
    if post is None:
        raise NotFound("Post not found", reason="post_not_found")
    return post


def list_posts(db: Session, user: User, category="general", search=None, page=1, limit=10) -> dict:
    query = db.query(ForumPost).filter(ForumPost.status == "active")
    if not is_admin(user):
        query = query.filter(_visible(user))
    if category:
        query = query.filter(ForumPost.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(ForumPost.title.ilike(pattern), ForumPost.content.ilike(pattern)))

    query = query.order_by(ForumPost.created_at.desc(), ForumPost.id.desc())
    return paginate(query, page, limit)


def create_post(db: Session, user: User, data) -> ForumPost:
    if data.related_event_id is not None and db.get(Event, data.related_event_id) is None:
        raise NotFound("Event not found", reason="event_not_found")
    if data.is_looking_for_team and not data.max_team_size:
        raise ValidationFailed.field("max_team_size", "Max team size is required when looking for a team")

    post = ForumPost(author_id=user.id, department=user.department, **data.model_dump())
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Forum post %s created by user %s", post.id, user.id)
    return post


def view_post(db: Session, user: User, post_id: int) -> ForumPost:
    post = get_post_or_404(db, post_id, user)
    db.query(ForumPost).filter(ForumPost.id == post.id).update(
        {ForumPost.views: ForumPost.views + 1}, synchronize_session="fetch")
    db.commit()
    db.refresh(post)
    return post


def toggle_like(db: Session, user: User, post_id: int) -> dict:
    post = get_post_or_404(db, post_id, user)
    like = db.query(ForumLike).filter(ForumLike.post_id == post.id, ForumLike.user_id == user.id).first()
    if like:
        db.delete(like)
        liked = False
    else:
        db.add(ForumLike(post_id=post.id, user_id=user.id))
        liked = True
    db.commit()
    db.refresh(post)
    return {"liked": liked, "like_count": post.like_count}


def add_reply(db: Session, user: User, post_id: int, data) -> ForumReply:
    post = get_post_or_404(db, post_id, user)
    reply = ForumReply(post_id=post.id, author_id=user.id, content=data.content)
    db.add(reply)
    db.commit()
    db.refresh(reply)

    if post.author_id != user.id:
        notify(db, post.author_id, "New reply", f'{user.name} replied to "{post.title}".', "system")
    return reply


def apply_to_team(db: Session, user: User, post_id: int, data) -> TeamApplication:
    post = get_post_or_404(db, post_id, user)

    if not post.is_looking_for_team:
        raise StateConflict("This post is not looking for team members", reason="not_recruiting")
    if post.is_team_complete:
        raise StateConflict("Team is already complete", reason="team_complete")
    if post.author_id == user.id:
        raise StateConflict("You cannot apply to your own team", reason="own_post")

    already = db.query(TeamApplication.id).filter(
        TeamApplication.post_id == post.id, TeamApplication.user_id == user.id).first()
    if already:
        raise StateConflict("You have already applied to this team", reason="already_applied")

    application = TeamApplication(post_id=post.id, user_id=user.id, message=data.message,
                                  skills=list(data.skills))
    db.add(application)
    db.commit()
    db.refresh(application)
    logger.info("User %s applied to team post %s", user.id, post.id)

    notify(db, post.author_id, "New team application",
           f'{user.name} applied to join your team "{post.title}".', "system")
    return application


def accept_application(db: Session, user: User, post_id: int, application_id: int) -> TeamApplication:
    post = get_post_or_404(db, post_id, user)
    ensure_can(user, "forum.manage_post", post, "Not authorized to manage this post")

    application = db.query(TeamApplication).filter(
        TeamApplication.id == application_id, TeamApplication.post_id == post.id).first()
    if application is None:
        raise NotFound("Application not found", reason="application_not_found")
    if application.status != "pending":
        raise StateConflict("Application has already been processed", reason="application_processed")

    updated = db.query(ForumPost).filter(
        ForumPost.id == post.id,
        ForumPost.is_team_complete.is_(False),
        ForumPost.current_team_size < ForumPost.max_team_size,
    ).update({ForumPost.current_team_size: ForumPost.current_team_size + 1}, synchronize_session="fetch")
    if not updated:
        db.rollback()
        raise StateConflict("Team is already complete", reason="team_complete")

    application.status = "accepted"
    db.flush()
    db.refresh(post)
    if post.current_team_size >= post.max_team_size:
        post.is_team_complete = True
    db.commit()
    db.refresh(application)
    logger.info("Application %s accepted on post %s", application.id, post.id)

    notify(db, application.user_id, "Team application accepted",
           f'You have been accepted into the team "{post.title}".', "system", type="success")
    return application


def delete_post(db: Session, user: User, post_id: int) -> None:
    post = get_post_or_404(db, post_id, user)
    ensure_can(user, "forum.manage_post", post, "Not authorized to delete this post")
    post.status = "deleted"
    db.commit()
    logger.info("Forum post %s deleted by user %s", post.id, user.id)
