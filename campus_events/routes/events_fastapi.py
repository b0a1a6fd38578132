# campus_events/routes/events_fastapi.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_admin_user, get_current_active_user, get_optional_user, get_organizer_or_admin
from campus_events.models.user import User
from campus_events.schemas.common import Envelope, Page
from campus_events.schemas.event import Category, EventCreate, EventRead, EventStatusUpdate, EventUpdate
from campus_events.schemas.registration import EventRegistrations
from campus_events.services import events as event_service

router = APIRouter(
    tags=["Events"],
    prefix="/api/v1/events"
)


@router.post("", response_model=Envelope[EventRead], status_code=status.HTTP_201_CREATED)
def create_event(event: EventCreate, current_user: User = Depends(get_organizer_or_admin),
                 db: Session = Depends(database.get_db)):
    db_event = event_service.create_event(db, current_user, event)
    message = "Event created successfully" if db_event.status == "approved" \
        else "Event created and submitted for approval"
    return {"success": True, "message": message, "data": db_event}


@router.get("", response_model=Envelope[Page[EventRead]])
def read_events(category: Optional[Category] = None, department: Optional[str] = None,
                search: Optional[str] = None, upcoming: bool = False, status: Optional[str] = None,
                page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
                current_user: Optional[User] = Depends(get_optional_user),
                db: Session = Depends(database.get_db)):
    result = event_service.list_events(db, current_user, category=category, department=department,
                                       search=search, upcoming=upcoming, status=status,
                                       page=page, limit=limit)
    return {"success": True, "message": f"{result['total']} events found", "data": result}


@router.get("/featured", response_model=Envelope[List[EventRead]])
def read_featured_events(db: Session = Depends(database.get_db)):
    events = event_service.featured_events(db)
    return {"success": True, "message": f"{len(events)} featured events", "data": events}


@router.get("/organizer/{organizer_id}", response_model=Envelope[Page[EventRead]])
def read_organizer_events(organizer_id: int, page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
                          current_user: Optional[User] = Depends(get_optional_user),
                          db: Session = Depends(database.get_db)):
    result = event_service.organizer_events(db, organizer_id, current_user, page=page, limit=limit)
    return {"success": True, "message": f"{result['total']} events found", "data": result}


@router.get("/{event_id}", response_model=Envelope[EventRead])
def read_event(event_id: int, current_user: Optional[User] = Depends(get_optional_user),
               db: Session = Depends(database.get_db)):
    return {"success": True, "message": "Event found", "data": event_service.get_event(db, event_id, current_user)}


@router.put("/{event_id}", response_model=Envelope[EventRead])
def update_event(event_id: int, event: EventUpdate, current_user: User = Depends(get_current_active_user),
                 db: Session = Depends(database.get_db)):
    db_event = event_service.update_event(db, current_user, event_id, event)
    return {"success": True, "message": "Event updated successfully", "data": db_event}


@router.delete("/{event_id}", response_model=Envelope[dict])
def delete_event(event_id: int, current_user: User = Depends(get_current_active_user),
                 db: Session = Depends(database.get_db)):
    outcome = event_service.delete_event(db, current_user, event_id)
    message = "Event deleted successfully" if outcome == "deleted" else "Event cancelled successfully"
    return {"success": True, "message": message, "data": {"id": event_id, "result": outcome}}


@router.patch("/{event_id}/status", response_model=Envelope[EventRead])
def update_event_status(event_id: int, payload: EventStatusUpdate, admin: User = Depends(get_admin_user),
                        db: Session = Depends(database.get_db)):
    db_event = event_service.set_event_status(db, admin, event_id, payload.status, payload.rejection_reason)
    return {"success": True, "message": f"Event {payload.status} successfully", "data": db_event}


@router.get("/{event_id}/registrations", response_model=Envelope[EventRegistrations])
def read_event_registrations(event_id: int, status: Optional[str] = None,
                             current_user: User = Depends(get_current_active_user),
                             db: Session = Depends(database.get_db)):
    result = event_service.event_registrations(db, current_user, event_id, status)
    return {"success": True, "message": f"{len(result['registrations'])} registrations", "data": result}
