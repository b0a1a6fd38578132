# campus_events/routes/registrations_fastapi.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.auth import get_current_active_user
from campus_events.models.user import User
from campus_events.schemas.common import Envelope, Page
from campus_events.schemas.registration import (AttendanceMark, CheckIn, Feedback, JoinTeam,
                                                RegistrationCreate, RegistrationRead, Status,
                                                StatusUpdate, TeamRead, TeamUpdate)
from campus_events.services import registrations as registration_service

router = APIRouter(
    tags=["Registrations"],
    prefix="/api/v1/registrations"
)


@router.post("", response_model=Envelope[RegistrationRead], status_code=status.HTTP_201_CREATED)
def create_registration(payload: RegistrationCreate, current_user: User = Depends(get_current_active_user),
                        db: Session = Depends(database.get_db)):
    registration = registration_service.create_registration(db, current_user, payload)
    return {"success": True, "message": "Registration successful", "data": registration}


@router.get("/my", response_model=Envelope[Page[RegistrationRead]])
def read_my_registrations(status: Optional[Status] = None, page: int = Query(1, ge=1),
                          limit: int = Query(10, ge=1, le=100),
                          current_user: User = Depends(get_current_active_user),
                          db: Session = Depends(database.get_db)):
    result = registration_service.my_registrations(db, current_user, status=status, page=page, limit=limit)
    return {"success": True, "message": f"{result['total']} registrations found", "data": result}


@router.post("/join-team", response_model=Envelope[RegistrationRead], status_code=status.HTTP_201_CREATED)
def join_team(payload: JoinTeam, current_user: User = Depends(get_current_active_user),
              db: Session = Depends(database.get_db)):
    registration = registration_service.join_team(db, current_user, payload)
    return {"success": True, "message": "Successfully joined team", "data": registration}


@router.get("/{registration_id}", response_model=Envelope[RegistrationRead])
def read_registration(registration_id: int, current_user: User = Depends(get_current_active_user),
                      db: Session = Depends(database.get_db)):
    registration = registration_service.get_registration(db, current_user, registration_id)
    return {"success": True, "message": "Registration found", "data": registration}


@router.get("/{registration_id}/team", response_model=Envelope[TeamRead])
def read_team(registration_id: int, current_user: User = Depends(get_current_active_user),
              db: Session = Depends(database.get_db)):
    team = registration_service.get_team(db, current_user, registration_id)
    return {"success": True, "message": "Team details", "data": team}


@router.put("/{registration_id}/team", response_model=Envelope[TeamRead])
def update_team(registration_id: int, payload: TeamUpdate, current_user: User = Depends(get_current_active_user),
                db: Session = Depends(database.get_db)):
    team = registration_service.update_team(db, current_user, registration_id, payload)
    return {"success": True, "message": "Team updated successfully", "data": team}


@router.post("/{registration_id}/checkin", response_model=Envelope[RegistrationRead])
def check_in(registration_id: int, payload: CheckIn, current_user: User = Depends(get_current_active_user),
             db: Session = Depends(database.get_db)):
    registration = registration_service.check_in(db, current_user, registration_id, payload)
    return {"success": True, "message": "Check-in successful", "data": registration}


@router.post("/{registration_id}/attendance", response_model=Envelope[RegistrationRead])
def mark_attendance(registration_id: int, payload: AttendanceMark,
                    current_user: User = Depends(get_current_active_user),
                    db: Session = Depends(database.get_db)):
    registration = registration_service.mark_attendance(db, current_user, registration_id, payload)
    return {"success": True, "message": "Attendance recorded", "data": registration}


@router.post("/{registration_id}/feedback", response_model=Envelope[RegistrationRead])
def submit_feedback(registration_id: int, payload: Feedback, current_user: User = Depends(get_current_active_user),
                    db: Session = Depends(database.get_db)):
    registration = registration_service.submit_feedback(db, current_user, registration_id, payload)
    return {"success": True, "message": "Feedback submitted successfully", "data": registration}


@router.delete("/{registration_id}", response_model=Envelope[RegistrationRead])
def cancel_registration(registration_id: int, current_user: User = Depends(get_current_active_user),
                        db: Session = Depends(database.get_db)):
    registration = registration_service.cancel_registration(db, current_user, registration_id)
    return {"success": True, "message": "Registration cancelled successfully", "data": registration}


@router.patch("/{registration_id}/status", response_model=Envelope[RegistrationRead])
def update_registration_status(registration_id: int, payload: StatusUpdate,
                               current_user: User = Depends(get_current_active_user),
                               db: Session = Depends(database.get_db)):
    registration = registration_service.update_status(db, current_user, registration_id, payload.status)
    return {"success": True, "message": f"Registration status updated to {payload.status}", "data": registration}
