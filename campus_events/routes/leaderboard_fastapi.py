# campus_events/routes/leaderboard_fastapi.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_events import database
from campus_events.schemas.common import Envelope
from campus_events.schemas.user import LeaderboardEntry
from campus_events.services.leaderboard import leaderboard

router = APIRouter(
    tags=["Leaderboard"],
    prefix="/api/v1/leaderboard"
)


@router.get("", response_model=Envelope[List[LeaderboardEntry]])
def read_leaderboard(department: Optional[str] = None, limit: int = Query(50, ge=1, le=100),
                     db: Session = Depends(database.get_db)):
    entries = leaderboard(db, department=department, limit=limit)
    return {"success": True, "message": "Leaderboard", "data": entries}


@router.get("/department/{department}", response_model=Envelope[List[LeaderboardEntry]])
def read_department_leaderboard(department: str, limit: int = Query(50, ge=1, le=100),
                                db: Session = Depends(database.get_db)):
    entries = leaderboard(db, department=department, limit=limit)
    return {"success": True, "message": f"Leaderboard for {department}", "data": entries}
