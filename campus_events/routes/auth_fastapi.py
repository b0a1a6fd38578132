# campus_events/routes/auth_fastapi.py
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from campus_events import auth, database
from campus_events.errors import AuthenticationError, StateConflict
from campus_events.models.user import User
from campus_events.schemas.common import Envelope
from campus_events.schemas.user import Token, UserCreate, UserLogin, UserRead, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["Authentication"]
)


def _login(db: Session, email: str, password: str) -> dict:
    user = auth.authenticate_user(db, email, password)
    if not user:
        raise AuthenticationError("Invalid credentials", reason="invalid_credentials")
    if not user.is_active:
        raise AuthenticationError("Account has been deactivated", reason="account_deactivated")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return {"access_token": auth.token_for_user(user), "token_type": "bearer", "user_info": user}


@router.post("/register", response_model=Envelope[Token], status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(database.get_db)):
    if auth.get_user_by_email(db, user.email):
        raise StateConflict("User already exists with this email", reason="email_taken")

    db_user = User(
        name=user.name,
        email=user.email,
        hashed_password=auth.get_password_hash(user.password),
        role=user.role,
        department=user.department,
        year=user.year,
        phone=user.phone,
        last_login=datetime.utcnow(),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("User %s registered as %s", db_user.id, db_user.role)

    token = {"access_token": auth.token_for_user(db_user), "token_type": "bearer", "user_info": db_user}
    return {"success": True, "message": "User registered successfully", "data": token}


@router.post("/token", response_model=Token)
def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(database.get_db)):
    # OAuth2 form: the username field carries the email
    return _login(db, form_data.username, form_data.password)


@router.post("/login", response_model=Envelope[Token])
def login(credentials: UserLogin, db: Session = Depends(database.get_db)):
    return {"success": True, "message": "Login successful", "data": _login(db, credentials.email, credentials.password)}


@router.get("/me", response_model=Envelope[UserRead])
def read_me(current_user: User = Depends(auth.get_current_active_user)):
    return {"success": True, "message": "User profile", "data": current_user}


@router.put("/me", response_model=Envelope[UserRead])
def update_me(data: UserUpdate, current_user: User = Depends(auth.get_current_active_user),
              db: Session = Depends(database.get_db)):
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return {"success": True, "message": "Profile updated successfully", "data": current_user}
