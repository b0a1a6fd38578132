# campus_events/auth.py
from datetime import datetime, timedelta

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from campus_events import config, database
from campus_events.errors import AuthenticationError, PermissionDenied
from campus_events.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def token_for_user(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email.lower()).first()


def authenticate_user(db: Session, email: str, password: str):
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def _user_from_token(token: str, db: Session):
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            return None
    except JWTError:
        return None
    return db.query(User).filter(User.id == int(user_id)).first()


# --- AUTHENTICATION AND AUTHORIZATION DEPENDENCIES ---

async def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(database.get_db)):
    if not token:
        raise AuthenticationError("Not authorized to access this route")
    user = _user_from_token(token, db)
    if user is None:
        raise AuthenticationError("Not authorized to access this route", reason="invalid_token")
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    """
    Rejects deactivated accounts. Users are never deleted, only deactivated.
    """
    if not current_user.is_active:
        raise AuthenticationError("Account has been deactivated", reason="account_deactivated")
    return current_user


async def get_optional_user(token: str = Depends(oauth2_scheme), db: Session = Depends(database.get_db)):
    """Public routes that show more to signed-in users. A bad token is just ignored."""
    if not token:
        return None
    user = _user_from_token(token, db)
    if user is None or not user.is_active:
        return None
    return user


def require_roles(*roles):
    async def checker(current_user: User = Depends(get_current_active_user)):
        if current_user.role not in roles:
            raise PermissionDenied(f"User role {current_user.role} is not authorized to access this route")
        return current_user
    return checker


get_admin_user = require_roles("admin")
get_organizer_or_admin = require_roles("organizer", "admin")
