"""Auth service: bearer token issuance and the identity-provider session exchange stand-in."""

from datetime import datetime, timedelta, timezone
from jose import jwt
from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from dentalce.models.user import User
from dentalce.config import settings

ALGORITHM = "HS256"


def create_access_token(user_id: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def login_by_email(db: Session, email: str) -> User:
    normalized = (email or "").strip().lower()
    user = db.query(User).filter(func.lower(User.email) == normalized, User.is_active == True).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"No active user found for '{email}'",
        )
    return user
