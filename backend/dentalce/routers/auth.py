"""Auth API router: token exchange and the current user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dentalce.database import get_db
from dentalce.middleware.auth_middleware import get_current_user
from dentalce.models.user import User
from dentalce.schemas.user import LoginRequest, TokenResponse, UserOut
from dentalce.services.auth_service import create_access_token, login_by_email

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = login_by_email(db, request.email)
    token = create_access_token(user.user_id)
    return TokenResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
