"""Seminar registration and attendance schemas."""

from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime

from dentalce.schemas.seminar import SeminarOut, SessionBriefOut
from dentalce.schemas.user import UserOut


class RegisterRequest(BaseModel):
    seminar_id: int


class RegistrationUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None
    makeup_used: Optional[bool] = None


class RegistrationOut(BaseModel):
    registration_id: int
    user_id: int
    seminar_id: int
    status: str
    sessions_completed: int
    sessions_remaining: int
    makeup_used: bool
    qr_code: Optional[str] = None
    registration_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AttendanceOut(BaseModel):
    attendance_id: int
    registration_id: int
    session_id: int
    user_id: int
    is_makeup: bool
    credits_awarded: float
    checked_in_at: datetime
    checked_in_by: Optional[int] = None
    notes: Optional[str] = None
    session: Optional[SessionBriefOut] = None

    model_config = {"from_attributes": True}


class RegistrationDetailOut(RegistrationOut):
    user: Optional[UserOut] = None
    seminar: Optional[SeminarOut] = None
    attendance: List[AttendanceOut] = []


class CheckInRequest(BaseModel):
    session_id: Optional[int] = None
    registration_id: Optional[int] = None
    qr_code: Optional[str] = None
    is_makeup: bool = False
    notes: Optional[str] = None


class CheckInResultOut(BaseModel):
    attendance_id: int
    registration_id: int
    session_id: int
    attendee_name: str
    attendee_email: Optional[str] = None
    credits_awarded: float
    is_makeup: bool
    sessions_completed: int
    sessions_remaining: int
    registration_status: str
    session_topic: Optional[str] = None
    session_date: date
