"""Seminar and session schemas."""

from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, List, Optional
from datetime import date, datetime
import re

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not _HHMM.match(value):
        raise ValueError("time must be HH:MM")
    return value


HHMM = Annotated[Optional[str], AfterValidator(_check_hhmm)]


class SeminarCreate(BaseModel):
    title: str
    slug: str
    year: int
    description: Optional[str] = None
    total_sessions: Optional[int] = Field(None, ge=1)
    status: str = "active"


class SeminarOut(BaseModel):
    seminar_id: int
    title: str
    slug: str
    year: int
    description: Optional[str] = None
    total_sessions: int
    status: str

    model_config = {"from_attributes": True}


class SeminarSessionCreate(BaseModel):
    session_number: int
    session_date: date
    time_start: HHMM = None
    time_end: HHMM = None
    topic: Optional[str] = None
    description: Optional[str] = None


class SeminarSessionUpdate(BaseModel):
    session_number: Optional[int] = None
    session_date: Optional[date] = None
    time_start: HHMM = None
    time_end: HHMM = None
    topic: Optional[str] = None
    description: Optional[str] = None


class SeminarSessionOut(BaseModel):
    session_id: int
    seminar_id: int
    session_number: int
    session_date: date
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    topic: Optional[str] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class SessionBriefOut(BaseModel):
    session_id: int
    session_number: int
    session_date: date
    topic: Optional[str] = None

    model_config = {"from_attributes": True}


class SeminarDetailOut(SeminarOut):
    sessions: List[SeminarSessionOut] = []
    created_at: Optional[datetime] = None


class SeminarStatsOut(BaseModel):
    total_registrations: int
    active_registrations: int
    completed_registrations: int
    on_hold_registrations: int
    cancelled_registrations: int
    total_attendance: int
    makeup_attendance: int
    average_sessions_completed: float


class SessionAttendanceCountOut(SessionBriefOut):
    attendance_count: int = 0


class SeminarStatsResultOut(BaseModel):
    seminar: SeminarOut
    stats: SeminarStatsOut
    sessions: List[SessionAttendanceCountOut] = []


class SessionRemindersResultOut(BaseModel):
    message: str
    sessions_found: int
    reminders_sent: int
    errors: List[str] = []
