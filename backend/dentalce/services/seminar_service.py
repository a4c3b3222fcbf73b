"""Seminar catalog, session schedule and registration service."""

import logging
import secrets
import time
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dentalce.config import settings
from dentalce.models.registration import SeminarAttendance, SeminarRegistration
from dentalce.models.seminar import Seminar, SeminarSession
from dentalce.models.user import User
from dentalce.schemas.seminar import SeminarCreate, SeminarSessionCreate, SeminarSessionUpdate
from dentalce.schemas.registration import RegistrationUpdate

logger = logging.getLogger(__name__)

REGISTRATION_STATUSES = {"active", "completed", "on_hold", "cancelled"}
SEMINAR_STATUSES = {"draft", "active", "completed", "archived"}
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_qr_code_string() -> str:
    timestamp = _to_base36(int(time.time() * 1000))
    return f"SEM-{timestamp}-{secrets.token_hex(4)}".upper()


# ── Seminars ────────────────────────────────────────────────────────────


def list_seminars(db: Session, active_only: bool = False) -> List[Seminar]:
    q = db.query(Seminar)
    if active_only:
        q = q.filter(Seminar.status.in_(["active", "completed"]))
    return q.order_by(Seminar.year.desc(), Seminar.seminar_id.desc()).all()


def get_seminar(db: Session, seminar_id: int) -> Seminar:
    seminar = db.query(Seminar).filter(Seminar.seminar_id == seminar_id).first()
    if not seminar:
        raise HTTPException(status_code=404, detail="Seminar not found")
    return seminar


def get_seminar_by_slug(db: Session, slug: str) -> Seminar:
    seminar = db.query(Seminar).filter(Seminar.slug == slug).first()
    if not seminar:
        raise HTTPException(status_code=404, detail="Seminar not found")
    return seminar


def create_seminar(db: Session, data: SeminarCreate) -> Seminar:
    if data.status not in SEMINAR_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid seminar status: {data.status}")
    if db.query(Seminar).filter(Seminar.slug == data.slug).first():
        raise HTTPException(status_code=409, detail="A seminar with this slug already exists")
    if data.total_sessions is not None and data.total_sessions < 1:
        raise HTTPException(status_code=400, detail="A seminar needs at least one session")
    seminar = Seminar(**data.model_dump())
    if seminar.total_sessions is None:
        seminar.total_sessions = settings.SEMINAR_TOTAL_SESSIONS
    db.add(seminar)
    db.commit()
    db.refresh(seminar)
    return seminar


# ── Sessions ────────────────────────────────────────────────────────────


def list_sessions(db: Session, seminar_id: int) -> List[SeminarSession]:
    return (
        db.query(SeminarSession)
        .filter(SeminarSession.seminar_id == seminar_id)
        .order_by(SeminarSession.session_number.asc())
        .all()
    )


def get_session(db: Session, session_id: int) -> SeminarSession:
    session = db.query(SeminarSession).filter(SeminarSession.session_id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _ensure_session_number(seminar: Seminar, session_number: int) -> None:
    if session_number < 1 or session_number > seminar.total_sessions:
        raise HTTPException(
            status_code=400,
            detail=f"Session number must be between 1 and {seminar.total_sessions}",
        )


def create_session(db: Session, seminar_id: int, data: SeminarSessionCreate) -> SeminarSession:
    seminar = get_seminar(db, seminar_id)
    _ensure_session_number(seminar, data.session_number)
    session = SeminarSession(seminar_id=seminar_id, **data.model_dump())
    db.add(session)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Session {data.session_number} already exists")
    db.refresh(session)
    return session


def update_session(db: Session, session_id: int, data: SeminarSessionUpdate) -> SeminarSession:
    session = get_session(db, session_id)
    payload = data.model_dump(exclude_unset=True)
    if "session_number" in payload:
        _ensure_session_number(session.seminar, payload["session_number"])
    for key, value in payload.items():
        setattr(session, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Another session already uses this number")
    db.refresh(session)
    logger.info("[seminars] session %s corrected fields=%s", session_id, sorted(payload))
    return session


# ── Registrations ───────────────────────────────────────────────────────


def get_registration(db: Session, registration_id: int) -> SeminarRegistration:
    registration = (
        db.query(SeminarRegistration)
        .filter(SeminarRegistration.registration_id == registration_id)
        .first()
    )
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    return registration


def get_registration_by_qr_code(db: Session, qr_code: str) -> SeminarRegistration:
    registration = (
        db.query(SeminarRegistration)
        .filter(SeminarRegistration.qr_code == (qr_code or "").strip().upper())
        .first()
    )
    if not registration:
        raise HTTPException(status_code=404, detail="Invalid QR code - registration not found")
    return registration


def register(db: Session, user: User, seminar_id: int) -> SeminarRegistration:
    seminar = get_seminar(db, seminar_id)
    if seminar.status != "active":
        raise HTTPException(status_code=400, detail="Registration is closed for this seminar")

    existing = (
        db.query(SeminarRegistration)
        .filter(
            SeminarRegistration.user_id == user.user_id,
            SeminarRegistration.seminar_id == seminar_id,
            SeminarRegistration.status != "cancelled",
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="You are already registered for this seminar")

    registration = SeminarRegistration(
        user_id=user.user_id,
        seminar_id=seminar_id,
        status="active",
        sessions_completed=0,
        sessions_remaining=seminar.total_sessions,
        makeup_used=False,
        qr_code=generate_qr_code_string(),
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="You are already registered for this seminar")
    db.refresh(registration)
    logger.info("[seminars] user=%s registered for seminar=%s", user.user_id, seminar_id)
    return registration


def list_user_registrations(db: Session, user_id: int) -> List[SeminarRegistration]:
    return (
        db.query(SeminarRegistration)
        .filter(SeminarRegistration.user_id == user_id)
        .order_by(SeminarRegistration.created_at.desc(), SeminarRegistration.registration_id.desc())
        .all()
    )


def list_registrations(
    db: Session,
    seminar_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[SeminarRegistration]:
    q = db.query(SeminarRegistration)
    if seminar_id:
        q = q.filter(SeminarRegistration.seminar_id == seminar_id)
    if status:
        q = q.filter(SeminarRegistration.status == status)
    return q.order_by(SeminarRegistration.registration_id.desc()).all()


def update_registration(db: Session, registration_id: int, data: RegistrationUpdate) -> SeminarRegistration:
    registration = get_registration(db, registration_id)
    payload = data.model_dump(exclude_unset=True)
    if not payload:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "status" in payload and payload["status"] not in REGISTRATION_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid registration status: {payload['status']}")
    for key, value in payload.items():
        setattr(registration, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="User already has another live registration for this seminar")
    db.refresh(registration)
    logger.info("[seminars] registration %s updated fields=%s", registration_id, sorted(payload))
    return registration


def cancel_registration(db: Session, registration_id: int) -> SeminarRegistration:
    registration = get_registration(db, registration_id)
    registration.status = "cancelled"
    db.commit()
    db.refresh(registration)
    return registration


def attended_session_ids(db: Session, registration_id: int) -> List[int]:
    return [
        row[0]
        for row in db.query(SeminarAttendance.session_id)
        .filter(SeminarAttendance.registration_id == registration_id)
        .all()
    ]


def recompute_progress(db: Session, registration: SeminarRegistration) -> SeminarRegistration:
    """Derive completed/remaining from attendance so the two always sum to the seminar total."""
    db.flush()
    total = registration.seminar.total_sessions
    completed = (
        db.query(SeminarAttendance)
        .filter(SeminarAttendance.registration_id == registration.registration_id)
        .count()
    )
    registration.sessions_completed = completed
    registration.sessions_remaining = max(total - completed, 0)
    if registration.sessions_remaining <= 0 and registration.status == "active":
        registration.status = "completed"
    elif registration.sessions_remaining > 0 and registration.status == "completed":
        registration.status = "active"
    return registration


def get_seminar_stats(db: Session, seminar_id: int) -> dict:
    """Registration counts by status, attendance totals and per-session attendance."""
    seminar = get_seminar(db, seminar_id)
    registrations = db.query(SeminarRegistration).filter(SeminarRegistration.seminar_id == seminar_id).all()
    by_status = {status: 0 for status in sorted(REGISTRATION_STATUSES)}
    for registration in registrations:
        by_status[registration.status] = by_status.get(registration.status, 0) + 1

    attendance = db.query(SeminarAttendance).filter(SeminarAttendance.seminar_id == seminar_id).all()
    per_session = {}
    for row in attendance:
        per_session[row.session_id] = per_session.get(row.session_id, 0) + 1

    live = [r for r in registrations if r.status != "cancelled"]
    average = sum(r.sessions_completed for r in live) / len(live) if live else 0.0

    return {
        "seminar": seminar,
        "stats": {
            "total_registrations": len(registrations),
            "active_registrations": by_status.get("active", 0),
            "completed_registrations": by_status.get("completed", 0),
            "on_hold_registrations": by_status.get("on_hold", 0),
            "cancelled_registrations": by_status.get("cancelled", 0),
            "total_attendance": len(attendance),
            "makeup_attendance": sum(1 for row in attendance if row.is_makeup),
            "average_sessions_completed": round(average, 2),
        },
        "sessions": [
            {
                "session_id": session.session_id,
                "session_number": session.session_number,
                "session_date": session.session_date,
                "topic": session.topic,
                "attendance_count": per_session.get(session.session_id, 0),
            }
            for session in list_sessions(db, seminar_id)
        ],
    }
