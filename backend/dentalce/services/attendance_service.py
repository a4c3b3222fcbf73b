"""Seminar check-in service: records attendance, awards session credits and keeps progress in sync."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dentalce.config import settings
from dentalce.models.makeup_request import MakeupRequest
from dentalce.models.registration import SeminarAttendance, SeminarRegistration
from dentalce.services import credit_service, seminar_service

logger = logging.getLogger(__name__)


def _resolve_registration(
    db: Session,
    registration_id: Optional[int],
    qr_code: Optional[str],
) -> SeminarRegistration:
    if qr_code:
        return seminar_service.get_registration_by_qr_code(db, qr_code)
    if registration_id:
        return seminar_service.get_registration(db, registration_id)
    raise HTTPException(status_code=400, detail="Either QR code or registration ID is required")


def _approved_makeup_for(db: Session, registration_id: int) -> Optional[MakeupRequest]:
    return (
        db.query(MakeupRequest)
        .filter(
            MakeupRequest.registration_id == registration_id,
            MakeupRequest.status == "approved",
        )
        .first()
    )


def get_attendance(db: Session, registration_id: int, session_id: int) -> Optional[SeminarAttendance]:
    return (
        db.query(SeminarAttendance)
        .filter(
            SeminarAttendance.registration_id == registration_id,
            SeminarAttendance.session_id == session_id,
        )
        .first()
    )


def check_in(
    db: Session,
    *,
    session_id: Optional[int],
    registration_id: Optional[int] = None,
    qr_code: Optional[str] = None,
    is_makeup: bool = False,
    checked_in_by: Optional[int] = None,
    notes: Optional[str] = None,
) -> dict:
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")

    session = seminar_service.get_session(db, session_id)
    registration = _resolve_registration(db, registration_id, qr_code)

    if registration.status != "active":
        raise HTTPException(
            status_code=400,
            detail=f"Registration is {registration.status}, cannot check in",
        )
    if session.seminar_id != registration.seminar_id:
        raise HTTPException(status_code=400, detail="This session is for a different seminar")
    if get_attendance(db, registration.registration_id, session_id):
        raise HTTPException(status_code=409, detail="Already checked in for this session")
    if registration.sessions_remaining <= 0:
        raise HTTPException(status_code=400, detail="No sessions remaining in this registration")

    makeup_request = None
    if is_makeup:
        makeup_request = _approved_makeup_for(db, registration.registration_id)
        if makeup_request is None:
            raise HTTPException(
                status_code=400,
                detail="No approved makeup request exists for this registration",
            )
        if makeup_request.requested_session_id and makeup_request.requested_session_id != session_id:
            raise HTTPException(
                status_code=400,
                detail="This session does not match the approved makeup session",
            )

    credits = float(settings.SEMINAR_CREDITS_PER_SESSION)
    attendance = SeminarAttendance(
        registration_id=registration.registration_id,
        session_id=session_id,
        user_id=registration.user_id,
        seminar_id=registration.seminar_id,
        is_makeup=is_makeup,
        credits_awarded=credits,
        checked_in_at=datetime.now(timezone.utc),
        checked_in_by=checked_in_by,
        notes=notes,
    )
    db.add(attendance)

    credit_service.award_credits(
        db,
        user_id=registration.user_id,
        credits=credits,
        source="seminar_session",
        seminar_id=registration.seminar_id,
        session_id=session_id,
        event_title=f"{registration.seminar.title} - Session {session.session_number}",
        event_date=session.session_date,
        notes="Makeup session" if is_makeup else None,
        commit=False,
    )

    if makeup_request is not None:
        makeup_request.status = "completed"
        if not makeup_request.requested_session_id:
            makeup_request.requested_session_id = session_id

    seminar_service.recompute_progress(db, registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already checked in for this session")
    db.refresh(attendance)
    db.refresh(registration)

    logger.info(
        "[check-in] registration=%s session=%s makeup=%s completed=%s remaining=%s",
        registration.registration_id,
        session_id,
        is_makeup,
        registration.sessions_completed,
        registration.sessions_remaining,
    )
    user = registration.user
    return {
        "attendance_id": attendance.attendance_id,
        "registration_id": registration.registration_id,
        "session_id": session_id,
        "attendee_name": user.full_name if user else "",
        "attendee_email": user.email if user else None,
        "credits_awarded": attendance.credits_awarded,
        "is_makeup": attendance.is_makeup,
        "sessions_completed": registration.sessions_completed,
        "sessions_remaining": registration.sessions_remaining,
        "registration_status": registration.status,
        "session_topic": session.topic,
        "session_date": session.session_date,
    }


def remove_attendance(db: Session, attendance_id: int, actor_user_id: Optional[int] = None) -> SeminarRegistration:
    attendance = (
        db.query(SeminarAttendance)
        .filter(SeminarAttendance.attendance_id == attendance_id)
        .first()
    )
    if not attendance:
        raise HTTPException(status_code=404, detail="Attendance record not found")

    registration = attendance.registration
    session = attendance.session
    credit_service.revoke_credits(
        db,
        user_id=attendance.user_id,
        credits=attendance.credits_awarded,
        source="seminar_session",
        seminar_id=attendance.seminar_id,
        session_id=attendance.session_id,
        event_title=f"{registration.seminar.title} - Session {session.session_number}",
        event_date=session.session_date,
        notes=f"Attendance removed by user {actor_user_id}" if actor_user_id else "Attendance removed",
        commit=False,
    )
    db.delete(attendance)
    seminar_service.recompute_progress(db, registration)
    db.commit()
    db.refresh(registration)
    logger.info("[check-in] attendance %s removed, registration=%s", attendance_id, registration.registration_id)
    return registration


def list_session_attendance(db: Session, session_id: int) -> List[SeminarAttendance]:
    seminar_service.get_session(db, session_id)
    return (
        db.query(SeminarAttendance)
        .filter(SeminarAttendance.session_id == session_id)
        .order_by(SeminarAttendance.checked_in_at.asc())
        .all()
    )
