"""Day-before session reminders for active registrations."""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from dentalce.models.registration import SeminarAttendance, SeminarRegistration
from dentalce.models.seminar import SeminarSession
from dentalce.services import email_service

logger = logging.getLogger(__name__)


def _format_time(value: str) -> str:
    hours, minutes = value.split(":")[:2]
    hour = int(hours)
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes} {suffix}"


def session_time_label(session: SeminarSession) -> str:
    if session.time_start and session.time_end:
        return f"{_format_time(session.time_start)} - {_format_time(session.time_end)}"
    return "See schedule for time"


def send_session_reminders(db: Session, today: Optional[date] = None) -> dict:
    target = (today or date.today()) + timedelta(days=1)
    sessions = (
        db.query(SeminarSession)
        .filter(SeminarSession.session_date == target)
        .order_by(SeminarSession.session_id.asc())
        .all()
    )
    if not sessions:
        return {
            "message": "No sessions scheduled for tomorrow",
            "sessions_found": 0,
            "reminders_sent": 0,
            "errors": [],
        }

    sent = 0
    errors = []
    for session in sessions:
        seminar = session.seminar
        attended = {
            row[0]
            for row in db.query(SeminarAttendance.registration_id)
            .filter(SeminarAttendance.session_id == session.session_id)
            .all()
        }
        registrations = (
            db.query(SeminarRegistration)
            .filter(
                SeminarRegistration.seminar_id == session.seminar_id,
                SeminarRegistration.status == "active",
            )
            .order_by(SeminarRegistration.registration_id.asc())
            .all()
        )
        for registration in registrations:
            user = registration.user
            if registration.registration_id in attended or not user or not user.email:
                continue
            try:
                email_service.send_session_reminder_email(
                    user.email,
                    attendee_name=user.full_name or "Member",
                    seminar_title=seminar.title,
                    session_number=session.session_number,
                    session_date=session.session_date.strftime("%A, %B %d, %Y"),
                    session_time=session_time_label(session),
                    session_topic=session.topic,
                    qr_code=registration.qr_code,
                )
                sent += 1
            except email_service.EmailDeliveryError as exc:
                errors.append(f"Failed to send to {user.email}: {exc}")

    if errors:
        logger.warning("[reminders] %s reminders failed", len(errors))
    logger.info("[reminders] %s sessions on %s, %s reminders sent", len(sessions), target, sent)
    return {
        "message": "Session reminders processed",
        "sessions_found": len(sessions),
        "reminders_sent": sent,
        "errors": errors,
    }
