"""Bi-annual seminar certificate issuance."""

import logging
import secrets
import string
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dentalce.config import settings
from dentalce.models.certificate import SeminarCertificate
from dentalce.models.registration import SeminarRegistration
from dentalce.models.seminar import Seminar
from dentalce.services import credit_service, email_service, seminar_service

logger = logging.getLogger(__name__)

PERIODS = ("first_half", "second_half")
MIN_YEAR = 2000
MAX_YEAR = 2100
_CODE_ALPHABET = string.ascii_uppercase + string.digits


def _validate_period(period: str) -> str:
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail='Period must be "first_half" or "second_half"')
    return period


def _resolve_year(year: Optional[int], today: Optional[date] = None) -> int:
    if year is None:
        return (today or date.today()).year
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise HTTPException(status_code=400, detail=f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def period_window(period: str, year: int) -> Tuple[date, date]:
    _validate_period(period)
    _resolve_year(year)
    if period == "first_half":
        return date(year, 1, 1), date(year, 6, 30)
    return date(year, 7, 1), date(year, 12, 31)


def period_display(period: str, year: int) -> str:
    _validate_period(period)
    if period == "first_half":
        return f"January - June {year}"
    return f"July - December {year}"


def current_period(today: Optional[date] = None) -> Tuple[str, int]:
    today = today or date.today()
    return ("first_half" if today.month <= 6 else "second_half"), today.year


def generate_certificate_code(year: int) -> str:
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
    return f"CERT-{year}-{suffix}"


def get_certificate(db: Session, registration_id: int, period: str, year: int) -> Optional[SeminarCertificate]:
    return (
        db.query(SeminarCertificate)
        .filter(
            SeminarCertificate.registration_id == registration_id,
            SeminarCertificate.period == period,
            SeminarCertificate.year == year,
        )
        .first()
    )


def _certificate_state(eligible: bool, certificate: Optional[SeminarCertificate]) -> str:
    if certificate is not None and certificate.sent_at:
        return "sent"
    if certificate is not None:
        return "generated"
    return "pending" if eligible else "ineligible"


def _period_totals(db: Session, registration: SeminarRegistration, period: str, year: int) -> Tuple[float, int]:
    return credit_service.seminar_credits_in_window(
        db, registration.user_id, registration.seminar_id, period_window(period, year)
    )


def list_eligibility(db: Session, seminar_id: int, period: str, year: Optional[int] = None) -> dict:
    _validate_period(period)
    year = _resolve_year(year)
    seminar_service.get_seminar(db, seminar_id)

    registrations = (
        db.query(SeminarRegistration)
        .filter(
            SeminarRegistration.seminar_id == seminar_id,
            SeminarRegistration.status != "cancelled",
        )
        .order_by(SeminarRegistration.registration_id.asc())
        .all()
    )

    rows = []
    for registration in registrations:
        credits, sessions = _period_totals(db, registration, period, year)
        eligible = credits > 0
        certificate = get_certificate(db, registration.registration_id, period, year)
        user = registration.user
        rows.append({
            "registration_id": registration.registration_id,
            "user_id": registration.user_id,
            "attendee_name": user.full_name if user else "",
            "email": user.email if user else None,
            "sessions_completed": registration.sessions_completed,
            "sessions_in_period": sessions,
            "credits_in_period": credits,
            "eligible": eligible,
            "state": _certificate_state(eligible, certificate),
            "certificate": certificate,
        })

    return {
        "seminar_id": seminar_id,
        "period": period,
        "period_display": period_display(period, year),
        "year": year,
        "stats": {
            "total": len(rows),
            "eligible": sum(1 for r in rows if r["eligible"]),
            "generated": sum(1 for r in rows if r["state"] in ("generated", "sent")),
            "sent": sum(1 for r in rows if r["state"] == "sent"),
        },
        "registrations": rows,
    }


def generate_certificate(
    db: Session,
    registration_id: int,
    period: str,
    year: Optional[int] = None,
) -> SeminarCertificate:
    """Create or refresh the certificate for one registration and period.

    A second call for the same (registration, period, year) reuses the row:
    code, credits, URL and generated_at are refreshed while sent_at is kept.
    """
    _validate_period(period)
    year = _resolve_year(year)
    registration = seminar_service.get_registration(db, registration_id)

    credits, _sessions = _period_totals(db, registration, period, year)
    if credits <= 0:
        raise HTTPException(
            status_code=400,
            detail=f"Registration {registration_id} has no seminar credits for {period_display(period, year)}",
        )

    code = generate_certificate_code(year)
    now = datetime.now(timezone.utc)
    certificate = get_certificate(db, registration_id, period, year)
    if certificate is None:
        certificate = SeminarCertificate(
            registration_id=registration_id,
            user_id=registration.user_id,
            seminar_id=registration.seminar_id,
            period=period,
            year=year,
        )
        db.add(certificate)
    certificate.certificate_code = code
    certificate.credits = credits
    certificate.certificate_url = settings.certificate_url(code)
    certificate.generated_at = now

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Certificate was generated concurrently, retry")
    db.refresh(certificate)
    logger.info(
        "[certificates] generated %s registration=%s period=%s/%s credits=%.2f",
        code, registration_id, period, year, credits,
    )
    return certificate


def send_certificate(
    db: Session,
    registration_id: int,
    period: str,
    year: Optional[int] = None,
    email: Optional[str] = None,
) -> dict:
    _validate_period(period)
    year = _resolve_year(year)
    registration = seminar_service.get_registration(db, registration_id)
    certificate = get_certificate(db, registration_id, period, year)
    if certificate is None:
        raise HTTPException(status_code=404, detail="Certificate not found. Generate it first.")

    user = registration.user
    recipient = (email or (user.email if user else "") or "").strip()
    if not recipient:
        raise HTTPException(status_code=400, detail="No email address available for this registration")

    result = email_service.send_certificate_email(
        recipient,
        attendee_name=user.full_name if user else "",
        seminar_title=registration.seminar.title,
        period_display=period_display(period, year),
        credits=certificate.credits,
        certificate_code=certificate.certificate_code,
        certificate_url=certificate.certificate_url or settings.certificate_url(certificate.certificate_code),
    )
    certificate.sent_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(certificate)
    logger.info("[certificates] sent %s to=%s", certificate.certificate_code, recipient)
    return {"certificate": certificate, "sent_to": recipient, "skipped_delivery": result.skipped}


def _bulk(action, db: Session, registration_ids: Iterable[int], period: str, year: Optional[int]) -> dict:
    _validate_period(period)
    year = _resolve_year(year)
    succeeded = 0
    errors = []
    for registration_id in registration_ids:
        try:
            action(db, registration_id, period, year)
            succeeded += 1
        except HTTPException as exc:
            errors.append({"registration_id": registration_id, "error": str(exc.detail)})
        except email_service.EmailDeliveryError as exc:
            errors.append({"registration_id": registration_id, "error": str(exc)})
    if errors:
        logger.warning("[certificates] bulk %s: %s failed", action.__name__, len(errors))
    return {"succeeded": succeeded, "failed": len(errors), "errors": errors}


def bulk_generate(db: Session, registration_ids: List[int], period: str, year: Optional[int] = None) -> dict:
    return _bulk(generate_certificate, db, registration_ids, period, year)


def bulk_send(db: Session, registration_ids: List[int], period: str, year: Optional[int] = None) -> dict:
    return _bulk(send_certificate, db, registration_ids, period, year)


def _issue_for_seminar(db: Session, seminar: Seminar, period: str, year: int, dry_run: bool) -> dict:
    detail = {
        "seminar_id": seminar.seminar_id,
        "seminar_title": seminar.title,
        "eligible_count": 0,
        "generated_count": 0,
        "errors": [],
        "message": None,
        "error": None,
    }
    eligibility = list_eligibility(db, seminar.seminar_id, period, year)
    eligible_ids = [r["registration_id"] for r in eligibility["registrations"] if r["eligible"]]
    detail["eligible_count"] = len(eligible_ids)
    if not eligible_ids:
        detail["message"] = "No eligible registrations"
        return detail
    if dry_run:
        detail["message"] = f"Would generate {len(eligible_ids)} certificates"
        return detail
    result = bulk_generate(db, eligible_ids, period, year)
    detail["generated_count"] = result["succeeded"]
    detail["errors"] = result["errors"]
    return detail


def issue_period_certificates(
    db: Session,
    period: Optional[str] = None,
    year: Optional[int] = None,
    dry_run: bool = False,
    today: Optional[date] = None,
) -> dict:
    """Generate certificates for every active seminar in one period.

    Only seminars with at least one eligible registration count as processed.
    A failure in one seminar is recorded in its detail row and the run moves on.
    """
    if not period:
        period, default_year = current_period(today)
        if year is None:
            year = default_year
    _validate_period(period)
    year = _resolve_year(year, today)

    seminars = db.query(Seminar).filter(Seminar.status == "active").order_by(Seminar.seminar_id.asc()).all()
    details = []
    processed = 0
    total_generated = 0
    for seminar in seminars:
        try:
            detail = _issue_for_seminar(db, seminar, period, year, dry_run)
        except (HTTPException, SQLAlchemyError) as exc:
            if isinstance(exc, SQLAlchemyError):
                db.rollback()
            message = exc.detail if isinstance(exc, HTTPException) else str(exc)
            logger.error("[certificates] period run failed for seminar %s: %s", seminar.seminar_id, message)
            detail = {
                "seminar_id": seminar.seminar_id,
                "seminar_title": seminar.title,
                "eligible_count": 0,
                "generated_count": 0,
                "errors": [],
                "message": None,
                "error": str(message),
            }
            processed += 1
        else:
            if detail["eligible_count"]:
                processed += 1
            total_generated += detail["generated_count"]
        details.append(detail)

    logger.info(
        "[certificates] period run %s/%s dry_run=%s seminars=%s generated=%s",
        period, year, dry_run, processed, total_generated,
    )
    return {
        "period": period,
        "period_display": period_display(period, year),
        "year": year,
        "dry_run": dry_run,
        "seminars_processed": processed,
        "total_generated": total_generated,
        "details": details,
    }
