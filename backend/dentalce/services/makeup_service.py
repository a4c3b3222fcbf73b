"""Makeup request workflow: user submission, admin review and the eligibility view."""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dentalce.models.makeup_request import MakeupRequest
from dentalce.models.registration import SeminarRegistration
from dentalce.models.seminar import SeminarSession
from dentalce.services import email_service, seminar_service
from dentalce.services.makeup_eligibility import (
    MakeupEligibility,
    evaluate_makeup_state,
    validate_makeup_submission,
)
from dentalce.utils.permissions import Capability, RequestContext

logger = logging.getLogger(__name__)

REQUEST_STATUSES = ("pending", "approved", "denied", "completed", "cancelled", "expired")
DELETABLE_STATUSES = ("pending", "cancelled", "expired")

# action -> (allowed source statuses, target status)
REVIEW_TRANSITIONS = {
    "approve": (("pending",), "approved"),
    "deny": (("pending",), "denied"),
    "complete": (("approved",), "completed"),
    "cancel": (("pending", "approved"), "cancelled"),
    "expire": (("approved",), "expired"),
}
REVIEW_ACTIONS = (*REVIEW_TRANSITIONS, "update")


def _requests_for_registration(db: Session, registration_id: int) -> List[MakeupRequest]:
    return (
        db.query(MakeupRequest)
        .filter(MakeupRequest.registration_id == registration_id)
        .order_by(MakeupRequest.created_at.desc(), MakeupRequest.request_id.desc())
        .all()
    )


def _ensure_can_act(ctx: RequestContext, registration: SeminarRegistration) -> None:
    if not ctx.can_act_for(registration.user_id, Capability.REVIEW_MAKEUP):
        raise HTTPException(
            status_code=403,
            detail="You can only manage makeup requests for your own registrations",
        )


def evaluate_registration(db: Session, registration: SeminarRegistration, today: date) -> MakeupEligibility:
    sessions = seminar_service.list_sessions(db, registration.seminar_id)
    attended = seminar_service.attended_session_ids(db, registration.registration_id)
    return evaluate_makeup_state(
        sessions,
        attended,
        bool(registration.makeup_used),
        _requests_for_registration(db, registration.registration_id),
        today,
    )


def get_makeup_status(db: Session, ctx: RequestContext, registration_id: int, today: date) -> dict:
    registration = seminar_service.get_registration(db, registration_id)
    _ensure_can_act(ctx, registration)
    eligibility = evaluate_registration(db, registration, today)
    return {
        "registration_id": registration.registration_id,
        "state": eligibility.state,
        "can_submit": eligibility.can_submit and registration.status == "active",
        "makeup_used": bool(registration.makeup_used),
        "missed_sessions": eligibility.missed_sessions,
        "future_sessions": eligibility.future_sessions,
        "active_request": eligibility.active_request,
    }


def create_makeup_request(
    db: Session,
    ctx: RequestContext,
    *,
    registration_id: Optional[int],
    missed_session_id: Optional[int],
    requested_session_id: Optional[int] = None,
    reason: Optional[str] = None,
    user_id: Optional[int] = None,
    today: Optional[date] = None,
) -> MakeupRequest:
    if not registration_id:
        raise HTTPException(status_code=400, detail="registration_id is required")
    if not missed_session_id:
        raise HTTPException(status_code=400, detail="missed_session_id is required")

    registration = seminar_service.get_registration(db, registration_id)
    if user_id is not None and user_id != registration.user_id:
        raise HTTPException(
            status_code=403,
            detail="You can only submit makeup requests for your own registrations",
        )
    _ensure_can_act(ctx, registration)

    if registration.status != "active":
        raise HTTPException(
            status_code=400,
            detail=f"Cannot submit makeup request for registration with status: {registration.status}",
        )

    eligibility = evaluate_registration(db, registration, today or date.today())
    validate_makeup_submission(eligibility, missed_session_id, requested_session_id)

    request = MakeupRequest(
        registration_id=registration.registration_id,
        user_id=registration.user_id,
        seminar_id=registration.seminar_id,
        missed_session_id=missed_session_id,
        requested_session_id=requested_session_id or None,
        reason=(reason or "").strip() or None,
        status="pending",
    )
    db.add(request)
    try:
        db.commit()
    except IntegrityError:
        # the partial unique index caught a concurrent submission
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="You already have an active makeup request for this registration",
        )
    db.refresh(request)
    logger.info(
        "[makeup] request %s created registration=%s missed=%s requested=%s",
        request.request_id, registration_id, missed_session_id, requested_session_id,
    )
    return request


def list_requests_for_registration(db: Session, ctx: RequestContext, registration_id: int) -> List[MakeupRequest]:
    registration = seminar_service.get_registration(db, registration_id)
    _ensure_can_act(ctx, registration)
    return _requests_for_registration(db, registration_id)


def list_requests_for_user(db: Session, ctx: RequestContext, user_id: int) -> List[MakeupRequest]:
    if not ctx.can_act_for(user_id, Capability.REVIEW_MAKEUP):
        raise HTTPException(status_code=403, detail="You can only view your own makeup requests")
    return (
        db.query(MakeupRequest)
        .filter(MakeupRequest.user_id == user_id)
        .order_by(MakeupRequest.created_at.desc(), MakeupRequest.request_id.desc())
        .all()
    )


def count_by_status(db: Session) -> Dict[str, int]:
    counts = {status: 0 for status in REQUEST_STATUSES}
    for (status,) in db.query(MakeupRequest.status).all():
        if status in counts:
            counts[status] += 1
    return counts


def list_requests(db: Session, seminar_id: Optional[int] = None, status: Optional[str] = None) -> List[MakeupRequest]:
    q = db.query(MakeupRequest)
    if seminar_id:
        q = q.filter(MakeupRequest.seminar_id == seminar_id)
    if status:
        q = q.filter(MakeupRequest.status == status)
    return q.order_by(MakeupRequest.created_at.desc(), MakeupRequest.request_id.desc()).all()


def get_request(db: Session, request_id: int) -> MakeupRequest:
    request = db.query(MakeupRequest).filter(MakeupRequest.request_id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Makeup request not found")
    return request


def _validate_requested_session(db: Session, request: MakeupRequest, session_id: int) -> None:
    session = db.query(SeminarSession).filter(SeminarSession.session_id == session_id).first()
    if not session or session.seminar_id != request.seminar_id:
        raise HTTPException(status_code=400, detail="Invalid requested session")
    if session.session_date < date.today():
        raise HTTPException(
            status_code=400,
            detail="The requested makeup session must be a future session of your seminar",
        )


def _notify_review(request: MakeupRequest) -> None:
    registration = request.registration
    user = registration.user if registration else None
    if not user or not user.email:
        return
    try:
        email_service.send_makeup_review_email(
            user.email,
            attendee_name=user.full_name,
            seminar_title=request.seminar.title if request.seminar else "Seminar",
            approved=request.status == "approved",
            denial_reason=request.denial_reason,
        )
    except email_service.EmailDeliveryError as exc:
        # review already committed; notification is best effort
        logger.warning("[makeup] review email failed for request %s: %s", request.request_id, exc)


def review_request(
    db: Session,
    request_id: int,
    *,
    action: str,
    reviewer_id: int,
    notes: Optional[str] = None,
    denial_reason: Optional[str] = None,
    requested_session_id: Optional[int] = None,
) -> MakeupRequest:
    if action not in REVIEW_ACTIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid action: {action}. Valid actions: {', '.join(REVIEW_ACTIONS)}",
        )
    request = get_request(db, request_id)

    if requested_session_id is not None:
        _validate_requested_session(db, request, requested_session_id)

    if action == "update":
        if notes is not None:
            request.notes = notes
        if requested_session_id is not None:
            request.requested_session_id = requested_session_id
        db.commit()
        db.refresh(request)
        return request

    allowed_from, target = REVIEW_TRANSITIONS[action]
    if request.status not in allowed_from:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot {action} request with status: {request.status}",
        )

    registration = request.registration
    previous = request.status
    request.status = target
    if notes:
        request.notes = notes

    if action in ("approve", "deny"):
        request.reviewed_by = reviewer_id
        request.reviewed_at = datetime.now(timezone.utc)
    if action == "approve":
        if requested_session_id:
            request.requested_session_id = requested_session_id
        # the one-shot grant is consumed on approval
        registration.makeup_used = True
    elif action == "deny":
        request.denial_reason = (denial_reason or "").strip() or None
    elif action == "cancel" and previous == "approved":
        # an approved grant that was never attended is handed back
        registration.makeup_used = False

    db.commit()
    db.refresh(request)
    logger.info("[makeup] request %s %s -> %s by user=%s", request_id, previous, target, reviewer_id)

    if action in ("approve", "deny"):
        _notify_review(request)
    return request


def delete_request(db: Session, request_id: int) -> None:
    request = get_request(db, request_id)
    if request.status not in DELETABLE_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cannot delete request with status: {request.status}. "
                "Only pending, cancelled, or expired requests can be deleted."
            ),
        )
    db.delete(request)
    db.commit()
    logger.info("[makeup] request %s deleted", request_id)
