"""Outbound email through the Resend HTTP API."""

import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from dentalce.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


@dataclass
class EmailResult:
    to: str
    message_id: Optional[str] = None
    skipped: bool = False


def send_email(to: str, subject: str, body_html: str) -> EmailResult:
    recipient = (to or "").strip()
    if not recipient:
        raise EmailDeliveryError("No recipient email address")

    if not settings.EMAIL_ENABLED:
        logger.info("[email] delivery disabled, skipped to=%s subject=%s", recipient, subject)
        return EmailResult(to=recipient, skipped=True)
    if not settings.RESEND_API_KEY:
        raise EmailDeliveryError("RESEND_API_KEY is not configured")

    try:
        response = httpx.post(
            settings.RESEND_API_URL,
            headers={
                "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                "Content-Type": "application/json",
            },
            json={
                "from": settings.EMAIL_FROM,
                "to": [recipient],
                "subject": subject,
                "html": body_html,
            },
            timeout=float(settings.EMAIL_TIMEOUT_SECONDS),
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("[email] delivery failed to=%s: %s", recipient, exc)
        raise EmailDeliveryError(str(exc)) from exc

    message_id = (response.json() or {}).get("id")
    logger.info("[email] sent to=%s id=%s", recipient, message_id)
    return EmailResult(to=recipient, message_id=message_id)


def send_certificate_email(
    to: str,
    *,
    attendee_name: str,
    seminar_title: str,
    period_display: str,
    credits: float,
    certificate_code: str,
    certificate_url: str,
) -> EmailResult:
    subject = f"Your CE Certificate - {seminar_title} ({period_display})"
    body = (
        f"<p>Hello {html.escape(attendee_name or 'there')},</p>"
        f"<p>Your certificate for <strong>{html.escape(seminar_title)}</strong> covering "
        f"{html.escape(period_display)} is ready. You earned {credits:g} CE credits.</p>"
        f"<p>Certificate code: {html.escape(certificate_code)}<br>"
        f'<a href="{html.escape(certificate_url)}">View and verify your certificate</a></p>'
    )
    return send_email(to, subject, body)


def send_makeup_review_email(
    to: str,
    *,
    attendee_name: str,
    seminar_title: str,
    approved: bool,
    denial_reason: Optional[str] = None,
) -> EmailResult:
    outcome = "approved" if approved else "denied"
    subject = f"Makeup request {outcome} - {seminar_title}"
    body = (
        f"<p>Hello {html.escape(attendee_name or 'there')},</p>"
        f"<p>Your makeup session request for <strong>{html.escape(seminar_title)}</strong> "
        f"has been {outcome}.</p>"
    )
    if not approved and denial_reason:
        body += f"<p>Reason: {html.escape(denial_reason)}</p>"
    return send_email(to, subject, body)


def send_session_reminder_email(
    to: str,
    *,
    attendee_name: str,
    seminar_title: str,
    session_number: int,
    session_date: str,
    session_time: str,
    session_topic: Optional[str] = None,
    qr_code: Optional[str] = None,
) -> EmailResult:
    subject = f"Reminder: {seminar_title} session {session_number} is tomorrow"
    body = (
        f"<p>Hello {html.escape(attendee_name or 'Member')},</p>"
        f"<p>Session {session_number} of <strong>{html.escape(seminar_title)}</strong> "
        f"is on {html.escape(session_date)}, {html.escape(session_time)}.</p>"
    )
    if session_topic:
        body += f"<p>Topic: {html.escape(session_topic)}</p>"
    if qr_code:
        body += f"<p>Bring your check-in code: <strong>{html.escape(qr_code)}</strong></p>"
    return send_email(to, subject, body)
