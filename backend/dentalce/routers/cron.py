"""Scheduled jobs triggered over HTTP by the platform scheduler."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from dentalce.config import settings
from dentalce.database import get_db
from dentalce.schemas.certificate import PeriodIssueResultOut
from dentalce.schemas.seminar import SessionRemindersResultOut
from dentalce.services import certificate_service, reminder_service

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_key(
    key: Optional[str] = Query(None),
    authorization: Optional[str] = Header(None),
) -> None:
    """Accept the cron secret as ?key= or as an Authorization bearer token."""
    if not settings.CRON_SECRET:
        return
    if key == settings.CRON_SECRET or authorization == f"Bearer {settings.CRON_SECRET}":
        return
    raise HTTPException(status_code=401, detail="Invalid cron key")


@router.post(
    "/seminar-certificates",
    response_model=PeriodIssueResultOut,
    dependencies=[Depends(verify_cron_key)],
)
def issue_seminar_certificates(
    period: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    dry_run: bool = Query(False),
    db: Session = Depends(get_db),
):
    return certificate_service.issue_period_certificates(db, period=period, year=year, dry_run=dry_run)


@router.get(
    "/session-reminders",
    response_model=SessionRemindersResultOut,
    dependencies=[Depends(verify_cron_key)],
)
def send_session_reminders(db: Session = Depends(get_db)):
    return reminder_service.send_session_reminders(db)
